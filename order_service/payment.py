# order_service/payment.py
import logging
import time
from typing import Optional
from urllib.parse import quote

import requests

from order_service.errors import InvalidRequest, PaymentNotSuccessful, VerificationFailed
from order_service.models import PaymentVerification

logger = logging.getLogger(__name__)


class PaymentVerifier:
    """Checks a client-supplied reference against the payment gateway.

    One GET per call, no retries: when the gateway is down the client is
    expected to resubmit.
    """

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def verify(self, reference: Optional[str]) -> PaymentVerification:
        if not reference:
            raise InvalidRequest("Missing payment reference")

        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        logger.info(f"Verifying payment reference {reference}")
        start_time = time.time()

        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            logger.error(f"Verification call for {reference} failed: {e}")
            raise VerificationFailed("Error verifying payment. Please try again.", str(e)) from e
        except ValueError as e:
            logger.error(f"Verification response for {reference} is not JSON: {e}")
            raise VerificationFailed("Invalid verification response", str(e)) from e

        latency = time.time() - start_time
        logger.info(f"Service: PaymentGateway, Endpoint: /transaction/verify, Status: {response.status_code}, Latency: {latency:.4f}s")

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise VerificationFailed("Invalid verification response")

        status = data.get("status")
        if status != "success":
            logger.info(f"Payment {reference} reported status {status!r}")
            raise PaymentNotSuccessful("Payment not successful on Paystack", f"gateway status: {status}")

        amount_minor = data.get("amount")
        if isinstance(amount_minor, bool) or not isinstance(amount_minor, (int, float)):
            raise VerificationFailed("Invalid verification response", f"unexpected amount: {amount_minor!r}")

        return PaymentVerification(
            reference=reference,
            status=status,
            amount_minor=int(amount_minor),
            amount=int(amount_minor) / 100,
        )
