# order_service/config.py
import os
from dataclasses import dataclass
from typing import Optional


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"

    # payment gateway
    paystack_secret_key: str = ""
    paystack_base_url: str = "https://api.paystack.co"

    # push notifications
    onesignal_app_id: str = ""
    onesignal_rest_key: str = ""
    onesignal_api_url: str = "https://onesignal.com/api/v1/notifications"
    admin_dashboard_url: str = "https://tastybite.vercel.app/admin-dashboard.html"

    # sms gateway
    sms_api_key: str = ""
    sms_sender_id: str = "TastyBite"
    sms_api_url: str = "https://api.ng.termii.com/api/sms/send"

    # applies to every outbound call
    http_timeout: float = 10.0

    order_store_path: Optional[str] = None
    enforce_unique_reference: bool = False

    @property
    def push_enabled(self) -> bool:
        return bool(self.onesignal_app_id and self.onesignal_rest_key)

    @property
    def sms_enabled(self) -> bool:
        return bool(self.sms_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", str(cls.port))),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            paystack_secret_key=os.getenv("PAYSTACK_SECRET_KEY", ""),
            paystack_base_url=os.getenv("PAYSTACK_BASE_URL", cls.paystack_base_url),
            onesignal_app_id=os.getenv("ONESIGNAL_APP_ID", ""),
            onesignal_rest_key=os.getenv("ONESIGNAL_REST_KEY", ""),
            onesignal_api_url=os.getenv("ONESIGNAL_API_URL", cls.onesignal_api_url),
            admin_dashboard_url=os.getenv("ADMIN_DASHBOARD_URL", cls.admin_dashboard_url),
            sms_api_key=os.getenv("SMS_API_KEY", ""),
            sms_sender_id=os.getenv("SMS_SENDER_ID", cls.sms_sender_id),
            sms_api_url=os.getenv("SMS_API_URL", cls.sms_api_url),
            http_timeout=float(os.getenv("HTTP_TIMEOUT_SECONDS", str(cls.http_timeout))),
            order_store_path=os.getenv("ORDER_STORE_PATH") or None,
            enforce_unique_reference=_env_flag("ENFORCE_UNIQUE_REFERENCE"),
        )
