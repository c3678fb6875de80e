# order_service/main.py
import argparse
import asyncio
import logging
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from order_service.config import Settings
from order_service.errors import InvalidRequest, OrderServiceError
from order_service.models import StatusUpdateRequest, VerifyPaymentRequest
from order_service.notifications import NotificationDispatcher
from order_service.orchestrator import OrderSubmission
from order_service.payment import PaymentVerifier
from order_service.realtime import ORDER_UPDATED, Broadcaster
from order_service.store import OrderStore

SERVICE_NAME = "OrderService"
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[OrderStore] = None,
    verifier: Optional[PaymentVerifier] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    broadcaster: Optional[Broadcaster] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title=SERVICE_NAME)

    app.state.settings = settings
    if store is None:
        store = OrderStore(settings.order_store_path, settings.enforce_unique_reference)
    if broadcaster is None:
        broadcaster = Broadcaster(send_timeout=settings.http_timeout)
    if verifier is None:
        verifier = PaymentVerifier(settings.paystack_secret_key, settings.paystack_base_url, timeout=settings.http_timeout)
    if dispatcher is None:
        dispatcher = NotificationDispatcher(settings)

    app.state.store = store
    app.state.broadcaster = broadcaster
    app.state.submission = OrderSubmission(verifier, store, dispatcher, broadcaster)

    @app.exception_handler(OrderServiceError)
    async def handle_service_error(request: Request, exc: OrderServiceError):
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"success": False, "message": "Invalid request body", "error": str(exc.errors())},
            status_code=400,
        )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    async def verify_payment(body: VerifyPaymentRequest, request: Request):
        start_time = time.time()
        endpoint = request.url.path
        try:
            order = await app.state.submission.submit(body.reference, body.orderData)
        except OrderServiceError as e:
            latency = time.time() - start_time
            logger.error(f"Service: {SERVICE_NAME}, Endpoint: {endpoint}, Status: {e.status_code}, Latency: {latency:.4f}s")
            raise
        latency = time.time() - start_time
        logger.info(f"Service: {SERVICE_NAME}, Endpoint: {endpoint}, Status: Success, Latency: {latency:.4f}s")
        return {"success": True, "message": "Payment verified successfully", "order": order.to_json()}

    app.add_api_route("/api/payment/verify", verify_payment, methods=["POST"])
    app.add_api_route("/api/verify-payment", verify_payment, methods=["POST"])

    @app.get("/api/orders")
    def list_orders():
        return [o.to_json() for o in app.state.store.find_all()]

    @app.get("/api/orders/{reference}")
    def get_order(reference: str):
        return app.state.store.find_by_reference(reference).to_json()

    @app.delete("/api/orders/{order_id}")
    def delete_order(order_id: str):
        deleted = app.state.store.delete(order_id)
        return {"message": "Order deleted successfully", "deletedOrder": deleted.to_json()}

    @app.patch("/api/orders/update/{reference}")
    async def update_order_status(reference: str, body: StatusUpdateRequest):
        if not body.status:
            raise InvalidRequest("Missing status")
        order = await asyncio.to_thread(app.state.store.update_status, reference, body.status)
        logger.info(f"Order {reference} status set to {order.status}")
        await app.state.broadcaster.broadcast(ORDER_UPDATED, {
            "reference": order.reference,
            "status": order.status,
            "dispatchedAt": order.dispatchedAt.isoformat() if order.dispatchedAt else None,
            "deliveredAt": order.deliveredAt.isoformat() if order.deliveredAt else None,
        })
        return {"message": "Order status updated", "order": order.to_json()}

    @app.get("/api/admin/stats")
    def admin_stats():
        orders = app.state.store.find_all()
        return {
            "totalOrders": len(orders),
            "totalRevenue": sum(o.totalAmount or 0 for o in orders),
            "pendingOrders": sum(1 for o in orders if o.status == "pending"),
            "processingOrders": sum(1 for o in orders if o.status == "processing"),
            "recentOrders": [o.to_json() for o in orders[:5]],
        }

    @app.websocket("/ws/admin")
    async def admin_feed(websocket: WebSocket):
        broadcaster = app.state.broadcaster
        session_id = await broadcaster.connect(websocket)
        try:
            while True:
                # dashboards only listen; inbound text or binary frames are ignored
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            broadcaster.disconnect(session_id)

    return app


def run(argv=None):
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Restaurant order submission service")
    parser.add_argument("--host", default=settings.host, help=f"Interface to bind (default = {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Port to listen on (default = {settings.port})")
    args = parser.parse_args(argv)
    if not (0 < args.port < 65536):
        parser.error("Port must be between 1 and 65535")

    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(message)s',
    )
    if not settings.paystack_secret_key:
        logger.warning("PAYSTACK_SECRET_KEY is not set, every verification will be rejected by the gateway")

    # Log when the server starts
    logger.info(f"Service: {SERVICE_NAME}, Endpoint: {args.host}:{args.port}, Status: Starting, Latency: N/A")
    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == '__main__':
    run()
