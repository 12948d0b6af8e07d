"""Notification Relay API.

FastAPI application hosting the queue consumers and providing endpoints:
- GET /health: Service and broker health
- GET /queue-status: Message and consumer counts per queue
- POST /test-email: Send a test email through the dispatcher
- POST /simulate-payment: Publish a payment event to the payment queue

Error responses carry {error, details}; full errors are logged server-side.

Author: Odiseo
Version: 2.0.0
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from notification_relay.api.schemas import (
    ErrorResponse,
    HealthResponse,
    QueueStatusResponse,
    SimulatePaymentRequest,
    SimulatePaymentResponse,
    TestEmailRequest,
    TestEmailResponse,
)
from notification_relay.config import RelayConfig
from notification_relay.context import ServiceContext
from notification_relay.core.exceptions import BrokerConnectionError
from notification_relay.core.logger import get_logger, setup_logging
from notification_relay.models.email import EmailNotification
from notification_relay.models.payment import PaymentEvent
from notification_relay.worker.runner import RelayWorker

logger = get_logger(__name__)


# =============================================================================
# Application State (Dependency Injection)
# =============================================================================
@dataclass
class AppState:
    """Application state container for dependency injection."""

    config: RelayConfig
    context: ServiceContext | None = None
    worker: RelayWorker | None = None


app_state: AppState | None = None


def get_config() -> RelayConfig:
    """Dependency: Get application configuration."""
    if not app_state or not app_state.config:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return app_state.config


def get_context() -> ServiceContext:
    """Dependency: Get the service context."""
    if not app_state or not app_state.context:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return app_state.context


def get_worker() -> RelayWorker | None:
    """Dependency: Get the consumer runner, if consumers are hosted here."""
    return app_state.worker if app_state else None


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(),
    )


# =============================================================================
# Module-level Configuration
# =============================================================================
_config = RelayConfig()


# =============================================================================
# Lifespan Context Manager
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start consumers on startup, stop them on shutdown."""
    global app_state

    app_state = AppState(config=_config)

    setup_logging(
        log_dir=_config.LOG_DIR,
        log_level=_config.LOG_LEVEL,
        enable_file=_config.LOG_TO_FILE,
        settings=_config,
    )

    try:
        context = ServiceContext.from_config(_config)
    except Exception as e:
        logger.error(f"Failed to start API: {e}")
        raise

    app_state.context = context
    if not await context.mail_sender.verify():
        logger.warning("SMTP connection check failed; deliveries will be retried")

    app_state.worker = RelayWorker(context)
    app_state.worker.start()
    logger.info(f"{_config.SERVICE_NAME} listening on port {_config.API_PORT}")

    yield  # Application runs here

    # Shutdown
    logger.info(f"Shutting down {_config.SERVICE_NAME}...")
    if app_state.worker:
        await app_state.worker.stop()
    await context.close()
    app_state = None
    logger.info(f"{_config.SERVICE_NAME} stopped")


# =============================================================================
# FastAPI Application
# =============================================================================
def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    application = FastAPI(
        title=_config.SERVICE_NAME,
        description="Relays RabbitMQ email and payment events to outbound email",
        version=_config.SERVICE_VERSION,
        lifespan=lifespan,
    )

    return application


app = create_app()


# =============================================================================
# API Endpoints
# =============================================================================
@app.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "Broker disconnected"}},
)
async def health_check(
    config: Annotated[RelayConfig, Depends(get_config)],
    context: Annotated[ServiceContext, Depends(get_context)],
    worker: Annotated[RelayWorker | None, Depends(get_worker)],
) -> HealthResponse | JSONResponse:
    """Check service health.

    Returns 503 while the broker connection is down.
    """
    broker_health = context.broker.health
    overall_status = "OK" if broker_health.connected else "degraded"

    response = HealthResponse(
        status=overall_status,
        service=config.SERVICE_NAME,
        version=config.SERVICE_VERSION,
        queues=config.consumed_queues,
        broker=broker_health.as_dict(),
        consumers=worker.stats() if worker else {},
    )

    if overall_status != "OK":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json"),
        )

    return response


@app.get(
    "/queue-status",
    response_model=QueueStatusResponse,
    responses={500: {"model": ErrorResponse, "description": "Broker error"}},
)
async def queue_status(
    config: Annotated[RelayConfig, Depends(get_config)],
    context: Annotated[ServiceContext, Depends(get_context)],
) -> QueueStatusResponse | JSONResponse:
    """Get message and consumer counts for the relay's queues."""
    names = [*config.consumed_queues, config.EMAILS_DEAD_LETTER_QUEUE]
    try:
        counts = await context.broker.get_queue_stats(names)
    except BrokerConnectionError as e:
        logger.error(f"Failed to get queue status: {e}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error obteniendo estado de las colas",
            str(e),
        )

    return QueueStatusResponse.model_validate({"queues": counts, "status": "active"})


@app.post(
    "/test-email",
    response_model=TestEmailResponse,
    responses={500: {"model": ErrorResponse, "description": "Delivery failed"}},
)
async def send_test_email(
    context: Annotated[ServiceContext, Depends(get_context)],
    request: TestEmailRequest | None = None,
) -> TestEmailResponse | JSONResponse:
    """Send a test email through the dispatcher."""
    request = request or TestEmailRequest()

    try:
        notification = EmailNotification(
            recipient=request.to,
            subject=request.subject,
            body=request.body,
            type=request.type,
        )
    except ValidationError as e:
        logger.warning(f"Rejected test email to {request.to!r}: {e.errors()[0]['msg']}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error enviando email de prueba",
            e.errors()[0]["msg"],
        )

    try:
        result = await context.dispatcher.dispatch(notification)
    except Exception as e:
        logger.error(f"Test email to {request.to} failed: {e}", exc_info=True)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error enviando email de prueba",
            "Failed to compose email",
        )

    if not result.success:
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error enviando email de prueba",
            result.error,
        )

    logger.info(f"Test email sent to {request.to}: {result.message_id}")
    return TestEmailResponse(
        message="Email de prueba enviado exitosamente",
        message_id=result.message_id,
    )


@app.post(
    "/simulate-payment",
    response_model=SimulatePaymentResponse,
    responses={
        400: {"model": ErrorResponse, "description": "orderId missing"},
        500: {"model": ErrorResponse, "description": "Broker error"},
    },
)
async def simulate_payment(
    request: SimulatePaymentRequest,
    config: Annotated[RelayConfig, Depends(get_config)],
    context: Annotated[ServiceContext, Depends(get_context)],
) -> SimulatePaymentResponse | JSONResponse:
    """Publish a payment event to the payment queue."""
    if not request.order_id:
        return _error(status.HTTP_400_BAD_REQUEST, "orderId es requerido")

    event = PaymentEvent(
        order_id=request.order_id,
        user_email=request.user_email or f"user{request.order_id}@example.com",
        amount=request.amount if request.amount is not None else Decimal("50.00"),
        status=request.status or "completed",
    )

    try:
        await context.broker.publish(config.PAYMENT_QUEUE, event.to_message())
    except BrokerConnectionError as e:
        logger.error(f"Failed to publish simulated payment: {e}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error simulando pago",
            str(e),
        )

    logger.info(f"Simulated payment event published for order {event.order_id}")
    return SimulatePaymentResponse(
        message="Evento de pago simulado enviado",
        event=event.model_dump(mode="json", by_alias=True),
    )


# =============================================================================
# Entry Point
# =============================================================================
def run():
    """Run the API server."""
    import uvicorn

    logger.info(
        f"Starting {_config.SERVICE_NAME} on {_config.API_HOST}:{_config.API_PORT}"
    )
    uvicorn.run(
        "notification_relay.api.main:app",
        host=_config.API_HOST,
        port=_config.API_PORT,
        reload=False,
    )


if __name__ == "__main__":
    run()
