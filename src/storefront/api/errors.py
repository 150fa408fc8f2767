"""Map domain exceptions to HTTP responses.

Protean's own handlers cover ``ValidationError`` (400) and
``ObjectNotFoundError`` (404); the storefront exceptions are added on top.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.errors import (
    InvalidWebhookPayload,
    InvalidWebhookSignature,
    NotAuthorizedError,
    PaymentGatewayError,
    UnavailableItemsError,
)

logger = structlog.get_logger(__name__)


async def _not_authorized(request: Request, exc: NotAuthorizedError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": exc.message})


async def _unavailable_items(request: Request, exc: UnavailableItemsError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"error": "Some items in your cart are unavailable", "unavailable_items": exc.lines},
    )


async def _payment_gateway(request: Request, exc: PaymentGatewayError) -> JSONResponse:
    logger.error("Payment gateway error", operation=exc.operation, reason=exc.reason, path=request.url.path)
    return JSONResponse(status_code=502, content={"error": "Payment service unavailable, please retry"})


async def _invalid_signature(request: Request, exc: InvalidWebhookSignature) -> JSONResponse:
    logger.warning("Webhook rejected", reason=exc.reason)
    return JSONResponse(status_code=400, content={"error": "Invalid webhook signature"})


async def _invalid_payload(request: Request, exc: InvalidWebhookPayload) -> JSONResponse:
    logger.warning("Webhook rejected", reason=exc.reason)
    return JSONResponse(status_code=400, content={"error": "Malformed webhook payload"})


def register_storefront_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(NotAuthorizedError, _not_authorized)
    app.add_exception_handler(UnavailableItemsError, _unavailable_items)
    app.add_exception_handler(PaymentGatewayError, _payment_gateway)
    app.add_exception_handler(InvalidWebhookSignature, _invalid_signature)
    app.add_exception_handler(InvalidWebhookPayload, _invalid_payload)
