"""API routes for orders and checkout."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status

from storefront.api.dependencies import get_caller, get_services, require_caller
from storefront.models.order import OrderInDB
from storefront.models.request import (
    AdminOrderCreate,
    CancelRequest,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    CreatePaymentIntentRequest,
    ErrorResponse,
    HealthResponse,
    NotesUpdateRequest,
    OrderListResponse,
    OrderStatsResponse,
    PaymentConfigResponse,
    PaymentIntentResponse,
    StatusUpdateRequest,
)
from storefront.services import Services
from storefront.services.access import Caller
from storefront.services.order_query import OrderListParams

logger = logging.getLogger(__name__)

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (401, 403, 404, 409, 422)
}

router = APIRouter(responses=ERROR_RESPONSES)


@router.get("/health", response_model=HealthResponse)
async def health_check(services: Services = Depends(get_services)) -> HealthResponse:
    """Health check endpoint."""
    mongodb_status = "connected" if services.db.is_connected else "disconnected"
    return HealthResponse(
        status="healthy" if mongodb_status == "connected" else "degraded",
        version=services.settings.app_version,
        services={
            "mongodb": mongodb_status,
            "payments": "configured" if services.settings.stripe_secret_key else "not_configured",
            "smtp": "configured" if services.notifications.is_configured else "not_configured",
        },
    )


# Orders


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    params: Annotated[OrderListParams, Query()],
    caller: Caller = Depends(require_caller),
    services: Services = Depends(get_services),
) -> OrderListResponse:
    """List orders. Customers only ever see their own orders."""
    return await services.orders.list_orders(params, caller)


@router.post("/orders", response_model=OrderInDB, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: AdminOrderCreate,
    caller: Caller = Depends(require_caller),
    services: Services = Depends(get_services),
) -> OrderInDB:
    """Create a pending order on behalf of a customer (admin only)."""
    return await services.orders.admin_create_order(request, caller)


@router.get("/orders/stats/summary", response_model=OrderStatsResponse)
async def order_stats(
    caller: Caller = Depends(require_caller),
    services: Services = Depends(get_services),
) -> OrderStatsResponse:
    """Order counts and revenue by status (admin only)."""
    return await services.orders.stats(caller)


@router.get("/orders/number/{order_number}")
async def get_order_by_number(
    order_number: str,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    """Public order tracking. Payment references are never included."""
    return await services.orders.get_public_order(order_number)


@router.get("/orders/{order_id}", response_model=OrderInDB)
async def get_order(
    order_id: str,
    caller: Caller = Depends(require_caller),
    services: Services = Depends(get_services),
) -> OrderInDB:
    """Get one order; owners, admins, or anyone for guest orders."""
    return await services.orders.get_order(order_id, caller)


@router.patch("/orders/{order_id}/status", response_model=OrderInDB)
async def update_order_status(
    order_id: str,
    request: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(require_caller),
    services: Services = Depends(get_services),
) -> OrderInDB:
    """Move an order to a new status (admin only)."""
    order = await services.orders.update_status(
        order_id,
        request.status,
        caller,
        message=request.message,
        tracking=request.tracking,
    )
    background_tasks.add_task(services.notifications.notify_status_change, order)
    return order


@router.patch("/orders/{order_id}/cancel", response_model=OrderInDB)
async def cancel_order(
    order_id: str,
    background_tasks: BackgroundTasks,
    request: CancelRequest | None = None,
    caller: Caller = Depends(require_caller),
    services: Services = Depends(get_services),
) -> OrderInDB:
    """Cancel a pending or confirmed order (owner or admin)."""
    reason = request.reason if request else None
    order = await services.orders.cancel_order(order_id, caller, reason=reason)
    background_tasks.add_task(services.notifications.notify_status_change, order)
    return order


@router.patch("/orders/{order_id}/notes", response_model=OrderInDB)
async def update_order_notes(
    order_id: str,
    request: NotesUpdateRequest,
    caller: Caller = Depends(require_caller),
    services: Services = Depends(get_services),
) -> OrderInDB:
    """Edit the free-text notes of an order (owner or admin)."""
    return await services.orders.update_notes(order_id, request.notes, caller)


@router.get(
    "/orders/{order_id}/invoice",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_invoice(
    order_id: str,
    caller: Caller = Depends(require_caller),
    services: Services = Depends(get_services),
) -> Response:
    """Download the order invoice as PDF."""
    filename, pdf = await services.orders.render_invoice(order_id, caller, services.renderer)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )


# Payments


@router.get("/payments/config", response_model=PaymentConfigResponse)
async def payment_config(services: Services = Depends(get_services)) -> PaymentConfigResponse:
    """Publishable payment configuration for the front end."""
    return PaymentConfigResponse(
        publishableKey=services.settings.stripe_publishable_key,
        hasSecretKey=bool(services.settings.stripe_secret_key),
    )


@router.post("/payments/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    request: CreatePaymentIntentRequest,
    services: Services = Depends(get_services),
) -> PaymentIntentResponse:
    """Open a payment for the cart; the amount is computed server-side."""
    return await services.checkout.create_payment_intent(request)


@router.post("/payments/confirm-payment", response_model=ConfirmPaymentResponse)
async def confirm_payment(
    request: ConfirmPaymentRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> ConfirmPaymentResponse:
    """Create the order for a payment the processor reports as succeeded.

    Signed-in callers (``X-User-ID``) own the created order; otherwise it
    is a guest order, trackable by its number.
    """
    order, created = await services.checkout.confirm_payment(request, caller)
    if created:
        response.status_code = status.HTTP_201_CREATED
        background_tasks.add_task(services.notifications.notify_new_order, order)
    return ConfirmPaymentResponse(
        message="Payment confirmed and order created" if created else "Payment already confirmed",
        created=created,
        order=order,
    )
