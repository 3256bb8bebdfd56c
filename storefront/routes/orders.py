# storefront/routes/orders.py
import logging
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from storefront.config import Settings, get_settings
from storefront.database import get_orders_db, get_products_db, get_users_db
from storefront.responses import ApiResponse, success_response
from storefront.schemas.common import paginate
from storefront.schemas.order import OrderCreatePayload, OrderOut, OrdersPage, OrderStatusPatch, OrderSummary
from storefront.services import orders as orders_service
from storefront.services import users as users_service
from storefront.utils.audit import client_ip, write_log
from storefront.utils.identity import Identity, get_current_identity, role_required

router = APIRouter(prefix="/api/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


# List the caller's orders, newest first
@router.get("", response_model=ApiResponse[OrdersPage])
def list_my_orders(
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_orders_db),
    identity: Identity = Depends(get_current_identity),
):
    rows, total = orders_service.list_user_orders(db, identity.user_id, limit=limit, page=page)
    out = OrdersPage(orders=[OrderOut.model_validate(o) for o in rows], pagination=paginate(page, limit, total))
    return success_response(out)


# Convert the caller's cart into an order
@router.post("", response_model=ApiResponse[OrderOut], status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    orders_db: Session = Depends(get_orders_db),
    products_db: Session = Depends(get_products_db),
    users_db: Session = Depends(get_users_db),
    settings: Settings = Depends(get_settings),
    identity: Identity = Depends(get_current_identity),
):
    if payload.shipping_address_id:
        shipping = users_service.address_for_checkout(users_db, identity.user_id, payload.shipping_address_id)
    else:
        shipping = payload.shipping_address

    try:
        order = orders_service.create_order(
            orders_db,
            products_db,
            user_id=identity.user_id,
            payload=payload,
            shipping_address=shipping,
            currency=settings.DEFAULT_CURRENCY,
        )
    except Exception as e:
        write_log(
            users_db, user_id=identity.user_id, action="ORDER_CREATE", resource="orders", status="FAIL",
            ip=client_ip(request), meta={"reason": str(e)},
        )
        raise

    write_log(
        users_db, user_id=identity.user_id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
        ip=client_ip(request),
        meta={"order_id": order.id, "order_number": order.order_number, "total": order.total_amount},
    )
    return success_response(OrderOut.model_validate(order), message="Order created successfully",
                            status_code=status.HTTP_201_CREATED)


@router.get("/summary", response_model=ApiResponse[OrderSummary])
def get_order_summary(
    db: Session = Depends(get_orders_db),
    identity: Identity = Depends(get_current_identity),
):
    return success_response(OrderSummary(**orders_service.order_summary(db, identity.user_id)))


# Look up an order by its customer-facing number (ORD-YYYYMMDD-XXXXXXXX)
@router.get("/number/{order_number}", response_model=ApiResponse[OrderOut])
def get_order_by_number(
    order_number: str,
    db: Session = Depends(get_orders_db),
    identity: Identity = Depends(get_current_identity),
):
    order = orders_service.get_order_by_number(db, order_number, identity.user_id)
    return success_response(OrderOut.model_validate(order))


# Get details of a specific order owned by the caller
@router.get("/{order_id}", response_model=ApiResponse[OrderOut])
def get_order_detail(
    order_id: str,
    db: Session = Depends(get_orders_db),
    identity: Identity = Depends(get_current_identity),
):
    order = orders_service.get_order(db, order_id, identity.user_id)
    return success_response(OrderOut.model_validate(order))


@router.post("/{order_id}/cancel", response_model=ApiResponse[OrderOut])
def cancel_order(
    order_id: str,
    request: Request,
    db: Session = Depends(get_orders_db),
    users_db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    order = orders_service.cancel_order(db, order_id, identity.user_id)
    write_log(users_db, user_id=identity.user_id, action="ORDER_CANCEL", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id})
    return success_response(OrderOut.model_validate(order), message="Order cancelled")


# Move an order along its lifecycle (staff only)
@router.patch("/{order_id}/status", response_model=ApiResponse[OrderOut])
def update_order_status(
    order_id: str,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_orders_db),
    users_db: Session = Depends(get_users_db),
    identity: Identity = Depends(role_required("admin")),
):
    order = orders_service.update_order_status(db, order_id, payload.status)
    write_log(users_db, user_id=identity.user_id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "new": order.status})
    return success_response(OrderOut.model_validate(order))
