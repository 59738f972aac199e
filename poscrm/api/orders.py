from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from poscrm.api.deps import get_current_user, require_admin
from poscrm.application.invoice import render_invoice
from poscrm.application.order_service import OrderService
from poscrm.application.schemas import OrderCreate, OrderStatusUpdate, OrderUpdate
from poscrm.core.logging_config import get_logger
from poscrm.core_settings import get_settings
from poscrm.domain.models import User
from poscrm.infrastructure.db import get_db

router = APIRouter(prefix="/api/orders", tags=["orders"])

logger = get_logger(__name__)

@router.get("")
def list_orders(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: str = "",
    search: str = "",
    sortBy: str = "created_at",
    sortOrder: str = "desc",
):
    """Admins see every order, clients only their own."""
    return OrderService(db).list_orders(
        user, page=page, limit=limit, status=status, search=search,
        sort_by=sortBy, sort_order=sortOrder,
    )

@router.get("/revenue")
def get_revenue(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return OrderService(db).revenue()

@router.get("/{order_id}")
def get_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return OrderService(db).get(order_id, user)

@router.get("/{order_id}/invoice")
def get_invoice(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    order = OrderService(db).get(order_id, user)
    pdf = render_invoice(order, get_settings())
    logger.info(f"Invoice generated for order #{order_id}", extra={'extra_fields': {'order_id': order_id, 'bytes': len(pdf)}})
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=invoice-{order_id}.pdf"},
    )

@router.post("", status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    order = OrderService(db).create(user, payload)
    return {
        "message": "Order created successfully",
        "orderId": order.id,
        "totalAmount": float(order.total_amount),
    }

@router.put("/{order_id}")
def update_order(order_id: int, payload: OrderUpdate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return OrderService(db).update(order_id, admin, payload)

@router.put("/{order_id}/status")
def update_order_status(order_id: int, payload: OrderStatusUpdate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    order = OrderService(db).update_status(order_id, payload.status)
    return {
        "message": "Order status updated successfully",
        "orderId": order.id,
        "status": order.status,
    }

@router.delete("/{order_id}")
def delete_order(order_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    OrderService(db).delete(order_id)
    return {"message": "Order deleted successfully", "orderId": order_id}
