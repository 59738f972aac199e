from decimal import Decimal
from math import ceil
from typing import Optional

from sqlalchemy import String, case, cast, func, or_, select
from sqlalchemy.orm import Session

from poscrm.application.errors import AuthorizationError, NotFoundError, StockError, ValidationError
from poscrm.application.ledger import DebtLedger, ORDER_CREATED, totals_by_currency
from poscrm.application.order_edit import OrderItemsReplacement, lock_products
from poscrm.application.schemas import OrderCreate, OrderUpdate
from poscrm.core.logging_config import get_logger
from poscrm.core_settings import get_settings
from poscrm.domain.models import Order, OrderItem, Product, User, SMARTPHONES
from poscrm.infrastructure.db import unit_of_work

logger = get_logger(__name__)

SORT_FIELDS = {
    "created_at": Order.created_at,
    "total_amount": Order.total_amount,
    "status": Order.status,
}

_line_total = OrderItem.quantity * OrderItem.price


def _money(value) -> float:
    return float(value or 0)


def _per_currency_totals():
    """Subqueries of EUR (smartphone) and MKD (everything else) line totals per order."""
    eur = (
        select(OrderItem.order_id, func.sum(_line_total).label("eur_total"))
        .join(Product, OrderItem.product_id == Product.id)
        .where(Product.category == SMARTPHONES)
        .group_by(OrderItem.order_id)
        .subquery()
    )
    mkd = (
        select(OrderItem.order_id, func.sum(_line_total).label("mkd_total"))
        .join(Product, OrderItem.product_id == Product.id)
        .where(Product.category != SMARTPHONES)
        .group_by(OrderItem.order_id)
        .subquery()
    )
    return eur, mkd


class OrderService:
    def __init__(self, db: Session, ledger_required: Optional[bool] = None):
        self.db = db
        if ledger_required is None:
            ledger_required = get_settings().LEDGER_WRITES_REQUIRED
        self.ledger_required = ledger_required

    # --- reads ------------------------------------------------------------------

    def get_model(self, order_id: int) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def list_orders(
        self,
        actor: User,
        page: int = 1,
        limit: int = 10,
        status: str = "",
        search: str = "",
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict:
        eur, mkd = _per_currency_totals()
        filters = []
        if not actor.is_admin:
            filters.append(Order.client_id == actor.id)
        if status:
            filters.append(Order.status == status)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            filters.append(or_(
                cast(Order.id, String).ilike(pattern),
                User.name.ilike(pattern),
                User.email.ilike(pattern),
            ))

        sort_column = SORT_FIELDS.get(sort_by, Order.created_at)
        ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()

        base = (
            select(
                Order,
                User.name.label("client_name"),
                User.email.label("client_email"),
                func.coalesce(eur.c.eur_total, 0).label("eur_total"),
                func.coalesce(mkd.c.mkd_total, 0).label("mkd_total"),
            )
            .outerjoin(User, Order.client_id == User.id)
            .outerjoin(eur, eur.c.order_id == Order.id)
            .outerjoin(mkd, mkd.c.order_id == Order.id)
            .where(*filters)
        )
        total_orders = self.db.scalar(select(func.count()).select_from(base.subquery()))
        rows = self.db.execute(
            base.order_by(ordering, Order.id.desc()).limit(limit).offset((page - 1) * limit)
        ).all()

        total_pages = ceil(total_orders / limit) if limit else 0
        return {
            "orders": [
                {
                    **self._summary(order),
                    "client_name": client_name,
                    "client_email": client_email,
                    "eur_total": _money(eur_total),
                    "mkd_total": _money(mkd_total),
                }
                for order, client_name, client_email, eur_total, mkd_total in rows
            ],
            "pagination": {
                "currentPage": page,
                "totalPages": total_pages,
                "totalOrders": total_orders,
                "hasNext": page < total_pages,
                "hasPrev": page > 1,
            },
        }

    def get(self, order_id: int, actor: User) -> dict:
        order = self.get_model(order_id)
        # Clients get a 404 for other people's orders, not a 403
        if order is None or (not actor.is_admin and order.client_id != actor.id):
            raise NotFoundError("Order not found")

        client = self.db.get(User, order.client_id) if order.client_id is not None else None
        rows = self.db.execute(
            select(OrderItem, Product)
            .join(Product, OrderItem.product_id == Product.id)
            .where(OrderItem.order_id == order.id)
            .order_by(OrderItem.id)
        ).all()
        return {
            **self._summary(order),
            "client_name": client.name if client else None,
            "client_email": client.email if client else None,
            "items": [
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "description": product.description,
                    "category": product.category,
                    "subcategory": product.subcategory,
                    "model": product.model,
                    "storage_gb": product.storage_gb,
                    "color": product.color,
                    "currency": product.currency,
                    "quantity": item.quantity,
                    "price": _money(item.price),
                }
                for item, product in rows
            ],
        }

    def revenue(self, client_id: Optional[int] = None) -> dict:
        """Line totals of completed orders, split by currency. Independent of the debt ledger."""
        stmt = (
            select(
                func.coalesce(func.sum(case((Product.category == SMARTPHONES, _line_total), else_=0)), 0),
                func.coalesce(func.sum(case((Product.category != SMARTPHONES, _line_total), else_=0)), 0),
            )
            .select_from(Order)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .join(Product, OrderItem.product_id == Product.id)
            .where(Order.status == "completed")
        )
        if client_id is not None:
            stmt = stmt.where(Order.client_id == client_id)
        eur_revenue, mkd_revenue = self.db.execute(stmt).one()
        return {
            "eurRevenue": _money(eur_revenue),
            "mkdRevenue": _money(mkd_revenue),
            "totalRevenue": _money(eur_revenue) + _money(mkd_revenue),
        }

    # --- writes -----------------------------------------------------------------

    def create(self, actor: User, data: OrderCreate) -> Order:
        client_id: Optional[int] = actor.id
        guest = None

        if data.client_id is not None and data.client_id != actor.id:
            if not actor.is_admin:
                raise AuthorizationError("Only admins can assign orders to other clients")
            if self.db.get(User, data.client_id) is None:
                raise ValidationError(f"Client {data.client_id} not found")
            client_id = data.client_id

        if data.guest_name:
            if not actor.is_admin:
                raise AuthorizationError("Only admins can create guest orders")
            client_id = None
            guest = {
                "guest_name": data.guest_name,
                "guest_email": data.guest_email or "",
                "guest_phone": data.guest_phone or None,
            }

        with unit_of_work(self.db):
            products = lock_products(self.db, [line.product_id for line in data.items])

            # Validate every line before touching anything
            remaining = {pid: p.stock_quantity for pid, p in products.items()}
            for line in data.items:
                product = products.get(line.product_id)
                if product is None:
                    raise ValidationError(f"Product {line.product_id} not found")
                if product.stock_status == "disabled":
                    raise StockError(f"Product {product.name} is not available")
                if remaining[product.id] < line.quantity:
                    raise StockError(f"Insufficient stock for {product.name}")
                remaining[product.id] -= line.quantity

            total_amount = sum(
                (Decimal(products[line.product_id].price) * line.quantity for line in data.items),
                Decimal("0"),
            )
            order = Order(
                client_id=client_id,
                status=data.status,
                original_status=data.status,
                total_amount=total_amount,
                **(guest or {}),
            )
            self.db.add(order)
            self.db.flush()

            for line in data.items:
                product = products[line.product_id]
                order.items.append(
                    OrderItem(product_id=product.id, quantity=line.quantity, price=product.price)
                )
                product.stock_quantity -= line.quantity
            self.db.flush()

            # Only a known client with an unpaid order owes anything
            if client_id is not None and data.status == "pending":
                totals = totals_by_currency(
                    (products[line.product_id].currency, Decimal(products[line.product_id].price) * line.quantity)
                    for line in data.items
                )
                DebtLedger(self.db).append_per_currency(
                    client_id, totals, sign=-1,
                    adjustment_type=ORDER_CREATED,
                    created_by=actor.id,
                    notes=f"Debt increase from pending order #{order.id}",
                )

        logger.info(
            f"Order #{order.id} created",
            extra={'extra_fields': {
                'order_id': order.id,
                'client_id': client_id,
                'guest': guest is not None,
                'status': order.status,
                'total_amount': str(order.total_amount),
            }}
        )
        return order

    def update(self, order_id: int, actor: User, data: OrderUpdate) -> dict:
        with unit_of_work(self.db):
            order = self.db.get(Order, order_id, with_for_update=True)
            if order is None:
                raise NotFoundError("Order not found")
            if data.items is not None:
                OrderItemsReplacement(self.db, ledger_required=self.ledger_required).run(
                    order, data.items, actor_id=actor.id
                )
            if data.status is not None:
                order.status = data.status

        return {
            "message": "Order updated successfully",
            "orderId": order.id,
            "status": data.status or "unchanged",
            "itemsUpdated": data.items is not None,
        }

    def update_status(self, order_id: int, status: str) -> Order:
        with unit_of_work(self.db):
            order = self.db.get(Order, order_id, with_for_update=True)
            if order is None:
                raise NotFoundError("Order not found")
            order.status = status
        logger.info(f"Order #{order_id} status set to {status}")
        return order

    def delete(self, order_id: int) -> None:
        """Remove an order and its items. Stock and ledger are left as they are."""
        with unit_of_work(self.db):
            order = self.get_model(order_id)
            if order is None:
                raise NotFoundError("Order not found")
            self.db.delete(order)
        logger.info(f"Order #{order_id} deleted")

    # --- mapping ----------------------------------------------------------------

    @staticmethod
    def _summary(order: Order) -> dict:
        return {
            "id": order.id,
            "client_id": order.client_id,
            "status": order.status,
            "original_status": order.original_status,
            "total_amount": _money(order.total_amount),
            "created_at": order.created_at.isoformat() if order.created_at else None,
            "guest_name": order.guest_name,
            "guest_email": order.guest_email,
            "guest_phone": order.guest_phone,
        }
