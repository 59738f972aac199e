"""Replacing the item set of an existing order.

The edit is a fixed sequence of steps run against one session inside the
caller's unit of work. Any step that raises leaves the caller to roll back,
so stock, items, ledger entries and the total change together or not at all.

Ledger entries are computed for the whole old set and the whole new set,
never as a per-line diff: the old items are credited back to the client
(``+total``) and the new items are debited (``-total``). An edit that only
changes one quantity therefore writes two entries.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from poscrm.application.errors import NotFoundError, StockError, ValidationError
from poscrm.application.ledger import DebtLedger, ITEMS_ADDED, ITEMS_REMOVED, totals_by_currency
from poscrm.application.schemas import OrderLineReplace
from poscrm.core.logging_config import get_logger
from poscrm.domain.models import Order, OrderItem, Product, currency_for_category

logger = get_logger(__name__)


@dataclass
class CurrentLine:
    product_id: int
    quantity: int
    price: Decimal
    category: str

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.price) * self.quantity


@dataclass
class EditContext:
    order: Order
    new_lines: Sequence[OrderLineReplace]
    actor_id: int
    current: list[CurrentLine] = field(default_factory=list)
    products: dict[int, Product] = field(default_factory=dict)


def lock_products(db: Session, product_ids) -> dict[int, Product]:
    """Load products with a row lock, in id order so concurrent edits cannot deadlock."""
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    rows = db.scalars(
        select(Product).where(Product.id.in_(ids)).order_by(Product.id).with_for_update()
    )
    return {p.id: p for p in rows}


class OrderItemsReplacement:
    steps = (
        "load_current_items",
        "restore_stock",
        "credit_removed_items",
        "delete_current_items",
        "insert_new_items",
        "debit_added_items",
        "recompute_total",
    )

    def __init__(self, db: Session, ledger_required: bool = True):
        self.db = db
        self.ledger = DebtLedger(db)
        self.ledger_required = ledger_required

    def run(self, order: Order, new_lines: Sequence[OrderLineReplace], actor_id: int) -> EditContext:
        if not new_lines:
            raise ValidationError("Items must be an array with at least one item")
        ctx = EditContext(order=order, new_lines=new_lines, actor_id=actor_id)
        for name in self.steps:
            step: Callable[[EditContext], None] = getattr(self, name)
            step(ctx)
            logger.debug(f"Order #{order.id} edit step done: {name}")
        logger.info(
            f"Order #{order.id} items replaced",
            extra={'extra_fields': {
                'order_id': order.id,
                'removed_lines': len(ctx.current),
                'added_lines': len(ctx.new_lines),
                'total_amount': str(order.total_amount),
            }}
        )
        return ctx

    # --- steps ----------------------------------------------------------------

    def load_current_items(self, ctx: EditContext) -> None:
        rows = self.db.execute(
            select(OrderItem.product_id, OrderItem.quantity, OrderItem.price, Product.category)
            .join(Product, OrderItem.product_id == Product.id)
            .where(OrderItem.order_id == ctx.order.id)
            .order_by(OrderItem.id)
        ).all()
        ctx.current = [CurrentLine(*row) for row in rows]
        ctx.products = lock_products(
            self.db,
            [line.product_id for line in ctx.current] + [line.product_id for line in ctx.new_lines],
        )

    def restore_stock(self, ctx: EditContext) -> None:
        for line in ctx.current:
            ctx.products[line.product_id].stock_quantity += line.quantity
        self.db.flush()

    def credit_removed_items(self, ctx: EditContext) -> None:
        if ctx.order.client_id is None:
            return
        totals = totals_by_currency(
            (currency_for_category(line.category), line.line_total) for line in ctx.current
        )
        self.ledger.append_per_currency(
            ctx.order.client_id, totals, sign=+1,
            adjustment_type=ITEMS_REMOVED,
            created_by=ctx.actor_id,
            notes=f"Items removed from order #{ctx.order.id}",
            required=self.ledger_required,
        )

    def delete_current_items(self, ctx: EditContext) -> None:
        ctx.order.items.clear()
        self.db.flush()

    def insert_new_items(self, ctx: EditContext) -> None:
        for line in ctx.new_lines:
            product = ctx.products.get(line.product_id)
            if product is None:
                raise NotFoundError(f"Product {line.product_id} not found")
            if product.stock_quantity < line.quantity:
                raise StockError(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {product.stock_quantity}, Requested: {line.quantity}"
                )
            product.stock_quantity -= line.quantity
            ctx.order.items.append(
                OrderItem(product_id=product.id, quantity=line.quantity, price=line.price)
            )
        self.db.flush()

    def debit_added_items(self, ctx: EditContext) -> None:
        if ctx.order.client_id is None:
            return
        totals = totals_by_currency(
            (ctx.products[line.product_id].currency, Decimal(line.price) * line.quantity)
            for line in ctx.new_lines
        )
        self.ledger.append_per_currency(
            ctx.order.client_id, totals, sign=-1,
            adjustment_type=ITEMS_ADDED,
            created_by=ctx.actor_id,
            notes=f"Items added to order #{ctx.order.id}",
            required=self.ledger_required,
        )

    def recompute_total(self, ctx: EditContext) -> None:
        ctx.order.total_amount = sum(
            (Decimal(line.price) * line.quantity for line in ctx.new_lines), Decimal("0")
        )
        self.db.flush()
