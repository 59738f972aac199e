from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, ForeignKey, Numeric, DateTime, Integer, Text, CheckConstraint, Index, func
from decimal import Decimal
from typing import Optional
import datetime

SMARTPHONES = "smartphones"
ACCESSORIES = "accessories"
PRODUCT_CATEGORIES = (SMARTPHONES, ACCESSORIES)

EUR = "EUR"
MKD = "MKD"
CURRENCIES = (EUR, MKD)

ORDER_STATUSES = ("pending", "completed")
# Older rows may still carry these; order flows never set them
LEGACY_ORDER_STATUSES = ("approved", "shipped", "cancelled")


def currency_for_category(category: Optional[str]) -> str:
    """Smartphones are priced in EUR, everything else in MKD."""
    return EUR if category == SMARTPHONES else MKD


class Base(DeclarativeBase):
    pass

class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'client')", name="ck_users_role"),
    )
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    # Clients never log in, so they have no password
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), default="client")
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_status IN ('enabled', 'disabled')", name="ck_products_stock_status"),
        CheckConstraint("category IN ('accessories', 'smartphones')", name="ck_products_category"),
    )
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    imei: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0)
    stock_status: Mapped[str] = mapped_column(String(50), default="enabled")
    category: Mapped[str] = mapped_column(String(50), default=ACCESSORIES, index=True)
    subcategory: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    storage_gb: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, server_default=func.now())

    @property
    def currency(self) -> str:
        return currency_for_category(self.category)

class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'shipped', 'completed', 'cancelled')",
            name="ck_orders_status",
        ),
    )
    id: Mapped[int] = mapped_column(primary_key=True)
    # Plain id, no FK: orders outlive deleted clients. NULL means a guest order
    client_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    guest_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guest_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guest_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="pending", index=True)
    original_status: Mapped[str] = mapped_column(String(50), default="pending")
    # Sum of EUR and MKD lines without conversion; display only
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, server_default=func.now(), index=True)
    items: Mapped[list["OrderItem"]] = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    @property
    def is_guest(self) -> bool:
        return self.client_id is None

class OrderItem(Base):
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    # Unit price snapshot; deliberately not linked to the live product price
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    order: Mapped[Order] = relationship("Order", back_populates="items")
    product: Mapped[Product] = relationship("Product")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.price) * self.quantity

class DebtAdjustment(Base):
    """One immutable ledger entry. Negative amounts raise debt, positive amounts lower it."""
    __tablename__ = "user_debt_adjustments"
    __table_args__ = (
        CheckConstraint("currency IN ('EUR', 'MKD')", name="ck_debt_currency"),
        Index("idx_user_debt_adjustments_user_currency", "user_id", "currency"),
    )
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer)
    adjustment_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    adjustment_type: Mapped[str] = mapped_column(String(50))
    currency: Mapped[str] = mapped_column(String(10))
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, server_default=func.now())
