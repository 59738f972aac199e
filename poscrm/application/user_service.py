from math import ceil
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from poscrm.application.errors import AuthorizationError, NotFoundError, ValidationError, AuthenticationError
from poscrm.application.ledger import DebtLedger
from poscrm.application.order_service import OrderService
from poscrm.application.schemas import ClientCreate, DebtAdjustmentCreate, UserRead, UserUpdate
from poscrm.application.security import verify_password
from poscrm.core.logging_config import get_logger
from poscrm.domain.models import Order, OrderItem, Product, User
from poscrm.infrastructure.db import unit_of_work

logger = get_logger(__name__)

PROFILE_ORDER_LIMIT = 50


def user_dict(user: User) -> dict:
    return UserRead.model_validate(user).model_dump(mode="json")


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def authenticate(self, email: str, password: str) -> User:
        user = self.db.scalar(select(User).where(User.email == email))
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login", extra={'extra_fields': {'email': email}})
            raise AuthenticationError("Invalid credentials")
        return user

    def get(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get_for(self, actor: User, user_id: int) -> User:
        if not actor.is_admin and actor.id != user_id:
            raise AuthorizationError("Access denied")
        return self.get(user_id)

    def list_users(self, page: int = 1, limit: int = 10, search: str = "", role: str = "") -> dict:
        filters = []
        if search:
            filters.append(User.name.ilike(f"%{search}%"))
        if role:
            filters.append(User.role == role)

        total_users = self.db.scalar(select(func.count(User.id)).where(*filters))
        users = self.db.scalars(
            select(User).where(*filters)
            .order_by(User.created_at.desc(), User.id.desc())
            .limit(limit).offset((page - 1) * limit)
        )
        total_pages = ceil(total_users / limit) if limit else 0
        return {
            "users": [user_dict(u) for u in users],
            "pagination": {
                "currentPage": page,
                "totalPages": total_pages,
                "totalUsers": total_users,
                "hasNext": page < total_pages,
                "hasPrev": page > 1,
            },
        }

    def clients(self) -> list[dict]:
        rows = self.db.scalars(select(User).where(User.role == "client").order_by(User.name))
        return [{"id": u.id, "name": u.name, "email": u.email} for u in rows]

    def _ensure_email_free(self, email: Optional[str], user_id: Optional[int] = None) -> None:
        if not email:
            return
        stmt = select(User.id).where(User.email == email)
        if user_id is not None:
            stmt = stmt.where(User.id != user_id)
        if self.db.scalar(stmt) is not None:
            raise ValidationError("Email already in use")

    def create_client(self, data: ClientCreate) -> User:
        email = data.email.lower() if data.email else None
        self._ensure_email_free(email)
        with unit_of_work(self.db):
            user = User(name=data.name.strip(), phone=data.phone or None, email=email, role=data.role)
            self.db.add(user)
            self.db.flush()
        logger.info(f"Client #{user.id} created")
        return user

    def update(self, actor: User, user_id: int, data: UserUpdate) -> User:
        if not actor.is_admin and actor.id != user_id:
            raise AuthorizationError("Access denied")
        if not data.name and not data.email:
            raise ValidationError("No valid updates provided")
        user = self.get(user_id)
        email = data.email.lower() if data.email else None
        self._ensure_email_free(email, user_id)
        with unit_of_work(self.db):
            if data.name:
                user.name = data.name.strip()
            if email:
                user.email = email
        return user

    def delete(self, user_id: int) -> User:
        user = self.get(user_id)
        if user.is_admin:
            raise AuthorizationError("Cannot delete admin users")

        unpaid = self.db.scalar(
            select(func.count(Order.id)).where(Order.client_id == user_id, Order.status != "completed")
        )
        if unpaid:
            raise ValidationError(
                f"Cannot delete user '{user.name}' because they have {unpaid} unpaid order(s). "
                f"Please complete or cancel their orders first."
            )
        with unit_of_work(self.db):
            self.db.delete(user)
        logger.info(f"User #{user_id} deleted")
        return user

    # --- debt ---------------------------------------------------------------------

    def adjust_debt(self, actor: User, user_id: int, data: DebtAdjustmentCreate) -> dict:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can adjust debt")
        self.get(user_id)
        with unit_of_work(self.db):
            DebtLedger(self.db).append(
                user_id=user_id,
                amount=data.debt,
                currency=data.currency,
                adjustment_type=data.adjustment_type,
                created_by=actor.id,
                notes=data.notes,
            )
        return {
            "message": "Debt updated successfully",
            "userId": user_id,
            "debt": float(data.debt),
            "adjustment_type": data.adjustment_type,
            "currency": data.currency,
        }

    def debt(self, actor: User, user_id: int) -> dict:
        self.get_for(actor, user_id)
        return {"userId": user_id, **DebtLedger(self.db).balances(user_id).to_dict()}

    def profile(self, user_id: int) -> dict:
        """User details, recent orders with items, and the financial summary."""
        user = self.get(user_id)

        recent = list(self.db.scalars(
            select(Order).where(Order.client_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(PROFILE_ORDER_LIMIT)
        ))
        items_by_order: dict[int, list[dict]] = {o.id: [] for o in recent}
        if recent:
            rows = self.db.execute(
                select(OrderItem.order_id, OrderItem.quantity, OrderItem.price, Product.name, Product.category)
                .join(Product, OrderItem.product_id == Product.id)
                .where(OrderItem.order_id.in_(list(items_by_order)))
                .order_by(OrderItem.id)
            ).all()
            for order_id, quantity, price, product_name, category in rows:
                items_by_order[order_id].append({
                    "quantity": quantity,
                    "price": float(price),
                    "product_name": product_name,
                    "category": category,
                })

        counts = dict(self.db.execute(
            select(Order.status, func.count(Order.id))
            .where(Order.client_id == user_id)
            .group_by(Order.status)
        ).all())
        total_paid = self.db.scalar(
            select(func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.client_id == user_id, Order.status == "completed")
        )
        revenue = OrderService(self.db).revenue(client_id=user_id)
        balance = DebtLedger(self.db).balances(user_id)

        return {
            "user": user_dict(user),
            "orders": [
                {**OrderService._summary(o), "items": items_by_order[o.id]}
                for o in recent
            ],
            "financialSummary": {
                "totalPaid": float(total_paid or 0),
                "eurRevenue": revenue["eurRevenue"],
                "mkdRevenue": revenue["mkdRevenue"],
                **balance.to_dict(),
                "totalOrders": sum(counts.values()),
                "completedOrders": counts.get("completed", 0),
                "pendingOrders": counts.get("pending", 0),
                "shippedOrders": counts.get("shipped", 0),
            },
        }
