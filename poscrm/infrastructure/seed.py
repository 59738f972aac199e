"""Default rows for an empty database: one admin account and two sample products."""
from decimal import Decimal
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from poscrm.application.security import hash_password
from poscrm.core.logging_config import get_logger
from poscrm.core_settings import Settings
from poscrm.domain.models import Product, User
from poscrm.infrastructure.db import unit_of_work

logger = get_logger(__name__)

SAMPLE_PRODUCTS = [
    {
        "name": "iPhone 15 Pro",
        "description": "Latest iPhone with advanced features",
        "price": Decimal("999.99"),
        "stock_quantity": 50,
        "category": "smartphones",
        "subcategory": "iPhone",
    },
    {
        "name": "AirPods Pro",
        "description": "Wireless earbuds with noise cancellation",
        "price": Decimal("249.99"),
        "stock_quantity": 100,
        "category": "accessories",
        "subcategory": "headphones",
    },
]

def seed_defaults(db: Session, settings: Settings) -> dict:
    created = {"admin": False, "products": 0}
    with unit_of_work(db):
        admin_email = settings.ADMIN_EMAIL.lower()
        if db.scalar(select(User.id).where(User.email == admin_email)) is None:
            db.add(User(
                name="Admin User",
                email=admin_email,
                password_hash=hash_password(settings.ADMIN_PASSWORD),
                role="admin",
            ))
            created["admin"] = True

        if not db.scalar(select(func.count(Product.id))):
            for row in SAMPLE_PRODUCTS:
                db.add(Product(**row))
            created["products"] = len(SAMPLE_PRODUCTS)

    logger.info("Default data checked", extra={'extra_fields': created})
    return created
