import os

# Must be set before poscrm reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["SEED_DEFAULTS"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from poscrm.application.security import create_access_token, hash_password
from poscrm.domain.models import Base, Product, User
from poscrm.infrastructure.db import get_db
from poscrm.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT and rollback to behave
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def admin(db):
    user = User(id=1, name="Admin User", email="admin@poscrm.com",
                password_hash=hash_password("Admin@2024"), role="admin")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def client_user(db):
    user = User(id=7, name="Marko Petrov", email="marko@example.com", phone="070123456", role="client")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_client(db):
    user = User(id=8, name="Ana Stojanova", email="ana@example.com", role="client")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def phone(db):
    product = Product(id=1, name="Galaxy S24", price=Decimal("500.00"), category="smartphones",
                      stock_quantity=10, stock_status="enabled")
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def charger(db):
    product = Product(id=2, name="USB-C Charger", price=Decimal("50.00"), category="accessories",
                      stock_quantity=20, stock_status="enabled")
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def api(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
