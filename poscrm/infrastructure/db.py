from contextlib import contextmanager
from typing import Iterator
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from poscrm.core_settings import get_settings
from poscrm.domain.models import Base
from poscrm.application.errors import PersistenceError, PosError
from poscrm.core.logging_config import get_logger

logger = get_logger(__name__)

settings = get_settings()
engine = create_engine(settings.database_url, echo=False, future=True, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or roll all of it back.

    Business errors pass through unchanged; storage errors are logged and
    re-raised as PersistenceError so the caller never sees driver detail.
    """
    try:
        yield db
        db.commit()
    except PosError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Transaction rolled back", exc_info=True,
                     extra={'extra_fields': {'error': str(e)}})
        raise PersistenceError() from e
    except Exception:
        db.rollback()
        raise

def init_models():
    Base.metadata.create_all(engine)
