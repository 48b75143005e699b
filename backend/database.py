# backend/database.py
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv

from config import settings
from utils.errors import AccessControlError, TransientStoreError

load_dotenv()

logger = logging.getLogger(__name__)

# 1. Address from the environment (deployment) or the local SQLite default
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. SQLAlchemy requires postgresql:// rather than the legacy postgres:// scheme
if SQLALCHEMY_DATABASE_URL and SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

# 3. Driver specific connection arguments
if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {"check_same_thread": False} # SQLite only
else:
    connect_args = {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args, pool_pre_ping=True
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# SQLite ignores FOREIGN KEY clauses unless asked; role_modules cascades depend on it
@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    # Register every model on Base.metadata before creating tables
    import models.role  # noqa: F401
    import models.users  # noqa: F401
    import models.log  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def transaction(db, action: str):
    """Commit on success; roll back on any failure.

    Driver level failures (lost connection, timeout, lock wait) surface as
    ``TransientStoreError`` with the original message attached. Integrity
    errors are re-raised untouched so the owning service can translate them.
    """
    try:
        yield db
        db.commit()
    except (AccessControlError, IntegrityError):
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Store failure while trying to %s", action)
        original = getattr(e, "orig", None) or e
        raise TransientStoreError(f"Failed to {action}", details={"error": str(original)}) from e
    except Exception:
        db.rollback()
        raise
