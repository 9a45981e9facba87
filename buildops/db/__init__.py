from buildops.db.base import Base, CaseIDMixin, IDMixin, TimestampMixin, utcnow
from buildops.db.session import SessionLocal, engine, get_db

__all__ = [
    "Base",
    "CaseIDMixin",
    "IDMixin",
    "TimestampMixin",
    "utcnow",
    "engine",
    "SessionLocal",
    "get_db",
]
