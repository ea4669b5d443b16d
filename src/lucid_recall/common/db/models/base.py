# declarative base shared by every table in the main db
from datetime import datetime, timezone
from sqlalchemy.orm import DeclarativeBase

class MainDB_Base(DeclarativeBase):
    """
    Base class for all main db ORM models.
    Import every model module before calling MainDB_Base.metadata.create_all().
    """
    pass

def utc_now() -> datetime:
    """Timezone-aware UTC timestamp used as the default for every time column."""
    return datetime.now(timezone.utc)
