# flock/sa/models/base.py
from datetime import datetime, UTC
from enum import Enum
from sqlalchemy.orm import DeclarativeBase, mapped_column, Mapped
from sqlalchemy import DateTime

class Base(DeclarativeBase):
    """Base class for all models"""
    pass

class TimestampMixin:
    """Mixin to add createdAt and updatedAt columns"""
    created_at: Mapped[datetime] = mapped_column('createdAt', DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column('updatedAt', DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))

class Source(str, Enum):
    CHAT_GPT_RECOMMENDATION = "CHAT_GPT_RECOMMENDATION"  # Suggested by the LLM
    NY_TIMES = "NY_TIMES"                                # Bestseller sync
    ISBNDB = "ISBNDB"                                    # External ingestion
    OPEN_LIBRARY = "OPEN_LIBRARY"                        # External ingestion
    FLOCK = "FLOCK"                                      # Created by the app itself

# Ingestion-source ranking stored on Books.priority
PRIORITY_NY_TIMES = 4
PRIORITY_RECOMMENDATION = 0
