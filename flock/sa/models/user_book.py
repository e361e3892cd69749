# flock/sa/models/user_book.py
import uuid
from enum import Enum
from sqlalchemy import String, ForeignKey, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

class UserBookCategory(str, Enum):
    CURRENTLY_READING = "CURRENTLY_READING"
    WANT_TO_READ = "WANT_TO_READ"
    FAVORITE = "FAVORITE"

class UserBook(Base, TimestampMixin):
    """A user's shelf entry. Owned by the API; the pipelines only read it and
    repoint bookId when books are merged."""
    __tablename__ = 'UserBooks'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column('userId', String(36), nullable=False)
    book_id: Mapped[str] = mapped_column('bookId', ForeignKey('Books.id'), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default=UserBookCategory.WANT_TO_READ.value)

    # Relationships
    book = relationship('Book', back_populates='user_books')

    __table_args__ = (
        Index('idx_user_book_user', 'userId'),
        Index('idx_user_book_book', 'bookId'),
    )
