# flock/sa/models/book.py
import uuid
from sqlalchemy import String, Integer, Boolean, ForeignKey, Text, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

class Book(Base, TimestampMixin):
    __tablename__ = 'Books'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    isbn: Mapped[str | None] = mapped_column(String(13), unique=True, nullable=True)
    olid: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default='')
    subjects: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover: Mapped[str | None] = mapped_column(String, nullable=True)
    good_cover: Mapped[bool] = mapped_column('goodCover', Boolean, nullable=False, default=False)
    source: Mapped[str | None] = mapped_column(String(64), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    author_id: Mapped[str | None] = mapped_column('authorId', ForeignKey('Authors.id'), nullable=True)

    # Relationships
    author = relationship('Author', back_populates='books')
    user_books = relationship('UserBook', back_populates='book')

    __table_args__ = (
        Index('idx_book_name', 'name'),
        Index('idx_book_good_cover', 'goodCover'),
    )

    def __repr__(self) -> str:
        return f"<Book {self.id} olid={self.olid} isbn={self.isbn} name={self.name!r}>"
