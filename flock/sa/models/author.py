# flock/sa/models/author.py
import uuid
from sqlalchemy import String, Text, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

class Author(Base, TimestampMixin):
    __tablename__ = 'Authors'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    olid: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True, default='')
    subjects: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Relationships
    books = relationship('Book', back_populates='author')

    __table_args__ = (
        # Search indexes
        Index('idx_author_name', 'name'),
    )

    def __repr__(self) -> str:
        return f"<Author {self.id} olid={self.olid} name={self.name!r}>"
