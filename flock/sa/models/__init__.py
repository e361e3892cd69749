# flock/sa/models/__init__.py
from .base import Base, TimestampMixin, Source, PRIORITY_NY_TIMES, PRIORITY_RECOMMENDATION
from .author import Author
from .book import Book
from .user_book import UserBook, UserBookCategory

__all__ = [
    'Base',
    'TimestampMixin',
    'Source',
    'PRIORITY_NY_TIMES',
    'PRIORITY_RECOMMENDATION',
    'Author',
    'Book',
    'UserBook',
    'UserBookCategory'
]
