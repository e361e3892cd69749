from .database import Database
from .models import (
    Base, Book, Author, UserBook, UserBookCategory, Source
)

__all__ = [
    'Database',
    'Base',
    'Book',
    'Author',
    'UserBook',
    'UserBookCategory',
    'Source'
]
