# flock/sa/repositories/book.py
import logging
from typing import Optional, List
from sqlalchemy import and_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased
from ..models import Book, UserBook
from ...exceptions import StoreConflict

logger = logging.getLogger(__name__)

class BookRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, book_id: str) -> Optional[Book]:
        """Get a book by internal id"""
        return self.session.get(Book, book_id)

    def get_by_olid(self, olid: str) -> Optional[Book]:
        """Get a book by OpenLibrary work id"""
        if not olid:
            return None
        return self.session.query(Book).filter(Book.olid == olid).first()

    def get_by_isbn(self, isbn: str) -> Optional[Book]:
        """Get a book by ISBN-13"""
        if not isbn:
            return None
        return self.session.query(Book).filter(Book.isbn == isbn).first()

    def find_by_olid_or_isbn(
        self,
        olid: Optional[str] = None,
        isbn: Optional[str] = None,
        exclude_id: Optional[str] = None
    ) -> Optional[Book]:
        """Find an existing book, preferring an exact olid match over an ISBN match.

        Args:
            olid: OpenLibrary work id
            isbn: ISBN-13
            exclude_id: Book id to ignore (the candidate itself)

        Returns:
            The matching Book or None
        """
        for column, value in ((Book.olid, olid), (Book.isbn, isbn)):
            if not value:
                continue
            query = self.session.query(Book).filter(column == value)
            if exclude_id:
                query = query.filter(Book.id != exclude_id)
            book = query.first()
            if book:
                return book
        return None

    def insert(self, book: Book) -> Book:
        """Insert a new book and commit.

        Raises:
            StoreConflict: the olid or ISBN was taken by another writer
        """
        self.session.add(book)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise StoreConflict('Book', book.olid or book.isbn or book.name)
        logger.info(f"Inserted book {book.id} olid={book.olid} isbn={book.isbn} name={book.name!r}")
        return book

    def save(self, book: Book) -> Book:
        """Commit changes made to an existing book.

        Raises:
            StoreConflict: the new olid or ISBN already belongs to another row
        """
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise StoreConflict('Book', book.olid or book.isbn or book.id)
        return book

    def redirect(self, old_id: str, surviving_id: str) -> int:
        """Point every user-book at the surviving book, then delete the old row.

        Shelf entries that would duplicate one the user already has on the
        survivor are dropped instead of moved.

        Returns:
            Number of user-book rows reassigned
        """
        if old_id == surviving_id:
            return 0

        surviving_users = {
            user_id for (user_id,) in
            self.session.query(UserBook.user_id).filter(UserBook.book_id == surviving_id)
        }

        moved = 0
        for user_book in self.session.query(UserBook).filter(UserBook.book_id == old_id).all():
            if user_book.user_id in surviving_users:
                self.session.delete(user_book)
                continue
            user_book.book_id = surviving_id
            surviving_users.add(user_book.user_id)
            moved += 1

        # Flush the reassignment before the parent row goes
        self.session.flush()
        self.session.query(Book).filter(Book.id == old_id).delete(synchronize_session='fetch')
        self.session.commit()
        logger.info(f"Redirected book {old_id} -> {surviving_id} ({moved} user books moved)")
        return moved

    def mark_cover_quality(self, book_id: str, good_cover: bool) -> None:
        self.session.query(Book).filter(Book.id == book_id).update(
            {Book.good_cover: good_cover}, synchronize_session='fetch'
        )
        self.session.commit()

    def get_books_with_bad_covers(self, limit: Optional[int] = None) -> List[Book]:
        """Books whose cover failed the quality gate and that have an ISBN to retry with"""
        query = (
            self.session.query(Book)
            .filter(
                Book.good_cover.is_(False),
                Book.isbn.isnot(None),
                Book.isbn != ''
            )
            .order_by(Book.priority.desc(), Book.created_at)
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def get_shared_books(self, user_a: str, user_b: str) -> List[Book]:
        """Books both users have on a shelf (any category)"""
        other = aliased(UserBook)
        return (
            self.session.query(Book)
            .join(UserBook, UserBook.book_id == Book.id)
            .join(other, and_(other.book_id == Book.id, other.user_id == user_b))
            .filter(UserBook.user_id == user_a)
            .distinct()
            .all()
        )

    def count_by_isbn(self, isbn: str) -> int:
        return self.session.query(func.count(Book.id)).filter(Book.isbn == isbn).scalar() or 0
