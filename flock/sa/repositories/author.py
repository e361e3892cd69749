# flock/sa/repositories/author.py
import logging
from typing import Optional, Iterable
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from ..models import Author
from ...exceptions import StoreConflict
from ...subjects import join_subjects, split_subjects

logger = logging.getLogger(__name__)

class AuthorRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, author_id: str) -> Optional[Author]:
        """Get an author by internal id"""
        return self.session.get(Author, author_id)

    def get_by_olid(self, olid: str) -> Optional[Author]:
        """Get an author by OpenLibrary author id"""
        if not olid:
            return None
        return self.session.query(Author).filter(Author.olid == olid).first()

    def insert(self, olid: Optional[str], name: str, subjects: str = '',
               source: Optional[str] = None, bio: str = '') -> Author:
        """Insert a new author and commit.

        Raises:
            StoreConflict: another writer inserted the same olid first
        """
        author = Author(olid=olid, name=name, bio=bio, subjects=subjects or '', source=source)
        self.session.add(author)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise StoreConflict('Author', olid or name)
        logger.info(f"Inserted author {author.id} olid={olid} name={name!r}")
        return author

    def merge_subjects(self, author: Author, subjects: Iterable[str]) -> bool:
        """Union new subject tags into the author's subjects. Returns True if changed."""
        current = split_subjects(author.subjects)
        merged = current | {tag for tag in subjects if tag}
        if merged == current:
            return False
        author.subjects = join_subjects(merged)
        self.session.commit()
        return True
