# flock/providers/open_library.py
"""
OpenLibrary adapter.

Resolution chain for an ISBN:
  1. GET /isbn/{isbn}.json  -> works[0] gives the work olid
  2. GET /works/{olid}.json -> title, description, subjects, author refs
  3. GET /authors/{olid}.json for the first author
  4. If no author came out of the chain, search /search/authors.json by name

Any non-200 along the way is "not found", never an error.
"""

from typing import List, Optional, Union

from pydantic import Field

from .base import BaseProvider, ProviderModel, ProviderRecord, ProviderResult
from ..subjects import OPEN_LIBRARY_DELIMITER
from ..utils.http import JsonDownloader, build_url
from ..utils.text import sanitize, url_encode, normalize_isbn

COVER_URL = "https://covers.openlibrary.org/b/id/{cover_id}-L.jpg"
ENGLISH = '/languages/eng'


class KeyRef(ProviderModel):
    key: Optional[str] = None


class TextValue(ProviderModel):
    value: Optional[str] = None


class WorkAuthorRef(ProviderModel):
    author: Optional[KeyRef] = None
    key: Optional[str] = None

    @property
    def olid(self) -> Optional[str]:
        key = self.author.key if self.author and self.author.key else self.key
        return strip_key(key, '/authors/')


class OpenLibraryEditionRef(ProviderModel):
    works: List[KeyRef] = Field(default_factory=list)
    isbn_13: List[str] = Field(default_factory=list)
    title: Optional[str] = None


class OpenLibraryWork(ProviderModel):
    key: Optional[str] = None
    title: Optional[str] = None
    description: Optional[Union[str, TextValue]] = None
    subjects: List[str] = Field(default_factory=list)
    authors: List[WorkAuthorRef] = Field(default_factory=list)
    covers: List[Optional[int]] = Field(default_factory=list)


class OpenLibraryAuthor(ProviderModel):
    key: Optional[str] = None
    name: Optional[str] = None
    bio: Optional[Union[str, TextValue]] = None


class OpenLibraryAuthorDoc(ProviderModel):
    key: Optional[str] = None
    name: Optional[str] = None
    work_count: Optional[int] = None


class OpenLibraryAuthorSearch(ProviderModel):
    numFound: int = 0
    docs: List[OpenLibraryAuthorDoc] = Field(default_factory=list)


class OpenLibrarySearchDoc(ProviderModel):
    key: Optional[str] = None
    title: Optional[str] = None
    author_key: List[str] = Field(default_factory=list)
    author_name: List[str] = Field(default_factory=list)
    subject_key: List[str] = Field(default_factory=list)


class OpenLibrarySearch(ProviderModel):
    docs: List[OpenLibrarySearchDoc] = Field(default_factory=list)


class OpenLibraryEdition(ProviderModel):
    key: Optional[str] = None
    title: Optional[str] = None
    description: Optional[Union[str, TextValue]] = None
    languages: List[KeyRef] = Field(default_factory=list)
    authors: List[KeyRef] = Field(default_factory=list)
    subjects: List[str] = Field(default_factory=list)
    isbn_13: List[str] = Field(default_factory=list)
    covers: List[Optional[int]] = Field(default_factory=list)
    revision: int = 0

    @property
    def text(self) -> str:
        return text_of(self.description)

    @property
    def is_english(self) -> bool:
        return any(language.key == ENGLISH for language in self.languages)

    @property
    def qualifies(self) -> bool:
        """Description, English, authors and subjects are all present"""
        return bool(self.text.strip()) and self.is_english and bool(self.authors) and bool(self.subjects)


class OpenLibraryEditions(ProviderModel):
    entries: List[OpenLibraryEdition] = Field(default_factory=list)


def strip_key(key: Optional[str], prefix: str) -> Optional[str]:
    """'/works/OL45883W' -> 'OL45883W'"""
    if not key:
        return None
    return key.replace(prefix, '').strip('/') or None


def text_of(value: Optional[Union[str, TextValue]]) -> str:
    """OpenLibrary text fields come either as a plain string or {type, value}"""
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    return value.value or ''


def cover_url_for(covers: List[Optional[int]]) -> Optional[str]:
    for cover_id in covers:
        if cover_id and cover_id > 0:
            return COVER_URL.format(cover_id=cover_id)
    return None


def select_edition(editions: List[OpenLibraryEdition]) -> Optional[OpenLibraryEdition]:
    """
    Pick the edition to take book data from.

    Only editions with a description, English language, authors and
    subjects qualify; the highest revision wins. None when nothing
    qualifies, in which case the work record is used.
    """
    qualifying = [edition for edition in editions if edition.qualifies]
    if not qualifying:
        return None
    return max(qualifying, key=lambda edition: edition.revision)


class OpenLibraryProvider(BaseProvider):
    name = 'open_library'

    def __init__(self, base_url: str = "https://openlibrary.org",
                 downloader: Optional[JsonDownloader] = None):
        super().__init__(downloader)
        self.base_url = base_url.rstrip('/')

    # Single lookups

    def get_work_id_by_isbn(self, isbn: str) -> Optional[str]:
        if not isbn:
            return None
        edition, failure = self.fetch(f"{self.base_url}/isbn/{isbn}.json", OpenLibraryEditionRef)
        if failure or not edition.works:
            return None
        return strip_key(edition.works[0].key, '/works/')

    def get_work(self, olid: str) -> Optional[OpenLibraryWork]:
        if not olid:
            return None
        work, failure = self.fetch(f"{self.base_url}/works/{olid}.json", OpenLibraryWork)
        if failure:
            self.logger.info(f"Work {olid}: {failure.reason}")
            return None
        return work

    def get_author(self, olid: str) -> Optional[OpenLibraryAuthor]:
        if not olid:
            return None
        author, failure = self.fetch(f"{self.base_url}/authors/{olid}.json", OpenLibraryAuthor)
        if failure:
            self.logger.info(f"Author {olid}: {failure.reason}")
            return None
        return author

    def search_author(self, name: str) -> Optional[OpenLibraryAuthorDoc]:
        """First hit of /search/authors.json?q=name"""
        if not name:
            return None
        url = build_url(f"{self.base_url}/search/authors.json", {'q': url_encode(name)})
        result, failure = self.fetch(url, OpenLibraryAuthorSearch)
        if failure or not result.docs:
            return None
        doc = result.docs[0]
        if not doc.key:
            return None
        return doc

    def get_editions(self, olid: str) -> List[OpenLibraryEdition]:
        if not olid:
            return []
        url = build_url(f"{self.base_url}/works/{olid}/editions.json", {'limit': 50})
        result, failure = self.fetch(url, OpenLibraryEditions)
        if failure:
            return []
        return result.entries

    def search_work(self, title: str, author: Optional[str] = None) -> ProviderResult:
        """Title (+author) search, best rated first, used when there is no ISBN"""
        if not title:
            return ProviderResult.not_found('no title')

        params = {'title': url_encode(title)}
        if author:
            params['author'] = url_encode(author)
        params.update({
            'sort': 'rating',
            'limit': 1,
            'fields': 'title,key,author_key,author_name,subject_key',
        })
        result, failure = self.fetch(build_url(f"{self.base_url}/search.json", params), OpenLibrarySearch)
        if failure:
            return failure
        if not result.docs or not result.docs[0].key:
            return ProviderResult.not_found(f"no work for {title!r}")

        doc = result.docs[0]
        return ProviderResult.ok(ProviderRecord(
            title=doc.title or title,
            olid=strip_key(doc.key, '/works/'),
            author_olid=doc.author_key[0] if doc.author_key else None,
            author_name=author or (doc.author_name[0] if doc.author_name else None),
            raw_subjects=[],
            subject_delimiter=OPEN_LIBRARY_DELIMITER,
        ))

    # Resolution chains

    def resolve_by_isbn(self, isbn: str, author_name: Optional[str] = None) -> ProviderResult:
        """
        Resolve work and author for an ISBN.

        Args:
            isbn: ISBN-13
            author_name: Name to search by when the work carries no usable author

        Returns:
            ProviderResult whose record has olid, author_olid/author_name,
            title, description and raw subjects of the work.
        """
        olid = self.get_work_id_by_isbn(isbn)
        if not olid:
            self.logger.info(f"No OpenLibrary work for isbn {isbn}")
            return ProviderResult.not_found(f"no work for isbn {isbn}")

        result = self.resolve_work(olid, author_name=author_name, scan_editions=False)
        if not result.is_ok:
            return result
        return ProviderResult.ok(result.record.model_copy(update={'isbn': normalize_isbn(isbn)}))

    def resolve_work(self, olid: str, author_name: Optional[str] = None,
                     scan_editions: bool = True) -> ProviderResult:
        """
        Resolve a work olid into a record, optionally preferring the best edition.
        """
        work = self.get_work(olid)
        if work is None:
            return ProviderResult.not_found(f"no work {olid}")

        title = work.title
        description = text_of(work.description)
        subjects = list(work.subjects)
        isbn = None
        cover_url = cover_url_for(work.covers)
        author_refs = [ref.olid for ref in work.authors if ref.olid]

        if scan_editions:
            edition = select_edition(self.get_editions(olid))
            if edition:
                self.logger.info(f"Using edition {edition.key} (revision {edition.revision}) for {olid}")
                title = edition.title or title
                description = edition.text
                subjects = list(edition.subjects)
                isbn = normalize_isbn(edition.isbn_13[0]) if edition.isbn_13 else None
                cover_url = cover_url_for(edition.covers) or cover_url
                edition_authors = [strip_key(ref.key, '/authors/') for ref in edition.authors]
                author_refs = [ref for ref in edition_authors if ref] or author_refs
            else:
                self.logger.info(f"No qualifying edition for {olid}, using work record")

        author_olid, resolved_name = self.resolve_author(author_refs, author_name)

        return ProviderResult.ok(ProviderRecord(
            title=title,
            olid=olid,
            isbn=isbn,
            author_olid=author_olid,
            author_name=resolved_name,
            cover_url=cover_url,
            description=sanitize(description),
            raw_subjects=subjects,
            subject_delimiter=OPEN_LIBRARY_DELIMITER,
        ))

    def resolve_author(self, author_refs: List[str], author_name: Optional[str] = None):
        """
        Returns (author_olid, name). The work's first author ref is kept even
        when its details can't be fetched; author_name then fills in the name.
        Without refs, falls back to a name search. (None, author_name) when
        nothing resolves.
        """
        if author_refs:
            author_olid = author_refs[0]
            author = self.get_author(author_olid)
            if author and author.name:
                return author_olid, author.name
            self.logger.warning(f"No details for author {author_olid}, keeping id from the work")
            return author_olid, author_name

        if author_name:
            doc = self.search_author(author_name)
            if doc:
                self.logger.info(f"Resolved author {author_name!r} by name search: {doc.key}")
                return strip_key(doc.key, '/authors/'), doc.name or author_name

        return None, author_name
