# flock/providers/google_books.py
"""
Google Books adapter.

Searches by intitle/inauthor, and only trusts the top hit when it carries at
least one category. Details (categories, title, thumbnail) then come from the
volume endpoint; the description comes from the search hit.
"""

from typing import List, Optional

from pydantic import Field

from .base import BaseProvider, ProviderModel, ProviderRecord, ProviderResult
from ..subjects import GOOGLE_DELIMITER
from ..utils.http import JsonDownloader, build_url
from ..utils.text import sanitize, url_encode


class ImageLinks(ProviderModel):
    thumbnail: Optional[str] = None
    smallThumbnail: Optional[str] = None


class VolumeInfo(ProviderModel):
    title: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    imageLinks: Optional[ImageLinks] = None
    language: Optional[str] = None


class Volume(ProviderModel):
    id: Optional[str] = None
    volumeInfo: Optional[VolumeInfo] = None


class VolumeSearch(ProviderModel):
    totalItems: int = 0
    items: List[Volume] = Field(default_factory=list)


def clean_thumbnail(url: Optional[str]) -> Optional[str]:
    """Drop edge=curl, which makes Google serve a page-curl image"""
    if not url:
        return None
    return url.replace('edge=curl&', '').replace('&edge=curl', '').replace('edge=curl', '')


class GoogleBooksProvider(BaseProvider):
    name = 'google_books'

    def __init__(self, base_url: str = "https://www.googleapis.com/books/v1",
                 downloader: Optional[JsonDownloader] = None):
        super().__init__(downloader)
        self.base_url = base_url.rstrip('/')

    def search_url(self, title: str, author: Optional[str] = None) -> str:
        query = f"intitle:{url_encode(title)}"
        if author:
            query += f"+inauthor:{url_encode(author)}"
        return build_url(f"{self.base_url}/volumes", {
            'q': query,
            'projection': 'full',
            'langRestrict': 'en',
        })

    def search(self, title: str, author: Optional[str] = None) -> ProviderResult:
        """
        Search by title and author.

        Returns:
            OK with title, description, categories and cover, or NOT_FOUND
            when there is no hit or the top hit has no categories.
        """
        if not title:
            return ProviderResult.not_found('no title')

        result, failure = self.fetch(self.search_url(title, author), VolumeSearch)
        if failure:
            return failure

        if not result.items:
            return ProviderResult.not_found(f"no volumes for {title!r}")

        top = result.items[0]
        info = top.volumeInfo
        if info is None or not info.categories:
            self.logger.info(f"Top Google Books hit for {title!r} has no categories")
            return ProviderResult.not_found('top result has no categories')

        description = info.description or ''
        details = self.get_volume(top.id) if top.id else None
        if details is None:
            details = info

        cover = details.imageLinks.thumbnail if details.imageLinks else None

        return ProviderResult.ok(ProviderRecord(
            title=details.title or info.title,
            author_name=(details.authors or info.authors or [author])[0],
            cover_url=clean_thumbnail(cover),
            description=sanitize(description),
            raw_subjects=list(details.categories or info.categories),
            subject_delimiter=GOOGLE_DELIMITER,
        ))

    def get_volume(self, volume_id: str) -> Optional[VolumeInfo]:
        volume, failure = self.fetch(f"{self.base_url}/volumes/{volume_id}", Volume)
        if failure or volume.volumeInfo is None:
            return None
        return volume.volumeInfo
