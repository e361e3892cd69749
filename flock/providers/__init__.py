from .base import ProviderRecord, ProviderResult, ProviderStatus
from .isbndb import IsbndbProvider
from .open_library import OpenLibraryProvider
from .google_books import GoogleBooksProvider
from .ny_times import NyTimesProvider
from .recommendations import RecommendationProvider, Suggestion

__all__ = [
    'ProviderRecord',
    'ProviderResult',
    'ProviderStatus',
    'IsbndbProvider',
    'OpenLibraryProvider',
    'GoogleBooksProvider',
    'NyTimesProvider',
    'RecommendationProvider',
    'Suggestion'
]
