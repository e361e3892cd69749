# flock/subjects.py
import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Set, Tuple

logger = logging.getLogger(__name__)

SUBJECTS_PATH = Path(__file__).parent / 'data' / 'subjects.json'

# Category path delimiters used by each provider
GOOGLE_DELIMITER = ' / '
OPEN_LIBRARY_DELIMITER = ' / '
ISBNDB_DELIMITER = ' -> '


class SubjectTable:
    """Immutable tag -> keywords table for the internal subject taxonomy."""

    def __init__(self, subjects: Mapping[str, Iterable[str]]):
        self._subjects = MappingProxyType({
            tag: tuple(keywords) for tag, keywords in subjects.items()
        })

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'SubjectTable':
        """Load the taxonomy from a JSON file (defaults to the packaged table)"""
        path = Path(path) if path else SUBJECTS_PATH
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.debug(f"Loaded {len(data)} subjects from {path}")
        return cls(data)

    @property
    def tags(self) -> frozenset:
        return frozenset(self._subjects)

    def items(self) -> Iterable[Tuple[str, Tuple[str, ...]]]:
        return self._subjects.items()

    def __len__(self) -> int:
        return len(self._subjects)


class SubjectClassifier:
    def __init__(self, table: SubjectTable):
        self.table = table

    def classify(self, category_path: Optional[str], delimiter: str = GOOGLE_DELIMITER) -> Set[str]:
        """
        Map one provider category path to internal subject tags.

        The path is split on the provider delimiter and a tag is emitted when
        one of its keywords equals, or is a substring of, any segment.
        Comparison is case-insensitive.

        Args:
            category_path: e.g. "Fiction / Fantasy / Epic"
            delimiter: " / " for Google Books and OpenLibrary, " -> " for ISBNdb

        Returns:
            Set of tags, empty when nothing matches
        """
        if not category_path or not isinstance(category_path, str):
            return set()

        segments = [
            segment.strip().casefold()
            for segment in category_path.split(delimiter)
            if segment.strip()
        ]

        tags = set()
        for tag, keywords in self.table.items():
            for keyword in keywords:
                needle = keyword.casefold()
                if any(needle == segment or needle in segment for segment in segments):
                    tags.add(tag)
                    break
        return tags

    def classify_all(self, categories: Optional[Iterable[str]], delimiter: str = GOOGLE_DELIMITER) -> Set[str]:
        """Union of tags over every category string a provider returned"""
        tags = set()
        for category in categories or []:
            tags |= self.classify(category, delimiter)
        return tags


def join_subjects(tags: Iterable[str]) -> str:
    """Comma-joined, de-duplicated, sorted tag string as stored on Books/Authors"""
    return ','.join(sorted({tag for tag in tags if tag}))


def split_subjects(subjects: Optional[str]) -> Set[str]:
    if not subjects:
        return set()
    return {tag.strip() for tag in subjects.split(',') if tag.strip()}
