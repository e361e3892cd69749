import re
from typing import Optional

TAG_PATTERN = re.compile(r'<[^>]*>')


def sanitize(text: Optional[str]) -> str:
    """Strip HTML-like tags from a synopsis/description. None -> ''"""
    if not text:
        return ''
    return TAG_PATTERN.sub('', text)


def url_encode(text: str) -> str:
    """
    Encode a title/author for provider query strings.

    Not percent-encoding: lowercases, turns spaces into '+' and drops
    parentheses, '#', '-' and apostrophes. Query URLs must stay stable, so
    keep this character set as is.
    """
    return (
        text.lower()
        .replace(' ', '+')
        .replace('(', '')
        .replace(')', '')
        .replace('#', '')
        .replace('-', '')
        .replace("'", '')
    )


def normalize_title(title: Optional[str]) -> str:
    """Case-insensitive key for in-batch title de-duplication"""
    return ' '.join((title or '').split()).casefold()


def normalize_isbn(isbn: Optional[str]) -> Optional[str]:
    """Digits (and a trailing X) only; None for empty input"""
    if not isbn:
        return None
    cleaned = re.sub(r'[^0-9Xx]', '', str(isbn)).upper()
    return cleaned or None
