from typing import Iterable, NamedTuple, Optional

from flock.config import DEFAULT_BOX_SET_TERMS

class ExclusionResult(NamedTuple):
    reason: str
    term: str

def get_exclusion_reason(
    title: Optional[str],
    edition: Optional[str] = None,
    terms: Optional[Iterable[str]] = None
) -> Optional[ExclusionResult]:
    """
    Check a title/edition against the box-set, collection and study-guide terms.

    Matching is a case-insensitive substring test; any match excludes the
    candidate no matter how complete its other fields are.
    """
    terms = DEFAULT_BOX_SET_TERMS if terms is None else terms

    for field_name, value in (('title', title), ('edition', edition)):
        if not value:
            continue
        value_lower = str(value).lower()
        for term in terms:
            if term.lower() in value_lower:
                return ExclusionResult(
                    reason=f"{field_name} contains disallowed term '{term}'",
                    term=term
                )
    return None
