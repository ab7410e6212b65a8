"""Client-side fallbacks for field heuristics computed from sampled values."""
import itertools
import re
from typing import Any, Iterable, List
from urllib.parse import urlsplit

MAX_SYNC_LAZY_SEQ_RESULTS = 10000

_URL_SCHEMES = {"http", "https", "ftp"}
_HOST_PATTERN = re.compile(r"^.+\..{2,}$")


def is_url(value: Any) -> bool:
    """True if VALUE is a string holding an absolute URL whose host has a dotted name."""
    if not isinstance(value, str):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if parts.scheme not in _URL_SCHEMES or not parts.hostname:
        return False
    return bool(_HOST_PATTERN.match(parts.hostname))


def sample_non_null(values: Iterable[Any], limit: int = MAX_SYNC_LAZY_SEQ_RESULTS) -> List[Any]:
    """Materializes at most LIMIT non-null values, consuming the source lazily."""
    return list(itertools.islice((v for v in values if v is not None), limit))


def average_length(values: Iterable[Any]) -> float:
    sampled = sample_non_null(values)
    if not sampled:
        return 0.0
    return sum(len(str(v)) for v in sampled) / len(sampled)


def percent_valid_urls(values: Iterable[Any]) -> float:
    """Fraction of non-null VALUES that are valid URLs; 0.0 when there are none."""
    valid_count = 0
    non_null_count = 0
    for value in values:
        if value is None:
            continue
        non_null_count += 1
        if is_url(value):
            valid_count += 1
    if non_null_count == 0:
        return 0.0
    return valid_count / non_null_count


def sampled_percent_urls(values: Iterable[Any]) -> float:
    return percent_valid_urls(sample_non_null(values))
