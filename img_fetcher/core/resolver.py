"""
Turns raw image references pulled from markup into absolute, fetchable URLs.
"""

import re
from urllib.parse import urldefrag, urljoin, urlsplit

from img_fetcher.exceptions import ResolveError
from img_fetcher.models.target import ResolvedTarget

_SCHEME_REGEX = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_BAD_PERCENT_REGEX = re.compile(r"%(?![0-9A-Fa-f]{2})")
_FETCHABLE_SCHEMES = ("http", "https")


def resolve(raw: str, base: str) -> ResolvedTarget:
    """
    Resolves a raw reference against the page it was found on.

    Absolute references (``scheme://...``) are used as-is; everything else,
    including protocol-relative ``//host/...`` references, goes through
    standard relative resolution against ``base``. The target's name is the
    final segment of the resolved path, left percent-encoded.

    Raises:
        ResolveError: If the reference is empty, does not produce a parseable
            http(s) URL, or has no file name to save under.
    """
    reference = (raw or "").strip()
    if not reference:
        raise ResolveError("Empty image reference.")

    if _SCHEME_REGEX.match(reference):
        absolute = reference
    else:
        try:
            absolute = urljoin(base, reference)
        except ValueError as e:
            raise ResolveError(f"Cannot resolve {reference!r}: {e}") from e

    try:
        absolute, _fragment = urldefrag(absolute)
        parts = urlsplit(absolute)
        _port = parts.port  # raises on a non-numeric or out-of-range port
    except ValueError as e:
        raise ResolveError(f"Cannot parse {absolute!r}: {e}") from e

    if _BAD_PERCENT_REGEX.search(absolute):
        raise ResolveError(f"Malformed percent-encoding in {absolute!r}.")

    if parts.scheme.lower() not in _FETCHABLE_SCHEMES:
        raise ResolveError(f"Unsupported scheme in {absolute[:60]!r}.")
    if not parts.hostname:
        raise ResolveError(f"No host in {absolute!r}.")

    name = canonical_name(parts.path)
    if not name:
        raise ResolveError(f"No file name in {absolute!r}.")

    return ResolvedTarget(url=absolute, name=name)


def canonical_name(path: str) -> str:
    """Final path segment; the deduplication key for a target."""
    return path.rsplit("/", 1)[-1]
