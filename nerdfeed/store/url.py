"""URL identity utilities used for duplicate detection."""

import re
from urllib.parse import urlparse


_SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def _fallback_identity(url: str) -> str:
    """Strip scheme, www, trailing slash and .git without parsing."""
    stripped = _SCHEME_PATTERN.sub("", url).lower()
    stripped = stripped.removeprefix("www.")
    return stripped.removesuffix("/").removesuffix(".git")


def url_identity(url: str) -> str:
    """Normalize a URL to the identity used for duplicate detection.

    The identity is the lowercase host without a leading ``www.`` followed
    by the lowercase path with one trailing slash and one trailing
    ``.git`` suffix removed. Scheme, port, query and fragment are ignored.

    Args:
        url: URL to normalize.

    Returns:
        Identity string, or an empty string for an empty URL.
    """
    if not url or not url.strip():
        return ""

    candidate = url.strip()
    if not _SCHEME_PATTERN.match(candidate):
        candidate = f"https://{candidate}"

    try:
        parsed = urlparse(candidate)
        host = parsed.hostname or ""
    except ValueError:
        return _fallback_identity(url.strip())

    if not host:
        return _fallback_identity(url.strip())

    host = host.removeprefix("www.")
    path = parsed.path.lower().removesuffix("/").removesuffix(".git")
    return host + path


def url_host(url: str) -> str:
    """Return the lowercase host of a URL, or an empty string."""
    if not url:
        return ""
    try:
        return (urlparse(url.strip()).hostname or "").lower()
    except ValueError:
        return ""


def url_path_parts(url: str) -> list[str]:
    """Return the non-empty path segments of a URL."""
    if not url:
        return []
    try:
        path = urlparse(url.strip()).path
    except ValueError:
        return []
    return [part for part in path.split("/") if part]
