"""URL normalisation shared by tools and the browser manager."""

from urllib.parse import urlsplit

ALLOWED_SCHEMES = ("http", "https")


class UnsupportedUrlError(ValueError):
    """Raised when a URL is empty or uses a scheme other than http(s)."""


def normalize_url(url: str) -> str:
    """Normalise a user- or model-supplied URL.

    A bare host such as ``youtube.com`` gets an ``https://`` prefix.

    Args:
        url: The URL as received.

    Returns:
        The normalised absolute URL.

    Raises:
        UnsupportedUrlError: If the URL is empty, has no host, or its scheme
            is not http/https.
    """
    candidate = (url or "").strip()
    if not candidate:
        raise UnsupportedUrlError("URL must not be empty")

    if "://" not in candidate and not candidate.lower().startswith(("javascript:", "data:", "file:", "mailto:")):
        candidate = f"https://{candidate}"

    parts = urlsplit(candidate)
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise UnsupportedUrlError(f"Unsupported URL scheme: {parts.scheme or '(none)'}")
    if not parts.netloc:
        raise UnsupportedUrlError(f"URL has no host: {url!r}")
    return candidate
