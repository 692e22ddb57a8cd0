"""URL validation utilities for capture targets."""

from urllib.parse import urlparse

ALLOWED_SCHEMES = ("http", "https", "file")


def is_valid_url(url: str) -> bool:
    """
    Check that a URL can be opened as a capture target.

    Accepts:
    - http(s) URLs with a host
    - file URLs with a path (local fixtures, saved pages)

    Rejects everything else (javascript:, data:, bare hostnames).

    Example:
        https://app.com/login -> True
        javascript:alert(1)   -> False
    """
    if not url or not isinstance(url, str):
        return False

    parsed = urlparse(url.strip())

    if parsed.scheme not in ALLOWED_SCHEMES:
        return False
    if parsed.scheme == "file":
        return bool(parsed.path)
    return bool(parsed.netloc)
