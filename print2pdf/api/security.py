"""Host allow-lists and cookie forwarding for the print endpoints.

Host patterns are compared case-insensitively against the whole value and
may contain "*" wildcards, e.g. "https://*.example.com".
"""

import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# Characters a browser would read as ending the host, or as userinfo.
_NETLOC_FORBIDDEN = re.compile(r"[\\@\s/?#%]")
_HOSTNAME = re.compile(r"[a-z0-9.\-]+|[0-9a-f:.]+")


def _pattern_to_regex(pattern: str) -> str:
    return re.escape(pattern.strip().lower()).replace(r"\*", ".*")


def _allows_any(patterns: List[str]) -> bool:
    return not patterns or patterns == ["*"]


def match_patterns(patterns: Iterable[str], value: str) -> bool:
    """Check if value matches any of the wildcard patterns."""
    value = value.lower()
    return any(re.fullmatch(_pattern_to_regex(pattern), value) for pattern in patterns)


def cors_origin_regex(patterns: List[str]) -> Optional[str]:
    """Origin regex for CORSMiddleware, or None when every origin is allowed."""
    if _allows_any(patterns):
        return None
    return "(?i)(" + "|".join(_pattern_to_regex(pattern) for pattern in patterns) + ")"


def is_print_allowed(url: str, patterns: List[str]) -> bool:
    """Check that printing the URL is allowed by scheme and host."""
    if _allows_any(patterns):
        return True

    authority = _print_authority(url)
    if authority is None:
        logger.warning(f"Requested URL {url} has no valid host")
        return False

    allowed = match_patterns(patterns, authority)
    if not allowed:
        logger.warning(f"Requested URL {url} is not allowed for printing")
    return allowed


def _print_authority(url: str) -> Optional[str]:
    """Normalized scheme://host[:port] of the URL, or None when the host is unusable."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc or _NETLOC_FORBIDDEN.search(parsed.netloc):
        return None

    host = parsed.hostname
    if not host or not _HOSTNAME.fullmatch(host):
        return None
    try:
        port = parsed.port
    except ValueError:
        return None

    if ":" in host:
        host = f"[{host}]"
    if port is not None:
        host = f"{host}:{port}"
    return f"{parsed.scheme}://{host}"


def extract_cookies(cookies: Mapping[str, str], forward_names: Iterable[str]) -> Dict[str, str]:
    """Keep only the request cookies whose names are in the forward list."""
    wanted = {name.strip() for name in forward_names if name.strip()}
    return {name: value for name, value in cookies.items() if name in wanted}


def ensure_pdf_suffix(file_name: str) -> str:
    if file_name.endswith(".pdf"):
        return file_name
    return f"{file_name}.pdf"
