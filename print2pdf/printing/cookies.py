"""Injection of forwarded cookies into an execution context before navigation."""

import logging
import time
from typing import Any, Dict, Mapping
from urllib.parse import urlparse

from .exceptions import ProtocolError, ValidationError

logger = logging.getLogger(__name__)

# Long enough for the cookie to outlive the single navigation it is set for.
COOKIE_LIFETIME_SECONDS = 180 * 24 * 60 * 60


def build_cookie_params(name: str, value: str, host: str, now: float) -> Dict[str, Any]:
    """Network.setCookie arguments for one forwarded cookie."""
    return {
        "name": name,
        "value": value,
        "domain": host,
        "path": "/",
        "httpOnly": True,
        # The target page may be served over plain HTTP.
        "secure": False,
        "expires": now + COOKIE_LIFETIME_SECONDS,
    }


def cookie_host(target_url: str) -> str:
    """Host the forwarded cookies are scoped to.

    Raises:
        ValidationError: If the URL has no host
    """
    host = urlparse(target_url).hostname
    if not host:
        raise ValidationError(f'invalid URL "{target_url}": missing host', field="url")
    return host


async def inject_cookies(context, target_url: str, cookies: Mapping[str, str]) -> None:
    """Set each cookie for the target URL's host inside the execution context.

    Not transactional: cookies set before a failure stay set in the (soon
    discarded) context.

    Args:
        context: Execution context of the current print operation
        target_url: URL the page will be navigated to
        cookies: Cookie names mapped to values

    Raises:
        ValidationError: If the URL has no host while cookies are given
        ProtocolError: If setting a cookie fails
    """
    if not cookies:
        return

    host = cookie_host(target_url)
    now = time.time()
    for name, value in cookies.items():
        try:
            result = await context.send("Network.setCookie", build_cookie_params(name, value, host, now))
        except ProtocolError as e:
            raise ProtocolError(
                f"failed to set cookie {name}: {e.message}",
                method="Network.setCookie",
                details={"cookie": name}
            ) from e

        # Older protocol versions report rejection through the result flag.
        if result and result.get("success") is False:
            raise ProtocolError(
                f"failed to set cookie {name}: rejected by browser",
                method="Network.setCookie",
                details={"cookie": name}
            )

    logger.debug(f"Injected {len(cookies)} cookie(s) for {host}: {sorted(cookies)}")
