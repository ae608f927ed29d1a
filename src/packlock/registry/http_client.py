"""Shared async HTTP client utilities for registry fetchers.

Provides a thin wrapper around ``httpx.AsyncClient`` with standardised
timeouts and user-agent headers, plus parsers for the two response headers
the OCI distribution API relies on: ``WWW-Authenticate`` bearer challenges
and ``Link`` pagination.
"""

from __future__ import annotations

import re

import httpx

from packlock import __version__

# Timeout for each registry HTTP request (seconds).
DEFAULT_TIMEOUT: float = 30.0

# User-Agent sent with every request.
USER_AGENT: str = f"packlock/{__version__}"

_CHALLENGE_PARAM_RE = re.compile(r'(\w+)="([^"]*)"')
_NEXT_LINK_RE = re.compile(r'<([^>]+)>\s*;\s*rel="?next"?')


def new_client(
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with the standard headers.

    Args:
        timeout: Request timeout in seconds.
        transport: Optional transport, e.g. ``httpx.MockTransport`` in tests.
    """
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


def parse_challenge(header: str) -> tuple[str, dict[str, str]]:
    """Parse a ``WWW-Authenticate`` header.

    Example::

        >>> parse_challenge('Bearer realm="https://auth.example/token",service="reg"')
        ('bearer', {'realm': 'https://auth.example/token', 'service': 'reg'})

    Returns:
        The lower-cased scheme and its parameters.
    """
    scheme, _, params = header.strip().partition(" ")
    return scheme.lower(), dict(_CHALLENGE_PARAM_RE.findall(params))


def next_link(header: str | None) -> str | None:
    """Return the target of a ``rel="next"`` ``Link`` header, if any."""
    if not header:
        return None
    m = _NEXT_LINK_RE.search(header)
    return m.group(1) if m else None
