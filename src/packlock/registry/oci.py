"""OCI registry tag fetcher.

Lists the tags of a repository through the OCI distribution API
(``GET /v2/<repository>/tags/list``). Registries that demand a bearer token
are answered with an anonymous token obtained from the realm named in
their challenge; paginated listings are followed through ``Link`` headers.

Only public repositories can be listed: no credentials are ever sent, so a
private dependency fails with ``TagFetchError``.

Usage::

    fetcher = OCIRegistryFetcher()
    tags = await fetcher.tags(parse_reference("crossplane/provider-aws"))
"""

from __future__ import annotations

import logging
from urllib.parse import urljoin

import httpx

from packlock.core.package.reference import ImageReference
from packlock.exceptions import TagFetchError
from packlock.registry.base import TagFetcher
from packlock.registry.http_client import (
    DEFAULT_TIMEOUT,
    new_client,
    next_link,
    parse_challenge,
)

logger = logging.getLogger(__name__)

# Docker Hub serves its API from a different host than its index name.
_REGISTRY_API_HOSTS: dict[str, str] = {
    "index.docker.io": "registry-1.docker.io",
    "docker.io": "registry-1.docker.io",
}

# Upper bound on followed pagination links.
MAX_PAGES: int = 100


class OCIRegistryFetcher(TagFetcher):
    """Fetches tags anonymously from OCI-compliant registries.

    Args:
        timeout: Timeout for each HTTP request, in seconds.
        transport: Optional httpx transport (used by tests).
        insecure_registries: Hosts to contact over plain HTTP.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        insecure_registries: frozenset[str] = frozenset({"localhost"}),
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._insecure = insecure_registries

    def tags_url(self, ref: ImageReference) -> str:
        host = _REGISTRY_API_HOSTS.get(ref.registry, ref.registry)
        scheme = "http" if host.split(":")[0] in self._insecure else "https"
        return f"{scheme}://{host}/v2/{ref.repository}/tags/list"

    async def tags(self, ref: ImageReference) -> list[str]:
        url = self.tags_url(ref)
        tags: list[str] = []
        token: str | None = None
        try:
            async with new_client(timeout=self._timeout, transport=self._transport) as client:
                for _ in range(MAX_PAGES):
                    resp = await self._get(client, url, token)
                    if resp.status_code == 401 and token is None:
                        token = await self._anonymous_token(client, resp, ref)
                        resp = await self._get(client, url, token)
                    resp.raise_for_status()
                    tags.extend(_page_tags(resp, ref))
                    link = next_link(resp.headers.get("Link"))
                    if not link:
                        break
                    url = urljoin(url, link)
                else:
                    logger.warning(
                        "Tag listing for %s exceeds %d pages; keeping the first %d tags",
                        ref,
                        MAX_PAGES,
                        len(tags),
                    )
        except httpx.TimeoutException as exc:
            logger.warning("Timeout fetching tags for %s", ref)
            raise TagFetchError(f"timeout fetching tags for {ref}") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning("HTTP %d fetching tags for %s", exc.response.status_code, ref)
            raise TagFetchError(
                f"HTTP {exc.response.status_code} fetching tags for {ref}"
            ) from exc
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("Request error fetching tags for %s: %s", ref, exc)
            raise TagFetchError(f"cannot fetch tags for {ref}: {exc}") from exc
        logger.debug("Fetched %d tags for %s", len(tags), ref)
        return tags

    @staticmethod
    async def _get(
        client: httpx.AsyncClient, url: str, token: str | None
    ) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return await client.get(url, headers=headers)

    @staticmethod
    async def _anonymous_token(
        client: httpx.AsyncClient, resp: httpx.Response, ref: ImageReference
    ) -> str:
        """Answer a bearer challenge with an anonymous pull token."""
        scheme, params = parse_challenge(resp.headers.get("WWW-Authenticate", ""))
        realm = params.get("realm")
        if scheme != "bearer" or not realm:
            raise TagFetchError(f"registry for {ref} requires unsupported authentication")
        query = {"scope": params.get("scope", f"repository:{ref.repository}:pull")}
        if "service" in params:
            query["service"] = params["service"]
        token_resp = await client.get(realm, params=query)
        token_resp.raise_for_status()
        body = token_resp.json()
        token = body.get("token") or body.get("access_token")
        if not token:
            raise TagFetchError(f"registry for {ref} returned no token")
        return token


def _page_tags(resp: httpx.Response, ref: ImageReference) -> list[str]:
    """Return the tags of one listing page; a missing or null list is empty."""
    body = resp.json()
    if isinstance(body, dict) and body.get("tags") is None:
        return []
    tags = body.get("tags") if isinstance(body, dict) else None
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        logger.warning("Malformed tag list for %s", ref)
        raise TagFetchError(f"registry for {ref} returned a malformed tag list")
    return tags
