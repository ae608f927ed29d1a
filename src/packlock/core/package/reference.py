"""Container image references for packages.

Parses references such as ``crossplane/provider-aws``,
``xpkg.upbound.io/upbound/provider-gcp:v0.1.0`` or
``localhost:5000/team/config@sha256:...`` into registry, repository, tag
and digest, and derives cluster-safe resource names from repositories.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from packlock.config import DEFAULT_REGISTRY
from packlock.exceptions import InvalidReferenceError

# Registry host names that refer to Docker Hub.
_DOCKER_HUB_HOSTS = frozenset({"index.docker.io", "docker.io", "registry-1.docker.io"})

_REPOSITORY_RE = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*(?:/[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*)*$")
_TAG_RE = re.compile(r"^[\w][\w.-]{0,127}$")
_DIGEST_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}$")

# Longest name a DNS-1123 label may have.
_DNS_LABEL_MAX = 63


@dataclass(frozen=True)
class ImageReference:
    """A parsed image reference.

    Attributes:
        registry: Registry host (e.g. ``"index.docker.io"``).
        repository: Repository path within the registry
            (e.g. ``"crossplane/provider-aws"``).
        tag: Tag, or ``""`` if the reference has none.
        digest: Digest, or ``""`` if the reference has none.
        original: The reference exactly as written.
    """

    registry: str
    repository: str
    tag: str = ""
    digest: str = ""
    original: str = ""

    @property
    def context(self) -> str:
        """Return ``registry/repository``, eliding the Docker Hub registry."""
        if self.registry in _DOCKER_HUB_HOSTS:
            return self.repository
        return f"{self.registry}/{self.repository}"

    def __str__(self) -> str:
        return self.original or self.context


def _looks_like_registry(component: str) -> bool:
    return "." in component or ":" in component or component == "localhost"


def parse_reference(
    reference: str, default_registry: str = DEFAULT_REGISTRY
) -> ImageReference:
    """Parse an image reference.

    Args:
        reference: Reference string, with optional registry, tag and digest.
        default_registry: Registry used when the reference names none.

    Returns:
        The parsed ``ImageReference``.

    Raises:
        InvalidReferenceError: If the reference is malformed.
    """
    text = reference.strip()
    if not text or text != reference:
        raise InvalidReferenceError(f"Invalid image reference: {reference!r}")

    name, _, digest = text.partition("@")
    if digest and not _DIGEST_RE.match(digest):
        raise InvalidReferenceError(f"Invalid digest in reference: {reference!r}")

    tag = ""
    last_slash = name.rfind("/")
    colon = name.rfind(":")
    if colon > last_slash:
        name, tag = name[:colon], name[colon + 1:]
        if not _TAG_RE.match(tag):
            raise InvalidReferenceError(f"Invalid tag in reference: {reference!r}")

    first, sep, rest = name.partition("/")
    if sep and _looks_like_registry(first):
        registry, repository = first, rest
    else:
        registry, repository = default_registry, name

    if registry in _DOCKER_HUB_HOSTS and "/" not in repository:
        repository = f"library/{repository}"

    if not _REPOSITORY_RE.match(repository):
        raise InvalidReferenceError(
            f"Invalid repository in reference: {reference!r}"
        )

    return ImageReference(
        registry=registry,
        repository=repository,
        tag=tag,
        digest=digest,
        original=reference,
    )


def to_dns_label(value: str) -> str:
    """Convert a repository path into a valid DNS-1123 label.

    Lowercase letters and digits are kept, the separators ``.``, ``/``,
    ``:`` and ``-`` become ``-`` unless they lead or trail the input, any
    other character is dropped. Input beyond the 63rd character is ignored
    and leading or trailing hyphens are trimmed from the result.

    Example::

        >>> to_dns_label("crossplane/provider-aws")
        'crossplane-provider-aws'
    """
    out: list[str] = []
    last = len(value) - 1
    for i, ch in enumerate(value[:_DNS_LABEL_MAX]):
        if ("a" <= ch <= "z") or ("0" <= ch <= "9"):
            out.append(ch)
        elif ch in "./:-" and i not in (0, last):
            out.append("-")
    return "".join(out).strip("-")
