"""Semantic versions and version constraints for package dependencies.

This module provides the foundational data types for declaring version
requirements between packages and for ordering the tags a registry
publishes.

Version parsing is deliberately loose because registries are: an optional
``v`` prefix is accepted and missing minor/patch components default to
zero. The exact input string is preserved as ``Version.original`` so a
selected tag can be written back byte-for-byte.

Constraint syntax supports comparison operators (``=``, ``!=``, ``>``,
``<``, ``>=``, ``<=``), tilde (``~``, ``~>``), caret (``^``), wildcards
(``x``, ``X``, ``*``), hyphen ranges (``1.2 - 1.4.5``), conjunction by
comma or whitespace, and disjunction by ``||``.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field

from packlock.exceptions import InvalidConstraintError, InvalidVersionError


# ---------------------------------------------------------------------------
# Version: A totally ordered semantic version
# ---------------------------------------------------------------------------

_VERSION_RE = re.compile(
    r"^v?(?P<major>\d+)(?:\.(?P<minor>\d+))?(?:\.(?P<patch>\d+))?"
    r"(?:-(?P<pre>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?$"
)


def _compare_prerelease(a: tuple[str, ...], b: tuple[str, ...]) -> int:
    """Compare pre-release identifier lists per SemVer 2.0.0 section 11."""
    if a == b:
        return 0
    # A release outranks any of its pre-releases.
    if not a:
        return 1
    if not b:
        return -1
    for x, y in zip(a, b):
        if x == y:
            continue
        x_num, y_num = x.isdigit(), y.isdigit()
        if x_num and y_num:
            return -1 if int(x) < int(y) else 1
        if x_num != y_num:
            # Numeric identifiers have lower precedence than alphanumeric.
            return -1 if x_num else 1
        return -1 if x < y else 1
    return -1 if len(a) < len(b) else 1


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A semantic version (major.minor.patch[-prerelease][+build]).

    Equality and ordering follow SemVer precedence; build metadata and the
    original spelling do not take part.

    Attributes:
        major: Major version component.
        minor: Minor version component.
        patch: Patch version component.
        prerelease: Dot-separated pre-release identifiers.
        build: Build metadata (ignored for precedence).
        original: The string the version was parsed from.
    """

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: tuple[str, ...] = ()
    build: str = ""
    original: str = field(default="", compare=False)

    @classmethod
    def parse(cls, raw: str) -> Version:
        """Parse a version tag such as ``"1.2.3"``, ``"v1.2.0"`` or ``"2.0"``.

        Raises:
            InvalidVersionError: If *raw* is not a semantic version.
        """
        m = _VERSION_RE.match(raw.strip())
        if not m:
            raise InvalidVersionError(f"Invalid semantic version: {raw!r}")
        pre = m.group("pre")
        return cls(
            major=int(m.group("major")),
            minor=int(m.group("minor") or 0),
            patch=int(m.group("patch") or 0),
            prerelease=tuple(pre.split(".")) if pre else (),
            build=m.group("build") or "",
            original=raw,
        )

    def compare(self, other: Version) -> int:
        """Return -1, 0 or 1 as this version sorts before, with, or after *other*."""
        mine = (self.major, self.minor, self.patch)
        theirs = (other.major, other.minor, other.patch)
        if mine != theirs:
            return -1 if mine < theirs else 1
        return _compare_prerelease(self.prerelease, other.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.prerelease))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + self.build
        return text


# ---------------------------------------------------------------------------
# Constraint atoms
# ---------------------------------------------------------------------------

_WILDCARDS = frozenset({"x", "X", "*"})

_COMPONENT = r"(?:\d+|[xX*])"

# One constraint atom: an optional operator followed by a (possibly partial
# or wildcarded) version. Atoms are separated by commas and/or whitespace.
_ATOM_RE = re.compile(
    r"(?P<op>!=|>=|=>|<=|=<|~>|>|<|=|~|\^)?\s*"
    r"(?P<ver>v?" + _COMPONENT + r"(?:\." + _COMPONENT + r"){0,2}"
    r"(?:-[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*)?"
    r"(?:\+[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*)?)"
)

_SEPARATOR_RE = re.compile(r"^[\s,]*$")

_HYPHEN_RE = re.compile(r"(\S+)\s+-\s+(\S+)")

_OP_ALIASES = {"": "=", "=>": ">=", "=<": "<=", "~>": "~"}


@dataclass(frozen=True)
class _Atom:
    """A single comparison such as ``>=1.2.0`` or ``~1.4``.

    ``specified`` counts the leading concrete components of the version
    (3 for ``1.2.3``, 2 for ``1.2`` or ``1.2.x``, 0 for ``*``). A version
    with fewer than three concrete components describes a range.
    """

    op: str
    version: Version
    specified: int

    @classmethod
    def parse(cls, op: str, text: str) -> _Atom:
        core, sep, rest = text.lstrip("v").partition("-")
        build_split = core.partition("+")
        core = build_split[0]
        parts = core.split(".")
        specified = 0
        for part in parts:
            if part in _WILDCARDS:
                break
            specified += 1
        numbers = [int(p) for p in parts[:specified]] + [0] * (3 - specified)
        pre: tuple[str, ...] = ()
        if sep and specified == 3:
            pre = tuple(rest.partition("+")[0].split("."))
        version = Version(numbers[0], numbers[1], numbers[2], pre, original=text)
        return cls(op=_OP_ALIASES.get(op, op), version=version, specified=specified)

    def _next(self, specified: int) -> Version | None:
        """Exclusive upper bound of the range the first *specified* components span."""
        v = self.version
        if specified <= 0:
            return None
        if specified == 1:
            return Version(v.major + 1)
        if specified == 2:
            return Version(v.major, v.minor + 1)
        return Version(v.major, v.minor, v.patch + 1)

    def _in_range(self, candidate: Version) -> bool:
        """Whether *candidate* matches the (possibly partial) version exactly."""
        if self.specified == 3:
            return candidate == self.version
        upper = self._next(self.specified)
        return candidate >= self.version and (upper is None or candidate < upper)

    def check(self, candidate: Version) -> bool:
        if candidate.prerelease and not self.version.prerelease:
            return False
        op, v = self.op, self.version
        if op == "=":
            return self._in_range(candidate)
        if op == "!=":
            return not self._in_range(candidate)
        if op == ">":
            if self.specified < 3:
                upper = self._next(self.specified)
                return upper is not None and candidate >= upper
            return candidate > v
        if op == ">=":
            return candidate >= v
        if op == "<":
            return candidate < v
        if op == "<=":
            if self.specified < 3:
                upper = self._next(self.specified)
                return upper is None or candidate < upper
            return candidate <= v
        if op == "~":
            # ~1.2.3 and ~1.2 allow patch-level changes; ~1 allows minor ones.
            upper = self._next(min(self.specified, 2))
            return candidate >= v and (upper is None or candidate < upper)
        if op == "^":
            if self.specified == 0:
                return True
            if v.major > 0 or self.specified == 1:
                upper = self._next(1)
            elif v.minor > 0 or self.specified == 2:
                upper = self._next(2)
            else:
                upper = self._next(3)
            return candidate >= v and candidate < upper
        raise InvalidConstraintError(f"Unknown operator: {op!r}")  # pragma: no cover


def _parse_group(group: str, raw: str) -> tuple[_Atom, ...]:
    """Parse one AND-group of atoms, rejecting any unconsumed text."""
    group = _HYPHEN_RE.sub(r">= \1, <= \2", group)
    atoms: list[_Atom] = []
    pos = 0
    for m in _ATOM_RE.finditer(group):
        gap = group[pos:m.start()]
        if not _SEPARATOR_RE.match(gap) or (atoms and not gap):
            raise InvalidConstraintError(f"Invalid constraint: {raw!r}")
        atoms.append(_Atom.parse(m.group("op") or "", m.group("ver")))
        pos = m.end()
    if not atoms or not _SEPARATOR_RE.match(group[pos:]):
        raise InvalidConstraintError(f"Invalid constraint: {raw!r}")
    return tuple(atoms)


# ---------------------------------------------------------------------------
# Constraints: A parsed constraint expression
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Constraints:
    """A parsed version constraint expression.

    The expression is a disjunction (``||``) of conjunctions (comma or
    whitespace separated atoms). A version satisfies the expression when
    every atom of at least one group holds.

    Attributes:
        raw: The constraint string as authored (e.g. ``">=1.0.0, <2.0.0"``).
    """

    raw: str
    _groups: tuple[tuple[_Atom, ...], ...] = field(repr=False, compare=False)

    @classmethod
    def parse(cls, raw: str) -> Constraints:
        """Parse a constraint string.

        Raises:
            InvalidConstraintError: If *raw* is empty or malformed.
        """
        if not raw or not raw.strip():
            raise InvalidConstraintError("Empty version constraint")
        groups = tuple(_parse_group(g, raw) for g in raw.split("||"))
        return cls(raw=raw, _groups=groups)

    def check(self, version: Version) -> bool:
        """Return True if *version* satisfies this constraint."""
        return any(all(atom.check(version) for atom in group) for group in self._groups)

    def satisfies(self, version: str) -> bool:
        """Check a version string against this constraint.

        Raises:
            InvalidVersionError: If *version* is not a semantic version.
        """
        return self.check(Version.parse(version))

    def __str__(self) -> str:
        return self.raw
