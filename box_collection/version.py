"""Version parsing and version-constraint evaluation.

Versions are dot-separated runs of digits and letters. A dash introduces a
pre-release and is normalised to ".pre.", so "1.0.0-beta" becomes
"1.0.0.pre.beta". Trailing zero segments are not significant ("1.0" equals
"1.0.0") and any letter segment sorts before a number, which puts
pre-releases ahead of their release.

Constraints are comma-separated "<op> <version>" pieces that must all hold.
The pessimistic operator "~> X.Y" allows anything from X.Y up to, but not
including, the next release of the second-to-last segment.
"""

from __future__ import annotations

import re
from functools import total_ordering

from .errors import BoxVersionInvalid
from .errors import InvalidVersion

VERSION_PATTERN = r"[0-9]+(?:\.[0-9a-zA-Z]+)*(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"

_ANCHORED_VERSION = re.compile(rf"^\s*(?:{VERSION_PATTERN})?\s*$")
_SEGMENT = re.compile(r"[0-9]+|[a-z]+", re.IGNORECASE)
_REQUIREMENT = re.compile(rf"^\s*(=|!=|>=|<=|~>|>|<)?\s*({VERSION_PATTERN})\s*$")


def is_valid_version(text: str) -> bool:
    """Return True if text parses as a version."""
    return text is not None and _ANCHORED_VERSION.match(str(text)) is not None


def _strip_trailing_zeros(segments: list) -> list:
    while segments and segments[-1] == 0:
        segments = segments[:-1]
    return segments


@total_ordering
class Version:
    """A comparable version value."""

    def __init__(self, version: str | int | Version):
        if isinstance(version, Version):
            version = version.version
        text = str(version)
        if not is_valid_version(text):
            raise InvalidVersion(text)

        text = text.strip() or "0"
        self.original = text
        self.version = text.replace("-", ".pre.")

    @property
    def segments(self) -> tuple[int | str, ...]:
        return tuple(int(s) if s.isdigit() else s for s in _SEGMENT.findall(self.version))

    def is_prerelease(self) -> bool:
        return any(c.isalpha() for c in self.version)

    def _canonical_segments(self) -> tuple[int | str, ...]:
        segments = list(self.segments)
        split_at = next((i for i, s in enumerate(segments) if isinstance(s, str)), len(segments))
        release = _strip_trailing_zeros(segments[:split_at])
        prerelease = _strip_trailing_zeros(segments[split_at:])
        return tuple(release + prerelease)

    def _numeric_segments(self) -> list[int]:
        segments = list(self.segments)
        while any(isinstance(s, str) for s in segments):
            segments.pop()
        return segments

    def release(self) -> Version:
        """Return this version without its pre-release part."""
        if not self.is_prerelease():
            return self
        return Version(".".join(str(s) for s in self._numeric_segments()))

    def bump(self) -> Version:
        """Return the upper bound used by the "~>" operator.

        Drops pre-release segments and the last numeric segment (when more
        than one remains), then increments the new last segment:
        1.2.3 -> 1.3, 1.2 -> 2, 1 -> 2.
        """
        segments = self._numeric_segments()
        if len(segments) > 1:
            segments.pop()
        segments[-1] += 1
        return Version(".".join(str(s) for s in segments))

    def compare(self, other: Version) -> int:
        lhs = self._canonical_segments()
        rhs = other._canonical_segments()

        for i in range(max(len(lhs), len(rhs))):
            left = lhs[i] if i < len(lhs) else 0
            right = rhs[i] if i < len(rhs) else 0
            if left == right:
                continue
            if isinstance(left, str) and isinstance(right, int):
                return -1
            if isinstance(left, int) and isinstance(right, str):
                return 1
            return -1 if left < right else 1
        return 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(self._canonical_segments())

    def __str__(self) -> str:
        return self.version

    def __repr__(self) -> str:
        return f"Version({self.original!r})"


def _pessimistic(version: Version, bound: Version) -> bool:
    return version >= bound and version.release() < bound.bump()


OPERATORS = {
    "=": lambda v, r: v == r,
    "!=": lambda v, r: v != r,
    ">": lambda v, r: v > r,
    "<": lambda v, r: v < r,
    ">=": lambda v, r: v >= r,
    "<=": lambda v, r: v <= r,
    "~>": _pessimistic,
}


class Requirement:
    """A single "<op> <version>" constraint."""

    def __init__(self, operator: str, version: Version | str):
        if operator not in OPERATORS:
            raise BoxVersionInvalid(f"{operator} {version}")
        self.operator = operator
        self.version = Version(version)

    @classmethod
    def parse(cls, text: str) -> Requirement:
        """Parse one constraint; a missing operator means "="."""
        match = _REQUIREMENT.match(text)
        if not match:
            raise BoxVersionInvalid(text.strip())
        return cls(match.group(1) or "=", match.group(2))

    def satisfied_by(self, version: Version | str) -> bool:
        return OPERATORS[self.operator](Version(version), self.version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Requirement):
            return NotImplemented
        return self.operator == other.operator and self.version == other.version

    def __hash__(self) -> int:
        return hash((self.operator, self.version))

    def __str__(self) -> str:
        return f"{self.operator} {self.version}"

    def __repr__(self) -> str:
        return f"Requirement({str(self)!r})"


def parse_requirements(text: str | None) -> list[Requirement]:
    """Parse a comma-separated constraint list.

    Blank pieces are ignored, so an empty string yields no constraints and
    matches every version.

    Raises:
        BoxVersionInvalid: If any piece is not a valid constraint.
    """
    requirements = []
    for piece in (text or "").split(","):
        if not piece.strip():
            continue
        requirements.append(Requirement.parse(piece))
    return requirements


def satisfies_all(version: Version | str, requirements: list[Requirement]) -> bool:
    return all(r.satisfied_by(version) for r in requirements)
