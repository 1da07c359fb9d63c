"""Maven version range parsing and containment.

Supports the bracket notation used in POMs and plugin code:

    1.0              soft requirement, contains every version
    [1.0]            exactly 1.0
    [1.0,2.0)        1.0 <= x < 2.0
    (,1.0],[1.2,)    x <= 1.0 or x >= 1.2

Versions are compared with semantic-version precedence after lenient
coercion, so ``1.0`` equals ``1.0.0`` and qualifiers such as ``-SNAPSHOT``
or ``-M5`` sort before the release they qualify.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import semantic_version


class InvalidVersionSpecification(ValueError):
    """Raised when a version range expression cannot be parsed."""


_NON_NUMERIC_BASE = "0.0.0"
_NUMERIC_PREFIX = re.compile(r"^\d+(?:\.\d+){0,2}")


def parse_version(text: str) -> semantic_version.Version:
    """Coerce a Maven version string into a comparable Version.

    Versions without a leading number become pre-releases of 0.0.0 so they
    sort before every numeric version.
    """
    text = (text or "").strip()
    try:
        return semantic_version.Version.coerce(text)
    except ValueError:
        pass
    # qualifier semantic_version rejects, e.g. "1.0-01"
    match = _NUMERIC_PREFIX.match(text)
    if match:
        return semantic_version.Version.coerce(match.group(0))
    identifiers = [p for p in re.split(r"[^0-9A-Za-z-]+", text) if p]
    identifiers = [str(int(p)) if p.isdigit() else p for p in identifiers] or ["unknown"]
    return semantic_version.Version(f"{_NON_NUMERIC_BASE}-{'.'.join(identifiers)}")


@dataclass(frozen=True)
class Restriction:
    """One interval of a version range; None bounds are unbounded."""
    lower: Optional[str]
    lower_inclusive: bool
    upper: Optional[str]
    upper_inclusive: bool

    def contains(self, version: semantic_version.Version) -> bool:
        if self.lower is not None:
            low = parse_version(self.lower)
            if version < low or (version == low and not self.lower_inclusive):
                return False
        if self.upper is not None:
            high = parse_version(self.upper)
            if version > high or (version == high and not self.upper_inclusive):
                return False
        return True

    def __str__(self) -> str:
        if self.lower is not None and self.lower == self.upper:
            return f"[{self.lower}]"
        return "{}{},{}{}".format(
            "[" if self.lower_inclusive else "(",
            self.lower or "",
            self.upper or "",
            "]" if self.upper_inclusive else ")",
        )


EVERYTHING = Restriction(None, False, None, False)


@dataclass(frozen=True)
class VersionRange:
    """Parsed version range: a recommended version or a set of restrictions."""
    spec: str
    recommended_version: Optional[str]
    restrictions: Tuple[Restriction, ...]

    @classmethod
    def from_spec(cls, spec: Optional[str]) -> "VersionRange":
        """Parse a version spec, raising InvalidVersionSpecification on bad input."""
        if spec is None or not spec.strip():
            raise InvalidVersionSpecification("Version spec must not be blank")
        raw = spec.strip()
        if raw[0] not in "[(":
            if any(ch in raw for ch in "[](),"):
                raise InvalidVersionSpecification(f"Unbounded range: {raw}")
            return cls(raw, raw, (EVERYTHING,))

        restrictions: List[Restriction] = []
        process = raw
        while process.startswith(("[", "(")):
            close = _find_close(process)
            if close < 0:
                raise InvalidVersionSpecification(f"Unbounded range: {raw}")
            restriction = _parse_restriction(process[:close + 1], raw)
            if restrictions:
                _check_not_overlapping(restrictions[-1], restriction, raw)
            restrictions.append(restriction)
            process = process[close + 1:].strip()
            if process.startswith(","):
                process = process[1:].strip()
        if process:
            raise InvalidVersionSpecification(
                f"Only fully-qualified sets allowed in multiple set scenario: {raw}"
            )
        return cls(raw, None, tuple(restrictions))

    @property
    def is_soft(self) -> bool:
        return self.recommended_version is not None

    def contains_version(self, version: str) -> bool:
        parsed = parse_version(version)
        return any(r.contains(parsed) for r in self.restrictions)

    def match_version(self, candidates: Iterable[str]) -> Optional[str]:
        """Return the highest candidate contained in this range, if any."""
        matching = [v for v in candidates if self.contains_version(v)]
        if not matching:
            return None
        return max(matching, key=parse_version)

    def __str__(self) -> str:
        if self.recommended_version is not None:
            return self.recommended_version
        return ",".join(str(r) for r in self.restrictions)


def _find_close(text: str) -> int:
    closes = [i for i in (text.find("]"), text.find(")")) if i >= 0]
    return min(closes) if closes else -1


def _parse_restriction(text: str, raw: str) -> Restriction:
    lower_inclusive = text.startswith("[")
    upper_inclusive = text.endswith("]")
    inner = text[1:-1].strip()
    if inner.count(",") > 1:
        raise InvalidVersionSpecification(f"Invalid version range, more than one comma: {raw}")

    if "," not in inner:
        if not (lower_inclusive and upper_inclusive):
            raise InvalidVersionSpecification(f"Single version must be surrounded by []: {raw}")
        if not inner:
            raise InvalidVersionSpecification(f"Empty version in range: {raw}")
        return Restriction(inner, True, inner, True)

    lower, upper = (part.strip() or None for part in inner.split(","))
    if lower is not None and upper is not None:
        low, high = parse_version(lower), parse_version(upper)
        if high < low or (high == low and not (lower_inclusive and upper_inclusive)):
            raise InvalidVersionSpecification(f"Range defies version ordering: {raw}")
    return Restriction(lower, lower_inclusive, upper, upper_inclusive)


def _check_not_overlapping(previous: Restriction, current: Restriction, raw: str) -> None:
    if previous.upper is None or current.lower is None:
        raise InvalidVersionSpecification(f"Ranges overlap: {raw}")
    prev_high, cur_low = parse_version(previous.upper), parse_version(current.lower)
    if cur_low < prev_high or (
        cur_low == prev_high and previous.upper_inclusive and current.lower_inclusive
    ):
        raise InvalidVersionSpecification(f"Ranges overlap: {raw}")
