# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Maven version ordering and version range semantics.

Versions are compared the way Maven's `ComparableVersion` does: a version is split into numeric
and qualifier components on `.`, `-` and digit/letter transitions, and each `-` opens a nested
sub-list. Well known qualifiers sort as

    alpha < beta < milestone < rc < snapshot < (release) < sp

and anything unknown sorts after `sp`, lexically. Trailing "null" components are dropped, so
`1`, `1.0`, `1.0.0` and `1-ga` are all equal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Iterable, Union

from mvnfetch.base.exceptions import InvalidVersionSpecification

_QUALIFIERS = ("alpha", "beta", "milestone", "rc", "snapshot", "", "sp")
_RELEASE_INDEX = str(_QUALIFIERS.index(""))
_ALIASES = {"ga": "", "final": "", "release": "", "cr": "rc"}
_SHORT_ALIASES = {"a": "alpha", "b": "beta", "m": "milestone"}

_Item = Union[int, str, list]


def _qualifier_key(qualifier: str) -> str:
    if qualifier in _QUALIFIERS:
        return str(_QUALIFIERS.index(qualifier))
    return f"{len(_QUALIFIERS)}-{qualifier}"


def _string_item(value: str, followed_by_digit: bool) -> str:
    if followed_by_digit and len(value) == 1:
        value = _SHORT_ALIASES.get(value, value)
    return _ALIASES.get(value, value)


def _parse_item(is_digit: bool, buf: str) -> _Item:
    return int(buf) if is_digit else _string_item(buf, followed_by_digit=False)


def _is_null(item: _Item) -> bool:
    if isinstance(item, int):
        return item == 0
    if isinstance(item, str):
        return _qualifier_key(item) == _RELEASE_INDEX
    return len(item) == 0


def _normalize(items: list) -> list:
    for sub in items:
        if isinstance(sub, list):
            _normalize(sub)
    # Walks back over trailing sub-lists, so `1.0-alpha` normalizes like `1-alpha`.
    for index in range(len(items) - 1, -1, -1):
        item = items[index]
        if _is_null(item):
            del items[index]
        elif not isinstance(item, list):
            break
    return items


def _compare(left: _Item | None, right: _Item | None) -> int:
    if left is None and right is None:
        return 0
    if left is None:
        return -_compare(right, None)

    if isinstance(left, int):
        if right is None:
            return 0 if left == 0 else 1
        if isinstance(right, int):
            return (left > right) - (left < right)
        return 1

    if isinstance(left, str):
        ours = _qualifier_key(left)
        if right is None:
            return (ours > _RELEASE_INDEX) - (ours < _RELEASE_INDEX)
        if isinstance(right, str):
            theirs = _qualifier_key(right)
            return (ours > theirs) - (ours < theirs)
        return -1

    if right is None:
        return 0 if not left else _compare(left[0], None)
    if isinstance(right, (int, str)):
        return -1 if isinstance(right, int) else 1
    for index in range(max(len(left), len(right))):
        ours = left[index] if index < len(left) else None
        theirs = right[index] if index < len(right) else None
        result = _compare(ours, theirs)
        if result != 0:
            return result
    return 0


def _parse(version: str) -> list:
    version = version.lower()
    root: list = []
    current = root
    start = 0
    is_digit = False

    def open_sublist() -> list:
        nonlocal current
        sub: list = []
        current.append(sub)
        current = sub
        return sub

    for index, char in enumerate(version):
        if char == ".":
            current.append(0 if index == start else _parse_item(is_digit, version[start:index]))
            start = index + 1
        elif char == "-":
            current.append(0 if index == start else _parse_item(is_digit, version[start:index]))
            start = index + 1
            open_sublist()
        elif char.isdigit():
            if not is_digit and index > start:
                current.append(_string_item(version[start:index], followed_by_digit=True))
                start = index
                open_sublist()
            is_digit = True
        else:
            if is_digit and index > start:
                current.append(_parse_item(True, version[start:index]))
                start = index
                open_sublist()
            is_digit = False

    if len(version) > start:
        current.append(_parse_item(is_digit, version[start:]))
    return _normalize(root)


@total_ordering
class MavenVersion:
    """A version that compares like Maven's `ComparableVersion`."""

    def __init__(self, version: str) -> None:
        self.version = version
        self._items = _parse(version)

    @property
    def is_snapshot(self) -> bool:
        return self.version.upper().endswith("SNAPSHOT")

    def __eq__(self, other):
        if not isinstance(other, MavenVersion):
            return NotImplemented
        return _compare(self._items, other._items) == 0

    def __lt__(self, other):
        if not isinstance(other, MavenVersion):
            return NotImplemented
        return _compare(self._items, other._items) < 0

    def __hash__(self):
        return hash(repr(self._items))

    def __str__(self) -> str:
        return self.version

    def __repr__(self) -> str:
        return f"MavenVersion({self.version!r})"


@dataclass(frozen=True)
class Restriction:
    lower: MavenVersion | None
    lower_inclusive: bool
    upper: MavenVersion | None
    upper_inclusive: bool

    def contains(self, version: MavenVersion) -> bool:
        if self.lower is not None:
            if version < self.lower or (version == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if version > self.upper or (version == self.upper and not self.upper_inclusive):
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


_EVERYTHING = Restriction(None, False, None, False)
_RESTRICTION_RE = re.compile(r"([\[(])([^\[\]()]*)([\])])")


@dataclass(frozen=True)
class VersionRange:
    """A Maven version specification: either a soft `recommended` version or a set of ranges.

    `1.0` is a soft requirement that resolves to exactly `1.0`; `[1.0,2.0)`, `(,1.5]`, `[1.2]` and
    unions such as `[1.0,1.2),[1.5,)` are hard restrictions resolved against the versions a
    repository publishes.
    """

    spec: str
    restrictions: tuple[Restriction, ...]
    recommended: MavenVersion | None = None

    @classmethod
    def parse(cls, spec: str) -> VersionRange:
        spec = spec.strip()
        if not spec:
            raise InvalidVersionSpecification("Empty version specification.")
        if spec[0] not in "[(":
            if any(c in spec for c in "[]()"):
                raise InvalidVersionSpecification(f"Invalid version specification: {spec}")
            return cls(spec, (_EVERYTHING,), recommended=MavenVersion(spec))

        restrictions = []
        position = 0
        while position < len(spec):
            match = _RESTRICTION_RE.match(spec, position)
            if match is None:
                raise InvalidVersionSpecification(f"Unbounded range: {spec}")
            restrictions.append(cls._parse_restriction(spec, *match.groups()))
            position = match.end()
            if position < len(spec):
                if spec[position] != ",":
                    raise InvalidVersionSpecification(f"Invalid version specification: {spec}")
                position += 1
                if position == len(spec):
                    raise InvalidVersionSpecification(f"Unbounded range: {spec}")

        for previous, following in zip(restrictions, restrictions[1:]):
            if (
                previous.upper is None
                or following.lower is None
                or following.lower < previous.upper
            ):
                raise InvalidVersionSpecification(f"Ranges overlap: {spec}")
        return cls(spec, tuple(restrictions))

    @staticmethod
    def _parse_restriction(spec: str, opening: str, body: str, closing: str) -> Restriction:
        lower_inclusive = opening == "["
        upper_inclusive = closing == "]"
        if "," not in body:
            if not (lower_inclusive and upper_inclusive) or not body.strip():
                raise InvalidVersionSpecification(
                    f"Single version must be surrounded by []: {spec}"
                )
            version = MavenVersion(body.strip())
            return Restriction(version, True, version, True)

        lower_str, _, upper_str = body.partition(",")
        if "," in upper_str:
            raise InvalidVersionSpecification(f"Invalid version specification: {spec}")
        lower = MavenVersion(lower_str.strip()) if lower_str.strip() else None
        upper = MavenVersion(upper_str.strip()) if upper_str.strip() else None
        if lower is not None and upper is not None:
            if upper < lower:
                raise InvalidVersionSpecification(
                    f"Range defies version ordering: {spec}"
                )
            if lower == upper and not (lower_inclusive and upper_inclusive):
                raise InvalidVersionSpecification(f"Range is empty: {spec}")
        return Restriction(lower, lower_inclusive, upper, upper_inclusive)

    @property
    def is_range(self) -> bool:
        return self.recommended is None

    def contains(self, version: str | MavenVersion) -> bool:
        if isinstance(version, str):
            version = MavenVersion(version)
        if self.recommended is not None:
            return version == self.recommended
        return any(r.contains(version) for r in self.restrictions)

    def select(self, available: Iterable[str]) -> str | None:
        """Returns the highest available version satisfying this specification, if any."""
        if self.recommended is not None:
            return self.recommended.version
        matching = [MavenVersion(v) for v in available if self.contains(v)]
        return max(matching).version if matching else None

    def __str__(self) -> str:
        return self.spec
