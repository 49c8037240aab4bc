"""Rate limit configuration with per-key overrides."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from fractions import Fraction

_NANOS_PER_SECOND = 10**9
_UNITS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": _NANOS_PER_SECOND,
    "m": 60 * _NANOS_PER_SECOND,
    "h": 3600 * _NANOS_PER_SECOND,
}
_MAX_NANOS = 2**63 - 1
_PART = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")


def parse_duration(text: str) -> float:
    """Parse a duration such as "1h30m" or "1.5s" into seconds.

    Accepts the units ns, us, µs, ms, s, m and h; raises ValueError otherwise.
    """
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return 0.0
    if not rest:
        raise ValueError(f'invalid duration "{text}"')

    total = Fraction(0)
    pos = 0
    while pos < len(rest):
        match = _PART.match(rest, pos)
        whole, frac, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not frac:
            raise ValueError(f'invalid duration "{text}"')
        if not unit:
            raise ValueError(f'missing unit in duration "{text}"')
        if unit not in _UNITS:
            raise ValueError(f'unknown unit "{unit}" in duration "{text}"')
        value = Fraction(int(whole or "0"))
        if frac:
            value += Fraction(int(frac), 10 ** len(frac))
        total += value * _UNITS[unit]
        pos = match.end()

    nanos = int(total)
    limit = _MAX_NANOS + 1 if negative else _MAX_NANOS
    if nanos > limit:
        raise ValueError(f'invalid duration "{text}"')
    return (-nanos if negative else nanos) / _NANOS_PER_SECOND


def _with_fraction(amount: int, size: int) -> str:
    whole, remainder = divmod(amount, size)
    if remainder == 0:
        return str(whole)
    digits = len(str(size)) - 1
    fraction = str(remainder).rjust(digits, "0").rstrip("0")
    return f"{whole}.{fraction}"


def format_duration(seconds: float) -> str:
    """Render a duration in seconds as text such as "1h2m3.5s" or "1.5ms"."""
    nanos = round(seconds * _NANOS_PER_SECOND)
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    amount = abs(nanos)
    if amount < _NANOS_PER_SECOND:
        if amount < 1_000:
            return f"{sign}{amount}ns"
        if amount < 1_000_000:
            return f"{sign}{_with_fraction(amount, 1_000)}\u00b5s"
        return f"{sign}{_with_fraction(amount, 1_000_000)}ms"
    hours, amount = divmod(amount, 3600 * _NANOS_PER_SECOND)
    minutes, amount = divmod(amount, 60 * _NANOS_PER_SECOND)
    secs = _with_fraction(amount, _NANOS_PER_SECOND)
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


@dataclass(frozen=True)
class Limit:
    """At most `value` requests per `window` seconds; `window_str` is the configured text."""

    window: float = 0.0
    value: int = 0
    window_str: str = ""


@dataclass
class LimiterConfig:
    """A default limit and overrides keyed by throttling key."""

    default: Limit = field(default_factory=Limit)
    overrides: dict[str, Limit] = field(default_factory=dict)

    def update(self) -> None:
        """Resolve every window text into seconds; raises ValueError on a bad duration."""
        self.default = replace(self.default, window=parse_duration(self.default.window_str))
        for key, limit in list(self.overrides.items()):
            self.overrides[key] = replace(limit, window=parse_duration(limit.window_str))

    def get(self, key: str) -> Limit:
        """The override for `key`, or the default limit."""
        return self.overrides.get(key, self.default)