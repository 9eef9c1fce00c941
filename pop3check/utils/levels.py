#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Threshold ranges as known from the monitoring plug-in guidelines

A range is given as 'min:max', 'min:', ':max' (or '~:max') or just 'max' (meaning
'0:max'). A value outside of the range raises an alert. If the range is prefixed
with '@' the logic is inverted and a value *inside* the range raises an alert.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from pop3check.utils.exceptions import InvalidThreshold

_BOUND = re.compile(r"^[-+]?\d+$")


class State(enum.IntEnum):
    OK = 0
    WARN = 1
    CRIT = 2
    UNKNOWN = 3


def state_name(state: State) -> str:
    """
    >>> state_name(State.CRIT)
    'CRITICAL'
    """
    return {
        State.OK: "OK",
        State.WARN: "WARNING",
        State.CRIT: "CRITICAL",
        State.UNKNOWN: "UNKNOWN",
    }[state]


def _parse_bound(raw: str, text: str) -> int:
    if not _BOUND.match(raw):
        raise InvalidThreshold(f"Invalid threshold {text!r}: {raw!r} is not an integer")
    return int(raw)


@dataclass(frozen=True)
class ThresholdRange:
    start: int | None
    end: int | None
    inverted: bool = False

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidThreshold(
                f"Invalid threshold: start {self.start} is greater than end {self.end}"
            )

    @classmethod
    def parse(cls, text: str) -> ThresholdRange:
        """Parse a range specification

        >>> ThresholdRange.parse("10")
        ThresholdRange(start=0, end=10, inverted=False)
        >>> ThresholdRange.parse("5:")
        ThresholdRange(start=5, end=None, inverted=False)
        >>> ThresholdRange.parse("~:3")
        ThresholdRange(start=None, end=3, inverted=False)
        >>> ThresholdRange.parse("@1:5")
        ThresholdRange(start=1, end=5, inverted=True)
        """
        spec = text.strip()
        inverted = spec.startswith("@")
        if inverted:
            spec = spec[1:]

        if not spec:
            raise InvalidThreshold(f"Invalid threshold {text!r}: empty range")

        if ":" not in spec:
            return cls(start=0, end=_parse_bound(spec, text), inverted=inverted)

        raw_start, raw_end = spec.split(":", 1)
        start = None if raw_start in ("", "~") else _parse_bound(raw_start, text)
        if start is None and raw_end == "":
            raise InvalidThreshold(f"Invalid threshold {text!r}: no bounds given")

        return cls(
            start=start,
            end=None if raw_end == "" else _parse_bound(raw_end, text),
            inverted=inverted,
        )

    def alerts(self, value: int) -> bool:
        """Tell whether @value raises an alert for this range

        >>> ThresholdRange.parse("1:1").alerts(0)
        True
        >>> ThresholdRange.parse("@1:5").alerts(3)
        True
        """
        inside = (self.start is None or value >= self.start) and (
            self.end is None or value <= self.end
        )
        return inside if self.inverted else not inside

    def __str__(self) -> str:
        """
        >>> str(ThresholdRange.parse("@:7"))
        '@~:7'
        """
        start = "~" if self.start is None else str(self.start)
        end = "" if self.end is None else str(self.end)
        return f"{'@' if self.inverted else ''}{start}:{end}"


def check_levels(
    value: int,
    *,
    warning: ThresholdRange | None,
    critical: ThresholdRange | None,
) -> State:
    """Rate @value, critical wins over warning

    >>> check_levels(3, warning=ThresholdRange.parse("5:10"), critical=None)
    <State.WARN: 1>
    >>> check_levels(0, warning=ThresholdRange.parse("5:"), critical=ThresholdRange.parse("1:"))
    <State.CRIT: 2>
    """
    if critical is not None and critical.alerts(value):
        return State.CRIT
    if warning is not None and warning.alerts(value):
        return State.WARN
    return State.OK
