#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Overall time limit for a single check run

The limit is implemented with SIGALRM, so it only works in the main thread and it
interrupts blocking socket calls, which is exactly what a hanging POP3 server needs.
"""

from __future__ import annotations

import signal
from types import FrameType
from typing import Any, Final, NoReturn

from pop3check.utils.exceptions import MKTimeout

__all__ = ["MKTimeout", "Timeout"]


class Timeout:
    """Context manager raising MKTimeout after @seconds

    >>> with Timeout(0) as t:
    ...     pass
    >>> t.signaled
    False
    """

    def __init__(self, seconds: int, *, message: str | None = None) -> None:
        if seconds < 0:
            raise ValueError(f"timeout must not be negative, got {seconds}")
        self.seconds: Final = seconds
        self.message: Final = message or f"Check timed out after {seconds} seconds"
        self._signaled = False
        self._previous_handler: Any = None

    @property
    def signaled(self) -> bool:
        return self._signaled

    def _handler(self, signum: int, frame: FrameType | None) -> NoReturn:
        self._signaled = True
        raise MKTimeout(self.message)

    def __enter__(self) -> Timeout:
        self._signaled = False
        # seconds == 0 means "no limit"
        if self.seconds:
            self._previous_handler = signal.signal(signal.SIGALRM, self._handler)
            signal.alarm(self.seconds)
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.seconds:
            return
        signal.alarm(0)
        signal.signal(
            signal.SIGALRM,
            signal.SIG_DFL if self._previous_handler is None else self._previous_handler,
        )
