#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import logging

import pytest

from pop3check.utils import log


@pytest.mark.parametrize(
    "verbosity, debug, expected",
    [
        (0, False, logging.CRITICAL),
        (1, False, logging.INFO),
        (2, False, logging.DEBUG),
        (3, False, logging.DEBUG),
        (0, True, logging.WARNING),
    ],
)
def test_verbosity_to_log_level(verbosity: int, debug: bool, expected: int) -> None:
    assert log.verbosity_to_log_level(verbosity, debug) == expected


def test_console_logging_goes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    log.setup_console_logging(1)
    logging.getLogger("pop3check.mailbox").info("logged in")
    logging.getLogger("pop3check.mailbox").debug("not shown")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "INFO [pop3check.mailbox] logged in\n"


def test_silent_by_default(capsys: pytest.CaptureFixture[str]) -> None:
    log.setup_console_logging(0)
    logging.getLogger("pop3check.mailbox").warning("failed to delete mail 1")
    assert capsys.readouterr().err == ""
