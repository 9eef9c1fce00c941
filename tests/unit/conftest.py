#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import logging
from collections.abc import Iterator

import pytest

from tests.unit.mocks_and_helpers import FakePOP3


@pytest.fixture(autouse=True)
def _reset_fake_pop3() -> Iterator[None]:
    FakePOP3.instances.clear()
    yield
    FakePOP3.instances.clear()


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    # setup_console_logging() replaces the handlers of the package logger
    logger = logging.getLogger("pop3check")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
