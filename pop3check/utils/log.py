#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import logging
import sys
import warnings

logger = logging.getLogger("pop3check")


def get_formatter(format_str: str = "%(levelname)s [%(name)s] %(message)s") -> logging.Formatter:
    return logging.Formatter(format_str)


def verbosity_to_log_level(verbosity: int, debug: bool = False) -> int:
    """Map the number of '-v' to a log level

    An active check must not write anything but its result, so without '-v' or '--debug'
    only critical messages are shown.

    >>> verbosity_to_log_level(0)
    50
    >>> verbosity_to_log_level(2)
    10
    >>> verbosity_to_log_level(0, debug=True)
    30
    """
    if not debug and verbosity == 0:
        return logging.CRITICAL
    return {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)


def setup_console_logging(verbosity: int, debug: bool = False) -> None:
    """Log to stderr, stdout is reserved for the check result"""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(get_formatter())
    logger.handlers[:] = [handler]
    logger.setLevel(verbosity_to_log_level(verbosity, debug))
    logger.propagate = False

    # disable anything that might write to stderr by default
    if not debug and verbosity == 0 and not sys.warnoptions:
        warnings.simplefilter("ignore")
