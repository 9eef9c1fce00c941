#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""User-defined exceptions of the POP3 check."""

__all__ = [
    "InvalidConfiguration",
    "InvalidThreshold",
    "MKBailOut",
    "MKException",
    "MKTimeout",
]


# never used directly in the code. Just some wrapper to make all of our
# exceptions handleable with one call
class MKException(Exception):
    pass


# This is raised to print an error message and then end the program.
# The program should catch this at top level and end exit the program
# with exit code 3, in order to be compatible with monitoring plug-in API.
class MKBailOut(MKException):
    pass


class InvalidConfiguration(MKBailOut):
    """The options given do not allow to run the check, e.g. no threshold was set"""


class InvalidThreshold(MKBailOut):
    """A warning or critical range could not be parsed"""


class MKTimeout(MKException):
    """Raise when a timeout is reached.

    See also:
        `pop3check.utils.timeout` has a context manager using it.
    """
