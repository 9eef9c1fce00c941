#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Read passwords from a password store file instead of the command line

The store is a plain text file with one '<ident>:<password>' entry per line. An
argument like '--password-reference=mailbox:/etc/check_pop3/passwords' resolves to
the password stored under 'mailbox'. This keeps secrets out of the process list.
"""

import logging
from pathlib import Path

from pop3check.utils.exceptions import InvalidConfiguration

LOGGER = logging.getLogger("pop3check.password_store")


def load(path: Path) -> dict[str, str]:
    passwords = {}
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidConfiguration(f"Cannot read password store {path}: {exc}") from exc

    for line in content.splitlines():
        if not line.strip() or line.startswith("#"):
            continue
        ident, sep, password = line.partition(":")
        if not sep:
            LOGGER.warning("ignoring malformed line in password store %s", path)
            continue
        passwords[ident.strip()] = password
    return passwords


def lookup(path: Path, ident: str) -> str:
    try:
        return load(path)[ident]
    except KeyError as exc:
        raise InvalidConfiguration(f"Password {ident!r} does not exist in {path}") from exc


def resolve_reference(reference: str) -> str:
    """Resolve a '<ident>:<file>' reference"""
    ident, sep, file = reference.partition(":")
    if not sep or not ident or not file:
        raise InvalidConfiguration(
            f"Invalid password reference {reference!r}, expected '<ident>:<file>'"
        )
    return lookup(Path(file), ident)
