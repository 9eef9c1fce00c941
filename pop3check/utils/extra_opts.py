#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Support for '--extra-opts=[<section>][@<config_file>]'

Options can be kept in an ini file so they don't show up on the command line:

    [check_pop3]
    host = mail.example.com
    username = monitoring
    password = secret
    delete

They are inserted in front of the command line arguments, so anything given
explicitly on the command line wins.
"""

import configparser
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from pop3check.utils.exceptions import InvalidConfiguration

LOGGER = logging.getLogger("pop3check.extra_opts")

DEFAULT_SECTION = "check_pop3"

_DEFAULT_SEARCH_PATH = (
    "/etc/nagios/plugins.ini",
    "/usr/local/nagios/etc/plugins.ini",
    "/usr/local/etc/nagios/plugins.ini",
    "/etc/opt/nagios/plugins.ini",
    "/etc/nagios-plugins.ini",
    "/usr/local/etc/nagios-plugins.ini",
    "/etc/opt/nagios-plugins.ini",
)

_FILE_NAMES = ("plugins.ini", "nagios-plugins.ini")


def _search_path() -> Sequence[Path]:
    if config_path := os.environ.get("NAGIOS_CONFIG_PATH"):
        return [Path(d) / name for d in config_path.split(":") if d for name in _FILE_NAMES]
    return [Path(p) for p in _DEFAULT_SEARCH_PATH]


def parse_spec(spec: str, default_section: str = DEFAULT_SECTION) -> tuple[str, Path | None]:
    """Split '[<section>][@<config_file>]'

    >>> parse_spec("")
    ('check_pop3', None)
    >>> parse_spec("mailbox@/etc/monitoring.ini")
    ('mailbox', PosixPath('/etc/monitoring.ini'))
    >>> parse_spec("@/etc/monitoring.ini")
    ('check_pop3', PosixPath('/etc/monitoring.ini'))
    """
    section, _sep, file = spec.partition("@")
    return section or default_section, Path(file) if file else None


def find_config_file() -> Path:
    for path in _search_path():
        if path.is_file():
            return path
    raise InvalidConfiguration(
        "No configuration file for --extra-opts found, searched: %s"
        % ", ".join(map(str, _search_path()))
    )


def read_section(path: Path, section: str) -> Sequence[str]:
    config = configparser.ConfigParser(allow_no_value=True, interpolation=None)
    LOGGER.debug("trying to read %r", path)
    try:
        files_read = config.read(path, encoding="utf-8")
    except configparser.Error as exc:
        raise InvalidConfiguration(f"Cannot parse {path}: {exc}") from exc
    if not files_read:
        raise InvalidConfiguration(f"Cannot read configuration file {path}")
    if not config.has_section(section):
        raise InvalidConfiguration(f"Section [{section}] not found in {path}")

    args = []
    for key, value in config.items(section):
        args.append(f"--{key}" if not value else f"--{key}={value}")
    LOGGER.info("read %d option(s) from [%s] in %s", len(args), section, path)
    return args


def expand_extra_opts(argv: Sequence[str], default_section: str = DEFAULT_SECTION) -> list[str]:
    """Replace every '--extra-opts' argument by the options it refers to

    The loaded options are put in front of the remaining arguments.
    """
    extra: list[str] = []
    remaining: list[str] = []
    index = 0
    while index < len(argv):
        arg = argv[index]
        index += 1
        if arg.startswith("--extra-opts="):
            spec = arg.partition("=")[2]
        elif arg == "--extra-opts":
            # the value is optional and may be given as the next argument
            spec = ""
            if index < len(argv) and not argv[index].startswith("-"):
                spec = argv[index]
                index += 1
        else:
            remaining.append(arg)
            continue
        section, path = parse_spec(spec, default_section)
        extra.extend(read_section(path or find_config_file(), section))
    return extra + remaining
