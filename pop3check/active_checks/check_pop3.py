#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_pop3 - Count (and optionally delete) the messages in a POP3 mailbox

Example: a process sends one mail per day to a mailbox. Check that exactly one mail
arrived and clear the mailbox for the next day:

    check_pop3 -h myhost -u myname -p mypass -c 1:1 --delete
"""

import argparse
import enum
import logging
import poplib
import sys
from collections.abc import Callable, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pop3check import __version__
from pop3check.utils import password_store
from pop3check.utils.exceptions import InvalidConfiguration, InvalidThreshold, MKBailOut
from pop3check.utils.extra_opts import expand_extra_opts
from pop3check.utils.levels import check_levels, State, state_name, ThresholdRange
from pop3check.utils.log import setup_console_logging
from pop3check.utils.mailbox import ClientFactory, ConnectError, Mailbox
from pop3check.utils.timeout import MKTimeout, Timeout

LOGGER = logging.getLogger("pop3check.check_pop3")

CheckResult = tuple[State, str]

_EPILOG = """\
Currently only two POP3 mailbox actions are supported: count and delete

Count - Counts the number of messages on the server. The messages are not modified.
Delete - Deletes all messages on the server (and returns the number deleted)

THRESHOLDs for -w and -c are specified 'min:max' or 'min:' or ':max'
(or 'max'). If specified '@min:max', a warning status will be generated
if the count *is* inside the specified range.
"""


class Mode(enum.Enum):
    COUNT = "count"
    DELETE = "delete"


class CheckConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(default=poplib.POP3_PORT, gt=0, lt=65536)
    username: None | str = None
    password: None | str = None
    mode: Mode = Mode.COUNT
    warning: None | ThresholdRange = None
    critical: None | ThresholdRange = None
    timeout: int = Field(default=15, ge=0)
    verbose: int = 0
    debug: bool = False


class _UsageAction(argparse.Action):
    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: object,
        option_string: None | str = None,
    ) -> None:
        parser.print_usage()
        parser.exit()


def parse_arguments(argv: Sequence[str]) -> argparse.Namespace:
    # -h is the host, as it always was for this plug-in
    parser = argparse.ArgumentParser(
        prog="check_pop3",
        description="Nagios plugin for POP3 mailboxes",
        epilog=_EPILOG,
        formatter_class=argparse.RawTextHelpFormatter,
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Print detailed help screen")
    parser.add_argument(
        "-?",
        "--usage",
        action=_UsageAction,
        nargs=0,
        default=argparse.SUPPRESS,
        help="Print usage information",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Print version information",
    )
    parser.add_argument(
        "--extra-opts",
        metavar="[SECTION][@CONFIG_FILE]",
        help="Section and/or config_file from which to load extra options (may repeat)",
    )
    parser.add_argument(
        "-w",
        "--warning",
        metavar="INTEGER:INTEGER",
        help="Minimum and maximum number of allowable result, outside of which a\n"
        "warning will be generated. If omitted, no warning is generated.",
    )
    parser.add_argument(
        "-c",
        "--critical",
        metavar="INTEGER:INTEGER",
        help="Minimum and maximum number of the generated result, outside of\n"
        "which a critical will be generated.",
    )
    parser.add_argument(
        "-h",
        "--host",
        default="localhost.localdomain",
        help="POP3 Host (defaults to localhost.localdomain)",
    )
    parser.add_argument(
        "-P",
        "--port",
        type=int,
        default=poplib.POP3_PORT,
        help=f"POP3 port (defaults to {poplib.POP3_PORT})",
    )
    parser.add_argument("-u", "--username", "--user", help="POP3 Username")

    group = parser.add_mutually_exclusive_group()
    group.add_argument("-p", "--password", help="POP3 password")
    group.add_argument(
        "--password-reference",
        metavar="ID:FILE",
        help="Read the POP3 password stored under ID in the password store FILE",
    )

    parser.add_argument(
        "--count",
        action="store_true",
        help="Count the number of messages on the server. The messages on the server are not\n"
        "modified. This is the default action.",
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete all messages on the server. Counts how many messages were deleted.",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=15,
        help="Seconds before plugin times out (default: 15)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Show details for command-line debugging (can repeat up to 3 times)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug mode (keep some exceptions unhandled)",
    )

    try:
        return parser.parse_args(argv)
    except SystemExit as e:
        # we have no efficient way to control the output on stderr but at least we can return
        # UNKNOWN
        raise SystemExit(State.UNKNOWN) from e


def _parse_threshold(option: str, text: None | str) -> None | ThresholdRange:
    if text is None:
        return None
    try:
        return ThresholdRange.parse(text)
    except InvalidThreshold as exc:
        raise InvalidThreshold(f"--{option}: {exc}") from exc


def make_config(args: argparse.Namespace) -> CheckConfig:
    """Validate the parsed arguments. Nothing in here touches the network."""
    if args.warning is None and args.critical is None:
        raise InvalidConfiguration("You need to specify a threshold argument")

    warning = _parse_threshold("warning", args.warning)
    critical = _parse_threshold("critical", args.critical)

    password = (
        password_store.resolve_reference(args.password_reference)
        if args.password_reference
        else args.password
    )

    try:
        return CheckConfig(
            host=args.host,
            port=args.port,
            username=args.username,
            password=password,
            mode=Mode.DELETE if args.delete else Mode.COUNT,
            warning=warning,
            critical=critical,
            timeout=args.timeout,
            verbose=args.verbose,
            debug=args.debug,
        )
    except ValidationError as exc:
        raise InvalidConfiguration(
            "Invalid arguments: %s"
            % ", ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())
        ) from exc


def summary(mode: Mode, count: int) -> str:
    """
    >>> summary(Mode.COUNT, 1)
    'Counted 1 message'
    >>> summary(Mode.DELETE, 0)
    'Deleted 0 messages'
    """
    action = "Deleted" if mode is Mode.DELETE else "Counted"
    return f"{action} {count} message{'' if count == 1 else 's'}"


def check_pop3(config: CheckConfig, client_factory: ClientFactory = poplib.POP3) -> CheckResult:
    with Mailbox(
        config.host,
        port=config.port,
        username=config.username,
        password=config.password,
        timeout=config.timeout or None,
        # protocol trace starting with -vvv
        debug_level=min(max(config.verbose - 2, 0), 2),
        client_factory=client_factory,
    ) as mailbox:
        mailbox.connect()
        count = mailbox.message_count()
        deleted = None
        if config.mode is Mode.DELETE:
            # the summary reports the messages found, the acknowledged deletions are logged
            deleted = mailbox.delete_mails(count).deleted

    state = check_levels(count, warning=config.warning, critical=config.critical)
    LOGGER.info(
        "%d message(s)%s, warning=%s, critical=%s: %s",
        count,
        "" if deleted is None else f" ({deleted} deleted)",
        config.warning,
        config.critical,
        state_name(state),
    )
    return state, summary(config.mode, count)


def _active_check_main_core(
    check_fn: Callable[[CheckConfig], CheckResult],
    argv: Sequence[str],
) -> CheckResult:
    """Main logic for the active check: every error ends up as a state and a message"""
    debug = False
    try:
        args = parse_arguments(expand_extra_opts(argv))
        debug = args.debug
        setup_console_logging(args.verbose, debug)

        config = make_config(args)
        LOGGER.debug("configuration: %r", config.model_copy(update={"password": "****"}))

        with Timeout(config.timeout):
            return check_fn(config)
    except (MKBailOut, ConnectError, MKTimeout) as e:
        if debug:
            raise
        return State.UNKNOWN, str(e)
    except Exception as e:
        if debug:
            raise
        return State.UNKNOWN, "Unhandled exception: %r" % e


def _output_check_result(text: str) -> None:
    """Write the check result message, it has to be a single line

    >>> _output_check_result("Counted 3 messages")
    Counted 3 messages
    """
    sys.stdout.write(" ".join(text.splitlines()))
    sys.stdout.write("\n")


def main(argv: Sequence[str] | None = None) -> int:
    """Evaluate the check, write the result and return the exit code:
    OK: 0
    WARN: 1
    CRIT: 2
    UNKNOWN: 3
    """
    state, text = _active_check_main_core(check_pop3, sys.argv[1:] if argv is None else argv)
    _output_check_result(text)
    return int(state)


if __name__ == "__main__":
    sys.exit(main())
