#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

"""POP3 mailbox access for the mailbox active check
Current responsibilities include:
* connect and authenticate (USER/PASS)
* count messages
* delete messages by sequence number
* close the session on every exit path
"""

import logging
import poplib
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType
from typing import Protocol

from pop3check.utils.exceptions import MKTimeout

LOGGER = logging.getLogger("pop3check.mailbox")

MailIndex = int


class POP3Client(Protocol):
    """The parts of poplib.POP3 we rely on"""

    def set_debuglevel(self, level: int) -> None: ...

    def user(self, user: str) -> bytes: ...

    def pass_(self, pswd: str) -> bytes: ...

    def stat(self) -> tuple[int, int]: ...

    def dele(self, which: MailIndex) -> bytes: ...

    def quit(self) -> bytes: ...

    def close(self) -> None: ...


ClientFactory = Callable[..., POP3Client]


class ConnectError(Exception):
    pass


@dataclass(frozen=True)
class DeleteResult:
    requested: int
    failed: tuple[MailIndex, ...] = ()

    @property
    def deleted(self) -> int:
        """Number of DELE commands the server acknowledged

        >>> DeleteResult(requested=3, failed=(2,)).deleted
        2
        """
        return self.requested - len(self.failed)


def verified_result(data: bytes) -> bytes:
    """Return a POP3 server response or raise an exception if it is not "+OK"

    >>> verified_result(b"+OK 2 messages")
    b'+OK 2 messages'
    """
    if not data.startswith(b"+OK"):
        raise poplib.error_proto(data)
    return data


class Mailbox:
    """A single POP3 session

    The session is opened by connect() and closed when leaving the context, no
    matter how it is left:

    >>> with Mailbox("mail.example.com", username="me", password="secret") as mailbox:  # doctest: +SKIP
    ...     mailbox.connect()
    ...     mailbox.delete_mails(mailbox.message_count())
    """

    def __init__(
        self,
        server: str,
        *,
        port: int = poplib.POP3_PORT,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        debug_level: int = 0,
        client_factory: ClientFactory = poplib.POP3,
    ) -> None:
        self._server = server
        self._port = port
        self._username = username
        self._password = password
        self._timeout = timeout
        self._debug_level = debug_level
        self._client_factory = client_factory
        self._connection: POP3Client | None = None

    def __enter__(self) -> "Mailbox":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        # a server that made us time out won't answer QUIT either
        self.close(send_quit=exc_type is None or not issubclass(exc_type, MKTimeout))

    def connect(self) -> None:
        assert self._connection is None

        LOGGER.debug("connect: %r %r timeout=%r", self._server, self._port, self._timeout)
        try:
            connection = self._client_factory(self._server, self._port, timeout=self._timeout)
        except Exception as exc:
            raise ConnectError(f"Error connecting to server: {self._server} ({exc})") from exc

        # keep the socket around so close() can release it even if the login fails
        self._connection = connection
        connection.set_debuglevel(self._debug_level)

        try:
            if self._username is not None:
                verified_result(connection.user(self._username))
            if self._password is not None:
                verified_result(connection.pass_(self._password))
        except Exception as exc:
            raise ConnectError(f"Error connecting to server: {self._server} ({exc})") from exc
        LOGGER.info("logged in to %s as %r", self._server, self._username)

    def message_count(self) -> int:
        """Return the number of messages in the mailbox (STAT)"""
        assert self._connection is not None
        try:
            count, size = self._connection.stat()
        except Exception as exc:
            raise ConnectError(f"Error connecting to server: {self._server} ({exc})") from exc

        if count < 0:
            raise ConnectError(f"Error connecting to server: {self._server}")

        LOGGER.info("mailbox contains %d message(s), %d octets", count, size)
        return count

    def delete_mails(self, count: int) -> DeleteResult:
        """Mark the messages 1..@count as deleted

        A failing DELE does not stop the loop, the index is recorded instead. The
        server expunges the marked messages when the session is closed."""
        assert self._connection is not None
        failed: list[MailIndex] = []
        for index in range(1, count + 1):
            LOGGER.debug("delete mail %d", index)
            try:
                verified_result(self._connection.dele(index))
            except (poplib.error_proto, OSError) as exc:
                LOGGER.warning("failed to delete mail %d: %r", index, exc)
                failed.append(index)

        if failed:
            LOGGER.warning(
                "%d of %d delete requests failed: %s",
                len(failed),
                count,
                ", ".join(map(str, failed)),
            )
        return DeleteResult(requested=count, failed=tuple(failed))

    def close(self, *, send_quit: bool = True) -> None:
        """End the session, the socket is released in any case

        Without @send_quit the connection is just dropped, the server then discards
        the deletion marks of this session."""
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        try:
            if send_quit:
                verified_result(connection.quit())
                LOGGER.debug("closed session on %s", self._server)
        except (poplib.error_proto, OSError) as exc:
            LOGGER.warning("failed to close session on %s cleanly: %r", self._server, exc)
        finally:
            connection.close()
