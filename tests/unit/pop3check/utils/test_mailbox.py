#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import poplib

import pytest

from tests.unit.mocks_and_helpers import fake_pop3_factory, FakePOP3, unreachable

from pop3check.utils.exceptions import MKTimeout
from pop3check.utils.mailbox import ConnectError, DeleteResult, Mailbox, verified_result


def _mailbox(**behaviour: object) -> Mailbox:
    return Mailbox(
        "pop.example.com",
        port=1110,
        username="monitoring",
        password="secret",
        timeout=5,
        client_factory=fake_pop3_factory(**behaviour),
    )


def test_connect_logs_in() -> None:
    with _mailbox() as mailbox:
        mailbox.connect()

    (client,) = FakePOP3.instances
    assert (client.host, client.port, client.timeout) == ("pop.example.com", 1110, 5)
    assert client.commands[:2] == [("USER", "monitoring"), ("PASS", "secret")]
    assert client.closed


def test_connect_failure_names_the_host() -> None:
    mailbox = Mailbox("pop.example.com", client_factory=unreachable)
    with pytest.raises(ConnectError, match="pop.example.com"):
        mailbox.connect()


def test_login_failure_closes_the_session() -> None:
    with pytest.raises(ConnectError, match="pop.example.com"):
        with _mailbox(password="other") as mailbox:
            mailbox.connect()

    (client,) = FakePOP3.instances
    assert client.commands[-1] == ("QUIT", None)
    assert client.closed


@pytest.mark.parametrize("messages", [0, 1, 42])
def test_message_count(messages: int) -> None:
    with _mailbox(messages=messages) as mailbox:
        mailbox.connect()
        assert mailbox.message_count() == messages


def test_negative_count_is_a_connect_error() -> None:
    with pytest.raises(ConnectError, match="pop.example.com"):
        with _mailbox(messages=-1) as mailbox:
            mailbox.connect()
            mailbox.message_count()

    assert FakePOP3.instances[0].closed


def test_delete_mails_in_ascending_order() -> None:
    with _mailbox(messages=3) as mailbox:
        mailbox.connect()
        result = mailbox.delete_mails(mailbox.message_count())

    (client,) = FakePOP3.instances
    assert client.deleted == [1, 2, 3]
    assert client.commands[-1] == ("QUIT", None)
    assert result == DeleteResult(requested=3, failed=())
    assert result.deleted == 3


def test_delete_failures_are_collected_and_session_closed() -> None:
    with _mailbox(messages=4, failing_deletes=frozenset({2, 3})) as mailbox:
        mailbox.connect()
        result = mailbox.delete_mails(mailbox.message_count())

    (client,) = FakePOP3.instances
    assert client.deleted == [1, 2, 3, 4]
    assert result.failed == (2, 3)
    assert result.deleted == 2
    assert client.closed


def test_delete_nothing() -> None:
    with _mailbox(messages=0) as mailbox:
        mailbox.connect()
        assert mailbox.delete_mails(0) == DeleteResult(requested=0)

    assert FakePOP3.instances[0].deleted == []


def test_session_closed_when_loop_is_interrupted() -> None:
    class Interrupted(Exception):
        pass

    class InterruptingPOP3(FakePOP3):
        def dele(self, which: int) -> bytes:
            if which == 2:
                raise Interrupted()
            return super().dele(which)

    mailbox = Mailbox("pop.example.com", password="secret", client_factory=InterruptingPOP3)
    with pytest.raises(Interrupted):
        with mailbox:
            mailbox.connect()
            mailbox.delete_mails(3)

    (client,) = FakePOP3.instances
    assert client.deleted == [1]
    assert client.closed


def test_failing_quit_still_releases_socket() -> None:
    with _mailbox(fail_quit=True) as mailbox:
        mailbox.connect()

    (client,) = FakePOP3.instances
    assert client.commands[-1] == ("QUIT", None)
    assert client.released


def test_close_is_idempotent() -> None:
    mailbox = _mailbox()
    mailbox.connect()
    mailbox.close()
    mailbox.close()
    assert [c for c, _ in FakePOP3.instances[0].commands].count("QUIT") == 1


def test_close_without_connect() -> None:
    _mailbox().close()
    assert not FakePOP3.instances


def test_verified_result_rejects_errors() -> None:
    with pytest.raises(poplib.error_proto):
        verified_result(b"-ERR no such message")


def test_socket_released_after_quit() -> None:
    with _mailbox() as mailbox:
        mailbox.connect()

    assert FakePOP3.instances[0].released


def test_timeout_drops_connection_without_quit() -> None:
    with pytest.raises(MKTimeout):
        with _mailbox(messages=3) as mailbox:
            mailbox.connect()
            raise MKTimeout("Check timed out after 15 seconds")

    (client,) = FakePOP3.instances
    assert ("QUIT", None) not in client.commands
    assert client.released


def test_socket_released_when_quit_is_interrupted() -> None:
    class HangingPOP3(FakePOP3):
        def quit(self) -> bytes:
            self.commands.append(("QUIT", None))
            raise MKTimeout("Check timed out after 15 seconds")

    mailbox = Mailbox("pop.example.com", password="secret", client_factory=HangingPOP3)
    with pytest.raises(MKTimeout):
        with mailbox:
            mailbox.connect()

    assert FakePOP3.instances[0].released
