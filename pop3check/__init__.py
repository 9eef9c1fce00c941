#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Active check for POP3 mailboxes.

Counts the messages in a mailbox (and optionally deletes them) and rates the count
against warning and critical ranges."""

__version__ = "0.2.0"
