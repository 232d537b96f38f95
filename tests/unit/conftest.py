# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from duplexhttp.api import set_dispatcher
from duplexhttp.config import HttpSettings
from duplexhttp.http.adapters import StubTransport
from duplexhttp.http.dispatcher import Dispatcher
from duplexhttp.http.options import PROCESS_DEFAULTS, ProcessDefaults
from duplexhttp.log import set_debug


@pytest.fixture(autouse=True)
def _reset_process_state():
    PROCESS_DEFAULTS.reset()
    set_debug(False)
    yield
    PROCESS_DEFAULTS.reset()
    set_debug(False)
    set_dispatcher(None)


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def dispatcher(transport: StubTransport) -> Dispatcher:
    return Dispatcher(transport, defaults=ProcessDefaults(), settings=HttpSettings())
