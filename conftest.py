from __future__ import annotations

import asyncio
import inspect
from typing import Any

import pytest


MARKERS = {
    "asyncio": "run the test coroutine in a fresh asyncio event loop",
    "unit": "fast tests without an ASGI application",
    "security": "configuration and OAuth2 documentation guarantees",
    "integration": "tests that drive the ASGI application over httpx",
}


def pytest_configure(config: Any) -> None:
    for name, description in MARKERS.items():
        config.addinivalue_line("markers", f"{name}: {description}")


@pytest.fixture
def event_loop() -> asyncio.AbstractEventLoop:
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        yield loop
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        asyncio.set_event_loop(None)
        loop.close()


def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    if not inspect.iscoroutinefunction(pyfuncitem.obj):
        return None

    loop = pyfuncitem.funcargs.get("event_loop")
    owns_loop = loop is None
    if owns_loop:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

    # funcargs holds the whole fixture closure; pass only what the test declares.
    testargs = {arg: pyfuncitem.funcargs[arg] for arg in pyfuncitem._fixtureinfo.argnames}
    try:
        loop.run_until_complete(pyfuncitem.obj(**testargs))
    finally:
        if owns_loop:
            try:
                loop.run_until_complete(loop.shutdown_asyncgens())
            finally:
                asyncio.set_event_loop(None)
                loop.close()

    return True
