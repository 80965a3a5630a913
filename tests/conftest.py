from __future__ import annotations

from pathlib import Path

import pytest

_POSIX_TEST_FILES = {
    "test_terminal_session.py",
    "test_console.py",
}

_THREADED_TEST_FILES = {
    "test_interrupt_router.py",
    "test_console.py",
}


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))
        name = path.name

        if name in _POSIX_TEST_FILES:
            item.add_marker(pytest.mark.posix)

        if name in _THREADED_TEST_FILES:
            item.add_marker(pytest.mark.slow)
