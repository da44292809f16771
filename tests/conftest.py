from __future__ import annotations

import pytest

from vimterp import EditorSession
from vimterp.runtime import EditorOptions
from vimterp.store import SharedStore, reset_default_store


@pytest.fixture(autouse=True)
def fresh_store() -> SharedStore:
    """Marks and registers are process-wide; every test starts empty."""

    return reset_default_store()


@pytest.fixture
def session(fresh_store: SharedStore) -> EditorSession:
    return EditorSession(store=fresh_store, options=EditorOptions())


@pytest.fixture
def make_view(session: EditorSession):
    def factory(text: str = "", *, name: str = "default", writable: bool = True):
        return session.open_view(text, name=name, writable=writable)

    return factory
