"""
Application context — built once per browser session and handed to every
page. Holds the settings, the API client and the session store.
"""

import logging
from dataclasses import dataclass, field
from typing import MutableMapping

import streamlit as st

from isoko_ui.api_client import ApiClient
from isoko_ui.config import Settings, settings as default_settings
from isoko_ui.session import SessionStore
from isoko_ui.storage import JsonFileStorage, MemoryStorage

logger = logging.getLogger(__name__)

CONTEXT_KEY = "isoko_context"


@dataclass
class AppContext:
    settings: Settings
    api: ApiClient
    store: SessionStore
    ui: dict = field(default_factory=dict)

    @property
    def user(self):
        return self.store.user

    def navigate(self, path: str) -> None:
        """Request a route change; the entry point picks it up on rerun."""
        self.ui["path"] = path


def build_context(settings: Settings | None = None, storage=None, api: ApiClient | None = None,
                  state: MutableMapping | None = None) -> AppContext:
    """Wire the API client, storage and session store together.

    Without a session file the token lives in `state` (st.session_state in
    the running app), so it is scoped to one browser session.
    """
    settings = settings or default_settings
    if storage is None:
        storage = JsonFileStorage(settings.SESSION_FILE) if settings.SESSION_FILE else MemoryStorage(state)

    ui: dict = {}
    store_ref: list[SessionStore] = []

    def on_unauthorized():
        # token rejected mid-session: treat like a logout without the server call
        if store_ref:
            store_ref[0].expire()

    api = api or ApiClient(base_url=settings.BACKEND_URL, timeout=settings.API_TIMEOUT)
    store = SessionStore(api, storage, navigate=lambda path: ui.__setitem__("path", path))
    store_ref.append(store)
    api.token_provider = store.token
    api.on_unauthorized = on_unauthorized
    return AppContext(settings=settings, api=api, store=store, ui=ui)


def get_context() -> AppContext:
    """The AppContext for the current browser session (created on first use)."""
    ctx = st.session_state.get(CONTEXT_KEY)
    if ctx is None:
        ctx = build_context(state=st.session_state)
        st.session_state[CONTEXT_KEY] = ctx
        logger.debug("Created application context")
    return ctx
