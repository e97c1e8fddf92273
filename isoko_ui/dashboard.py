"""
Streamlit entry point — session-gated, role-based routing.

Run with:  streamlit run isoko_ui/dashboard.py

Flow on every rerun:
  1. Build (or reuse) the AppContext for this browser session
  2. Validate any persisted token once (GET /auth/me)
  3. Resolve the requested path through the route table and its guards
  4. Render the page, inside the dashboard shell for signed-in routes
"""

import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import streamlit as st

from isoko_ui.config import configure_logging, settings

# ── Page config (must be first Streamlit call) ────────
st.set_page_config(
    page_title=settings.APP_TITLE,
    page_icon="💰",
    layout="wide",
)

from isoko_ui.api_client import AuthenticationError
from isoko_ui.context import get_context
from isoko_ui.guards import Loading
from isoko_ui.layout import render_shell
from isoko_ui.routes import navigate_to

configure_logging()
logger = logging.getLogger("isoko_ui")

PAGE_PARAM = "page"


def _requested_path(ctx) -> str | None:
    # in-app navigation wins over the address bar
    return ctx.ui.get("path") or st.query_params.get(PAGE_PARAM)


def main():
    ctx = get_context()
    ctx.store.check_session()

    route, decision = navigate_to(_requested_path(ctx), ctx.store.session)

    if isinstance(decision, Loading):
        with st.spinner("Checking your session..."):
            st.stop()

    ctx.ui["path"] = route.path
    if st.query_params.get(PAGE_PARAM) != route.path:
        st.query_params[PAGE_PARAM] = route.path

    if route.in_shell:
        render_shell(ctx, route)
    else:
        route.page(ctx)


try:
    main()
except AuthenticationError:
    # the session store has already been cleared and pointed at /login
    st.rerun()
except Exception:
    logger.exception("Unhandled error while rendering the page")
    st.error("Something went wrong while loading this page. Please refresh and try again.")
