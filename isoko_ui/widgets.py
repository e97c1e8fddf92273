"""
Small Streamlit helpers shared by the dashboard pages.
"""

from typing import Any, Callable

import pandas as pd
import streamlit as st

from isoko_ui.api_client import ApiError, AuthenticationError
from isoko_ui.formatters import badge_markdown, format_priority, format_status
from isoko_ui.panels import PanelResults, unwrap


def api_call(fn: Callable[..., dict], *args, **kwargs) -> Any:
    """Call an API function; show the error inline and return None on failure."""
    try:
        return unwrap(fn(*args, **kwargs))
    except AuthenticationError:
        # the session store has already been cleared and pointed at /login
        st.rerun()
    except ApiError as exc:
        st.error(exc.message)
        return None


def api_submit(fn: Callable[..., dict], *args, success: str = "Saved.", **kwargs) -> bool:
    """Call a create/update endpoint and report the outcome inline."""
    try:
        envelope = fn(*args, **kwargs)
    except AuthenticationError:
        st.rerun()
        return False
    except ApiError as exc:
        st.error(exc.message)
        return False
    if not envelope.get("success"):
        st.error(envelope.get("message") or "Request failed.")
        return False
    st.success(envelope.get("message") or success)
    return True


def panel_error(results: PanelResults, name: str) -> bool:
    """Show a panel's own error message; True if the panel failed."""
    if name in results.errors:
        st.warning(f"Could not load this section: {results.errors[name]}")
        return True
    return False


def items_of(data: Any) -> list:
    """List payloads arrive either bare or as {items, pagination}."""
    if isinstance(data, dict):
        return data.get("items", [])
    return data or []


def records_frame(items: list[dict], columns: list[str], numeric: tuple[str, ...] = ()) -> pd.DataFrame:
    """DataFrame with a fixed column order; missing columns are filled blank."""
    df = pd.DataFrame(items)
    for col in columns:
        if col not in df.columns:
            df[col] = None
    df = df[columns]
    for col in numeric:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def status_color(val):
    color = {
        "green": "background-color: #c8e6c9; color: #1b5e20;",
        "red": "background-color: #ffcdd2; color: #b71c1c;",
        "orange": "background-color: #ffe0b2; color: #e65100;",
        "yellow": "background-color: #fff9c4; color: #f57f17;",
        "blue": "background-color: #bbdefb; color: #0d47a1;",
    }
    badge = format_status(val)
    if badge.color == "gray":
        # risk and urgency levels share the table colouring
        badge = format_priority(val)
    return color.get(badge.color, "")


def show_table(df: pd.DataFrame, status_column: str | None = None, empty: str = "No records found."):
    if df.empty:
        st.info(empty)
        return
    if status_column and status_column in df.columns:
        st.dataframe(df.style.map(status_color, subset=[status_column]), use_container_width=True, hide_index=True)
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)


def status_badge(status) -> str:
    return badge_markdown(format_status(status))


def page_banner(title: str, subtitle: str = ""):
    st.markdown(
        f'<div class="isoko-banner"><h2>{title}</h2><p>{subtitle}</p></div>',
        unsafe_allow_html=True,
    )


def pagination_controls(key: str, pagination: dict | None) -> None:
    """Prev / next buttons driving st.session_state[f'{key}_page']."""
    if not pagination:
        return
    page_key = f"{key}_page"
    page = st.session_state.get(page_key, 1)
    pages = max(int(pagination.get("pages") or 1), 1)
    c1, c2, c3 = st.columns([1, 2, 1])
    if c1.button("← Prev", key=f"{key}_prev", disabled=page <= 1):
        st.session_state[page_key] = page - 1
        st.rerun()
    c2.caption(f"Page {page} of {pages} · {pagination.get('total', 0)} records")
    if c3.button("Next →", key=f"{key}_next", disabled=page >= pages):
        st.session_state[page_key] = page + 1
        st.rerun()


def current_page(key: str) -> int:
    return st.session_state.get(f"{key}_page", 1)
