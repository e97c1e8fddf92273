"""
Dashboard shell — sidebar, header and content outlet.

The shell never makes authorization decisions: the router has already
gated the route. It only adapts what it shows (menu, welcome text) to the
signed-in user's role.
"""

import streamlit as st

from isoko_ui.navigation import NavigationEntry, resolve_navigation
from isoko_ui.roles import Role, role_label

SIDEBAR_KEY = "sidebar_open"

_WELCOME = {
    Role.ADMIN: "Full overview of the branch network, users and loan portfolio.",
    Role.SUPERVISOR: "Follow up your team's portfolio and loans falling behind.",
    Role.LOAN_OFFICER: "Your borrowers, applications and collections at a glance.",
    Role.CASHIER: "Record repayments and keep today's cash book balanced.",
}


def welcome_message(user) -> str:
    if user is None:
        return "Welcome."
    first = user.first_name or user.full_name
    hint = _WELCOME.get(user.role, "Use the menu to get started.")
    return f"Welcome back, {first}. {hint}"


def _css():
    st.markdown(
        """
        <style>
        .isoko-banner {
            background: linear-gradient(135deg, #222d32, #2c3e50);
            color: #ffffff;
            padding: 1.2rem 2rem;
            border-radius: 10px;
            margin-bottom: 1rem;
        }
        .isoko-banner h2 { color: #ffffff; margin: 0; }
        .isoko-banner p  { color: #cfd8dc; margin: 0.2rem 0 0 0; font-size: 0.95rem; }
        div[data-testid="stMetric"] {
            background: #f0f2f6;
            border: 1px solid #e0e0e0;
            border-radius: 8px;
            padding: 10px 14px;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _nav_buttons(ctx, entries: list[NavigationEntry], current: str, container, key_prefix: str):
    for entry in entries:
        label = f"{entry.icon}  {entry.name}"
        if container.button(
            label,
            key=f"{key_prefix}_{entry.path}",
            use_container_width=True,
            type="primary" if entry.path == current else "secondary",
        ):
            ctx.navigate(entry.path)
            st.rerun()


def _sidebar(ctx, entries, current):
    st.sidebar.markdown(f"## {ctx.settings.APP_TITLE}")
    st.sidebar.divider()
    _nav_buttons(ctx, entries, current, st.sidebar, "nav")


def _header(ctx, entries, current, sidebar_open: bool):
    user = ctx.user
    c_menu, c_user, c_logout = st.columns([1, 6, 1])

    if c_menu.button("☰", key="toggle_sidebar", help="Show / hide menu"):
        st.session_state[SIDEBAR_KEY] = not sidebar_open
        st.rerun()
    if not sidebar_open:
        with c_menu.popover("Menu"):
            _nav_buttons(ctx, entries, current, st, "popnav")

    details = [f"**{user.full_name}**", role_label(user.role)]
    if user.branch:
        details.append(user.branch)
    c_user.markdown(" · ".join(details))

    if c_logout.button("Logout", key="logout", use_container_width=True):
        ctx.store.logout()
        st.rerun()


def render_shell(ctx, route):
    """Sidebar + header, then the matched page in the content region."""
    _css()
    user = ctx.user
    entries = resolve_navigation(user.role if user else None)
    sidebar_open = st.session_state.setdefault(SIDEBAR_KEY, True)

    if sidebar_open:
        _sidebar(ctx, entries, route.path)
    _header(ctx, entries, route.path, sidebar_open)
    st.divider()

    route.page(ctx)
