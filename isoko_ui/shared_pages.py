"""
Pages every signed-in user can reach, plus the unauthorized and
not-found screens.
"""

import streamlit as st

from isoko_ui.formatters import format_date, format_phone_number
from isoko_ui.layout import welcome_message
from isoko_ui.navigation import ROLE_ACCESS_SUMMARY
from isoko_ui.roles import role_label
from isoko_ui.session import LOGIN_PATH
from isoko_ui.widgets import page_banner, status_badge


def show_home(ctx):
    user = ctx.user
    page_banner("Dashboard", welcome_message(user))
    landing = ctx.store.get_dashboard_route()
    if landing != "/dashboard":
        if st.button("Go to my dashboard", type="primary"):
            ctx.navigate(landing)
            st.rerun()
    else:
        st.info("Your account has no dashboard yet. Ask an administrator to assign you a role.")


def show_profile(ctx):
    page_banner("My Profile", "Account details and security")

    if st.button("Refresh profile"):
        result = ctx.store.refresh_user()
        if not result.success:
            st.error(result.message)

    user = ctx.user
    c1, c2 = st.columns(2)
    c1.markdown(f"**Name:** {user.full_name}")
    c1.markdown(f"**Email:** {user.email}")
    c1.markdown(f"**Phone:** {format_phone_number(user.phone)}")
    c2.markdown(f"**Role:** {role_label(user.role)}")
    c2.markdown(f"**Branch:** {user.branch or '-'}")
    c2.markdown(f"**Employee ID:** {user.employee_id or '-'}")
    c2.markdown(f"**Status:** {status_badge(user.status)}")
    if user.raw.get("created_at"):
        c1.markdown(f"**Member since:** {format_date(user.raw['created_at'])}")

    summary = ROLE_ACCESS_SUMMARY.get(user.role)
    if summary:
        st.caption(f"Access: {summary}")
    st.divider()

    st.subheader("Change password")
    with st.form("change_password"):
        current = st.text_input("Current password", type="password")
        new = st.text_input("New password", type="password")
        confirm = st.text_input("Confirm new password", type="password")
        submitted = st.form_submit_button("Update password")

    if submitted:
        if not current or not new:
            st.error("Fill in all password fields.")
        elif new != confirm:
            st.error("New passwords do not match.")
        elif len(new) < 8:
            st.error("Password must be at least 8 characters long.")
        else:
            result = ctx.store.change_password(current, new)
            if result.success:
                st.success(result.message or "Password updated.")
            else:
                st.error(result.message or "Could not update password.")


def show_unauthorized(ctx):
    st.title("🚫 Access denied")
    st.write("You don't have permission to view this page.")
    target = ctx.store.get_dashboard_route() if ctx.store.is_authenticated else LOGIN_PATH
    if st.button("Take me back", type="primary"):
        ctx.navigate(target)
        st.rerun()


def show_not_found(ctx):
    st.title("404 — Page not found")
    st.write("The page you are looking for does not exist.")
    target = ctx.store.get_dashboard_route() if ctx.store.is_authenticated else LOGIN_PATH
    if st.button("Go home", type="primary"):
        ctx.navigate(target)
        st.rerun()
