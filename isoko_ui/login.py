"""
Streamlit login UI — authenticates through the session store
(POST /auth/login) and lands the user on their role's dashboard.

Also hosts the forgot-password form (POST /auth/forgot-password).
"""

import streamlit as st

from isoko_ui.api_client import ApiError
from isoko_ui.routes import FORGOT_PASSWORD_PATH
from isoko_ui.session import LOGIN_PATH


def _css():
    st.markdown(
        """
        <style>
        .login-header {
            text-align: center;
            padding: 2rem 0 1rem 0;
        }
        .login-header h1 {
            color: #222d32;
            margin-bottom: 0.2rem;
        }
        .login-header p {
            color: #757575;
            font-size: 1rem;
        }
        div[data-testid="stForm"] {
            max-width: 420px;
            margin: 0 auto;
            padding: 2rem;
            border: 1px solid #e0e0e0;
            border-radius: 12px;
            background: #fafafa;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _header(title: str, subtitle: str):
    st.markdown(
        f"""
        <div class="login-header">
            <h1>{title}</h1>
            <p>{subtitle}</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def show_login(ctx):
    """Render the login page and handle authentication."""
    _css()
    _header(ctx.settings.APP_TITLE, "Microfinance loan management")

    with st.form("login_form"):
        email = st.text_input("Email", placeholder="you@example.com")
        password = st.text_input("Password", type="password", placeholder="Enter password")
        submitted = st.form_submit_button("Sign in", use_container_width=True)

    if submitted:
        if not email or not password:
            st.error("Please enter both email and password.")
        else:
            result = ctx.store.login({"email": email.strip(), "password": password})
            if result.success:
                ctx.navigate(ctx.store.get_dashboard_route(result.user.role))
                st.rerun()
            st.error(f"Login failed: {result.message}")

    if st.button("Forgot password?", key="goto_forgot"):
        ctx.navigate(FORGOT_PASSWORD_PATH)
        st.rerun()


def show_forgot_password(ctx):
    """Request a password reset link."""
    _css()
    _header("Reset your password", "We'll email you a reset link")

    with st.form("forgot_form"):
        email = st.text_input("Email", placeholder="you@example.com")
        submitted = st.form_submit_button("Send reset link", use_container_width=True)

    if submitted:
        if not email:
            st.error("Please enter your email.")
        else:
            try:
                envelope = ctx.api.auth.forgot_password(email.strip())
            except ApiError as exc:
                st.error(exc.message)
            else:
                st.success(envelope.get("message") or "If the account exists, a reset link has been sent.")

    if st.button("Back to sign in", key="goto_login"):
        ctx.navigate(LOGIN_PATH)
        st.rerun()
