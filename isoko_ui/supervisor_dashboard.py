"""
Supervisor Dashboard — team oversight.

Team members, team totals and per-officer performance from the
/supervisor endpoints.
"""

import pandas as pd
import streamlit as st

from isoko_ui.formatters import format_currency, format_number, format_percentage
from isoko_ui.panels import fetch_panels
from isoko_ui.recovery import recovery_fetchers, show_recovery_panels
from isoko_ui.roles import role_label
from isoko_ui.widgets import api_call, items_of, page_banner, panel_error, records_frame, show_table


def show_overview(ctx):
    page_banner("Supervisor Dashboard", "Team portfolio at a glance")

    results = fetch_panels({
        "team": ctx.api.supervisor.team_stats,
        "arrears": lambda: ctx.api.loans.in_arrears({"limit": 10}),
        **recovery_fetchers(ctx.api),
    })
    if results.all_failed:
        st.error("Dashboard data is unavailable right now. Please try again later.")
        return

    if not panel_error(results, "team"):
        stats = results.data["team"] or {}
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Team Members", format_number(stats.get("team_size")))
        c2.metric("Active Loans", format_number(stats.get("active_loans")))
        c3.metric("Outstanding", format_currency(stats.get("total_outstanding")))
        c4.metric("Portfolio at Risk", format_percentage(stats.get("portfolio_at_risk")))
    st.divider()

    show_recovery_panels(results)
    st.divider()

    st.subheader("Loans in arrears")
    if not panel_error(results, "arrears"):
        df = records_frame(
            items_of(results.data["arrears"]),
            ["loan_number", "client_name", "loan_officer_name", "arrears_amount", "days_in_arrears"],
            numeric=("arrears_amount",),
        )
        show_table(df, empty="No loans in arrears.")


def show_team(ctx):
    page_banner("Team Overview", "Staff reporting to your branch")

    members = api_call(ctx.api.supervisor.team_members)
    if members is None:
        return
    items = items_of(members)
    for item in items:
        item["role"] = role_label(item.get("role"))
    df = records_frame(
        items,
        ["first_name", "last_name", "email", "role", "branch", "employee_id", "status"],
    )
    show_table(df, status_column="status", empty="No team members found.")


def show_performance(ctx):
    page_banner("Performance Metrics", "Officer portfolio and collection performance")

    data = api_call(ctx.api.supervisor.performance)
    if data is None:
        return
    items = items_of(data)
    if not items:
        st.info("No performance data yet.")
        return

    df = records_frame(
        items,
        ["officer_name", "loans_count", "total_disbursed", "total_collected", "arrears_amount", "collection_rate"],
        numeric=("loans_count", "total_disbursed", "total_collected", "arrears_amount", "collection_rate"),
    )
    show_table(df)

    st.subheader("Collection rate by officer")
    chart = pd.DataFrame({
        "officer": df["officer_name"],
        "collection_rate": df["collection_rate"].fillna(0),
    }).set_index("officer")
    st.bar_chart(chart["collection_rate"])
