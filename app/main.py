"""
Streamlit Frontend for Budget Tracker

The pages a user works with every day: the dashboard, budgets,
transactions, savings goals, the advisor chat and settings.

DESIGN PRINCIPLES:
1. Every number on screen is derived from the stored transactions
2. Form errors are shown next to the form, nothing is saved until valid
3. Failures degrade quietly (storage, classifier, advisor) with a notice
4. No hidden actions: reset and export are explicit buttons

The UI holds no financial state of its own. It renders the AppContext
built by `create_app_context` and sends form submissions to FinanceFlow.
"""

import asyncio
from datetime import date
from typing import Optional
from uuid import UUID

import pandas as pd
import plotly.express as px
import streamlit as st

from budget_tracker.config import validate_all_settings
from budget_tracker.models.finance import (
    CATEGORY_COLORS,
    DEFAULT_CATEGORIES,
    EXPENSE_CATEGORIES,
    BudgetPeriod,
    TransactionType,
    ValidationResult,
)
from budget_tracker.models.advice import ChatRole
from budget_tracker.models.audit import AuditEventBuilder
from budget_tracker.orchestrator import (
    AppContext,
    build_advisor_chat,
    create_app_context,
    load_api_key,
    save_api_key,
)
from budget_tracker.reports import (
    budget_progress,
    compute_financial_summary,
    expenses_by_category,
    goal_progress,
    recent_transactions,
)


PAGES = ["Dashboard", "Budgets", "Transactions", "Goals", "Advisor", "Settings"]

PAGE_ICONS = {
    "Dashboard": "📊",
    "Budgets": "💼",
    "Transactions": "🧾",
    "Goals": "🎯",
    "Advisor": "💬",
    "Settings": "⚙️",
}


# Page configuration
st.set_page_config(
    page_title="Budget Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .advice-box {
        padding: 16px;
        background-color: #eef6ff;
        border-radius: 10px;
        border-left: 5px solid #3b82f6;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_context() -> AppContext:
    """Get or create the application context (cached)."""
    return create_app_context()


def get_chat(context: AppContext):
    """Advisor conversation for this browser session."""
    if "advisor_chat" not in st.session_state:
        st.session_state["advisor_chat"] = build_advisor_chat(context)
    return st.session_state["advisor_chat"]


def money(amount) -> str:
    return f"${amount:,.2f}"


def show_validation(result: ValidationResult, success_message: Optional[str] = None) -> None:
    """Per-field errors, then warnings, then the success toast."""
    for issue in result.issues:
        label = issue.field.replace("_", " ").capitalize()
        if issue.severity == "error":
            st.error(f"**{label}:** {issue.message}")
        elif issue.severity == "warning":
            st.warning(f"**{label}:** {issue.message}")
    if success_message and result.is_valid:
        st.toast(success_message, icon="✅")


def go_to(page: str) -> None:
    st.session_state["page"] = page


def main():
    """Main application entry point."""
    context = get_context()

    st.sidebar.title("💰 Budget Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        PAGES,
        key="page",
        format_func=lambda p: f"{PAGE_ICONS[p]} {p}",
    )

    st.sidebar.markdown("---")
    if context.storage_fallback:
        st.sidebar.warning("Storage is unavailable. Changes are kept for this session only.")
    elif not context.state.last_persist_ok:
        st.sidebar.warning("The last change could not be saved.")

    service = context.category_service
    if service.is_training:
        st.sidebar.info("🧠 Training the categorization model...")
    elif service.is_trained:
        st.sidebar.caption("🧠 Smart categorization is on")

    if page == "Dashboard":
        render_dashboard(context)
    elif page == "Budgets":
        render_budgets_page(context)
    elif page == "Transactions":
        render_transactions_page(context)
    elif page == "Goals":
        render_goals_page(context)
    elif page == "Advisor":
        render_advisor_page(context)
    elif page == "Settings":
        render_settings_page(context)


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard(context: AppContext):
    st.title("📊 Dashboard")
    data = context.state.data
    summary = compute_financial_summary(data)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Income", money(summary.total_income))
    col2.metric("Total Expenses", money(summary.total_expenses))
    col3.metric("Balance", money(summary.balance))
    col4.metric(
        "Budget Remaining",
        money(summary.remaining_budget),
        f"{summary.budget_used_percent:.0f}% used",
        delta_color="off",
    )

    left, right = st.columns(2)

    with left:
        st.subheader("Budget Overview")
        rows = budget_progress(data.budgets)
        if rows:
            df = pd.DataFrame([
                {"Category": r.category, "Budget": float(r.amount), "Spent": float(r.spent)}
                for r in rows
            ])
            fig = px.bar(
                df.melt(id_vars="Category", var_name="Kind", value_name="Amount"),
                x="Category",
                y="Amount",
                color="Kind",
                barmode="group",
                color_discrete_map={"Budget": "#cbd5e1", "Spent": "#3b82f6"},
            )
            fig.update_layout(margin=dict(t=10, b=10), legend_title_text="")
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No budgets yet.")
            st.button("Create a budget", on_click=go_to, args=("Budgets",))

    with right:
        st.subheader("Spending by Category")
        totals = expenses_by_category(data.transactions)
        if totals:
            df = pd.DataFrame([
                {"Category": t.category, "Amount": float(t.amount)} for t in totals
            ])
            fig = px.pie(
                df,
                values="Amount",
                names="Category",
                hole=0.4,
                color="Category",
                color_discrete_map=CATEGORY_COLORS,
            )
            fig.update_layout(margin=dict(t=10, b=10))
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No expenses recorded yet.")

    left, right = st.columns(2)

    with left:
        st.subheader("Recent Transactions")
        recent = recent_transactions(data.transactions)
        if recent:
            for t in recent:
                sign = "-" if t.is_expense else "+"
                st.markdown(
                    f"**{t.description}** · {t.category} · {t.transaction_date:%b %d} "
                    f"&nbsp;&nbsp; `{sign}{money(t.amount)}`"
                )
        else:
            st.info("No transactions yet.")
        st.button("View all transactions", on_click=go_to, args=("Transactions",))

    with right:
        st.subheader("Savings Goals")
        for g in goal_progress(data.goals, today=context.state.today()):
            st.markdown(f"**{g.title}** · {money(g.current_amount)} of {money(g.target_amount)}")
            st.progress(min(g.percent / 100, 1.0), text=f"{g.percent:.0f}%")
        if not data.goals:
            st.info("No savings goals yet.")
            st.button("Create a goal", on_click=go_to, args=("Goals",))

    st.markdown("---")
    render_advice(context)


def render_advice(context: AppContext):
    st.subheader("💡 Financial Advice")
    advices = context.advice_engine.generate(
        context.state.data,
        context.category_service.is_trained,
    )

    for idx, advice in enumerate(advices):
        st.markdown(f"""
        <div class="advice-box">
            <h4>{advice.title}</h4>
            <p>{advice.description}</p>
        </div>
        """, unsafe_allow_html=True)
        if advice.action and advice.action_page:
            st.button(
                advice.action,
                key=f"advice_action_{idx}",
                on_click=go_to,
                args=(advice.action_page,),
            )


# =============================================================================
# BUDGETS
# =============================================================================

def render_budgets_page(context: AppContext):
    st.title("💼 Budgets")
    flow = context.flow

    with st.expander("➕ Add Budget", expanded=not context.state.budgets):
        with st.form("add_budget", clear_on_submit=True):
            category = st.selectbox("Category", EXPENSE_CATEGORIES)
            amount = st.number_input("Amount", min_value=0.0, step=10.0, format="%.2f")
            period = st.selectbox("Period", [p.value for p in BudgetPeriod], index=1)
            submitted = st.form_submit_button("Add Budget", type="primary")

        if submitted:
            budget, result = flow.submit_budget_form(
                {"category": category, "amount": amount, "period": period}
            )
            show_validation(result, "Budget added successfully")

    rows = {r.budget_id: r for r in budget_progress(context.state.budgets)}
    if not rows:
        st.info("You haven't created any budgets yet.")
        return

    cols = st.columns(2)
    for idx, budget in enumerate(context.state.budgets):
        row = rows[str(budget.id)]
        with cols[idx % 2].container(border=True):
            st.markdown(f"### {budget.category}")
            st.caption(f"{budget.period.value.capitalize()} budget")
            st.progress(min(row.percent / 100, 1.0), text=f"{row.percent:.0f}% used")
            st.markdown(
                f"Spent **{money(budget.spent)}** of {money(budget.amount)} · "
                f"Remaining {money(budget.remaining)}"
            )
            if row.status == "over":
                st.error("You're over budget!")
            elif row.status == "warning":
                st.warning("Approaching the limit")

            with st.expander("Edit"):
                with st.form(f"edit_budget_{budget.id}"):
                    category = st.selectbox(
                        "Category",
                        EXPENSE_CATEGORIES,
                        index=_index_of(EXPENSE_CATEGORIES, budget.category),
                    )
                    amount = st.number_input(
                        "Amount",
                        min_value=0.0,
                        value=float(budget.amount),
                        step=10.0,
                        format="%.2f",
                    )
                    period = st.selectbox(
                        "Period",
                        [p.value for p in BudgetPeriod],
                        index=list(BudgetPeriod).index(budget.period),
                    )
                    if st.form_submit_button("Save"):
                        _, result = flow.submit_budget_form(
                            {"category": category, "amount": amount, "period": period},
                            budget_id=budget.id,
                        )
                        show_validation(result, "Budget updated successfully")
                        if result.is_valid:
                            st.rerun()

            if st.button("🗑️ Delete", key=f"delete_budget_{budget.id}"):
                context.state.delete_budget(budget.id)
                st.toast("Budget deleted successfully")
                st.rerun()


def _index_of(options: list[str], value: str) -> int:
    return options.index(value) if value in options else len(options) - 1


# =============================================================================
# TRANSACTIONS
# =============================================================================

def render_transactions_page(context: AppContext):
    st.title("🧾 Transactions")
    flow = context.flow

    with st.expander("➕ Add Transaction", expanded=not context.state.transactions):
        tx_type = st.radio(
            "Type",
            [t.value for t in TransactionType],
            index=1,
            horizontal=True,
            format_func=str.capitalize,
        )
        description = st.text_input("Description", key="tx_description")

        suggestion = None
        if tx_type == TransactionType.EXPENSE.value and description:
            suggestion = flow.suggest_category(description)

        options = EXPENSE_CATEGORIES if tx_type == TransactionType.EXPENSE.value else DEFAULT_CATEGORIES
        default = suggestion or ("Income" if tx_type == TransactionType.INCOME.value else options[0])
        category = st.selectbox(
            "Category",
            options,
            index=_index_of(options, default),
            key=f"tx_category_{suggestion}_{tx_type}",
        )
        if suggestion and context.category_service.is_trained:
            st.caption(f"🧠 Suggested category: **{suggestion}**")

        col1, col2 = st.columns(2)
        amount = col1.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        tx_date = col2.date_input("Date", value=date.today())

        if st.button("Add Transaction", type="primary"):
            _, result = flow.submit_transaction_form({
                "description": description,
                "amount": amount,
                "category": category,
                "date": tx_date,
                "type": tx_type,
            })
            show_validation(result, "Transaction added successfully")

    transactions = sorted(
        context.state.transactions,
        key=lambda t: t.transaction_date,
        reverse=True,
    )
    if not transactions:
        st.info("No transactions yet.")
        return

    col1, col2 = st.columns(2)
    type_filter = col1.selectbox("Filter by Type", ["All", "income", "expense"])
    category_filter = col2.selectbox("Filter by Category", ["All"] + DEFAULT_CATEGORIES)

    shown = [
        t for t in transactions
        if (type_filter == "All" or t.type.value == type_filter)
        and (category_filter == "All" or t.category == category_filter)
    ]

    for t in shown:
        c1, c2, c3, c4 = st.columns([4, 2, 2, 1])
        c1.markdown(f"**{t.description}**  \n{t.transaction_date:%Y-%m-%d}")
        c2.markdown(t.category)
        sign = "-" if t.is_expense else "+"
        c3.markdown(f"`{sign}{money(t.amount)}`")
        if c4.button("🗑️", key=f"delete_tx_{t.id}"):
            context.state.delete_transaction(t.id)
            st.toast("Transaction deleted successfully")
            st.rerun()


# =============================================================================
# GOALS
# =============================================================================

def render_goals_page(context: AppContext):
    st.title("🎯 Savings Goals")
    flow = context.flow

    with st.expander("➕ Add Goal", expanded=not context.state.goals):
        with st.form("add_goal", clear_on_submit=True):
            title = st.text_input("Title")
            col1, col2 = st.columns(2)
            target = col1.number_input("Target Amount", min_value=0.0, step=100.0, format="%.2f")
            current = col2.number_input("Current Amount", min_value=0.0, step=10.0, format="%.2f")
            deadline = st.date_input("Deadline")
            category = st.selectbox("Category", EXPENSE_CATEGORIES, index=_index_of(EXPENSE_CATEGORIES, "Savings"))
            submitted = st.form_submit_button("Add Goal", type="primary")

        if submitted:
            _, result = flow.submit_goal_form({
                "title": title,
                "targetAmount": target,
                "currentAmount": current,
                "deadline": deadline,
                "category": category,
            })
            show_validation(result, "Goal added successfully")

    goals = goal_progress(context.state.goals, today=context.state.today())
    if not goals:
        st.info("You haven't set any savings goals yet.")
        return

    cols = st.columns(2)
    for idx, g in enumerate(goals):
        with cols[idx % 2].container(border=True):
            st.markdown(f"### {g.title}")
            st.progress(min(g.percent / 100, 1.0), text=f"{g.percent:.0f}%")
            st.markdown(f"{money(g.current_amount)} of {money(g.target_amount)}")
            if g.is_complete:
                st.success("Goal reached! 🎉")
            elif g.days_left is not None:
                st.caption(
                    f"{g.days_left} days left" if g.days_left >= 0
                    else f"Deadline passed {-g.days_left} days ago"
                )

            with st.form(f"contribute_{g.goal_id}", clear_on_submit=True):
                amount = st.number_input("Contribution", min_value=0.0, step=10.0, format="%.2f")
                if st.form_submit_button("Contribute"):
                    goal = context.state.get_goal(UUID(g.goal_id))
                    _, result = flow.submit_contribution(goal.id, {"amount": amount})
                    show_validation(result, "Contribution added successfully")
                    if result.is_valid:
                        st.rerun()

            if st.button("🗑️ Delete", key=f"delete_goal_{g.goal_id}"):
                context.state.delete_goal(UUID(g.goal_id))
                st.toast("Goal deleted successfully")
                st.rerun()


# =============================================================================
# ADVISOR
# =============================================================================

def render_advisor_page(context: AppContext):
    st.title("💬 Financial Advisor")
    chat = get_chat(context)

    if chat.uses_remote:
        st.caption("Answers come from Gemini, based on a summary of your figures.")
    else:
        st.caption("Add an API key in Settings for more detailed answers.")

    for message in chat.messages:
        role = "user" if message.role == ChatRole.USER else "assistant"
        with st.chat_message(role):
            st.markdown(message.content)

    question = st.chat_input("Ask about your budget, savings, income or expenses")
    if question:
        with st.spinner("Thinking..."):
            reply = run_async(chat.ask(question))
        if reply and reply.is_error:
            st.toast("The advisor service is unavailable right now.", icon="⚠️")
        st.rerun()

    if st.button("Clear conversation"):
        chat.reset()
        st.rerun()


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(context: AppContext):
    st.title("⚙️ Settings")

    st.markdown("### AI API Configuration")
    st.caption("Enter your Gemini API key to enable enhanced financial insights.")
    with st.form("api_key"):
        api_key = st.text_input(
            "API Key",
            value=load_api_key(context) or "",
            type="password",
            placeholder="Enter your API key",
        )
        if st.form_submit_button("Save Key"):
            if save_api_key(context, api_key):
                st.session_state.pop("advisor_chat", None)
                st.success("API key saved successfully")
            else:
                st.error("The API key could not be saved.")

    st.markdown("---")
    st.markdown("### Smart Categorization")
    service = context.category_service
    if service.is_training:
        st.info("Training in progress...")
    elif service.is_trained:
        st.success("✅ Model is trained and suggesting categories.")
    else:
        st.warning("Model is not trained yet.")
    if service.last_error:
        st.caption(service.last_error)

    if st.button("🧠 Train Model", disabled=service.is_training):
        if service.start_training() is None:
            st.info("Training is already running.")
        else:
            st.toast("Training started")

    st.markdown("---")
    st.markdown("### Data")
    col1, col2 = st.columns(2)
    with col1:
        if st.download_button(
            "⬇️ Export Data",
            data=context.state.export_json(),
            file_name=f"budget-tracker-export-{date.today():%Y-%m-%d}.json",
            mime="application/json",
        ):
            context.audit_logger.log(AuditEventBuilder.data_exported())
    with col2:
        confirm = st.checkbox("I understand this replaces all my data")
        if st.button("↩️ Reset to Demo Data", disabled=not confirm):
            context.state.reset_to_demo_data()
            st.toast("Data reset to demo data")
            st.rerun()

    st.markdown("---")
    st.markdown("### Connection Status")
    st.markdown(f"**Storage backend:** {context.store.name}")
    if context.storage_fallback:
        st.error(
            f"❌ {context.settings.app.storage_backend} storage is unavailable. "
            "Changes are kept for this session only."
        )

    status = validate_all_settings()
    services = [
        ("Google Sheets (Cloud Sync)", "google_sheets"),
        ("Gemini (Advisor)", "gemini"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.info(f"➖ {name} - {error}")

    with st.expander("Recent activity"):
        for event in context.audit_logger.recent_events(limit=15):
            st.markdown(
                f"`{event.timestamp:%H:%M:%S}` **{event.event_type.value}** {event.description}"
            )


if __name__ == "__main__":
    main()
