"""
Financial Advisor Agents

DESIGN DECISION: Advice comes from two places, and neither may change
financial data:

1. ADVICE ENGINE (dashboard tips):
   - Deterministic heuristics over the current aggregate
   - Always available, no network

2. ADVISOR CHAT:
   - With an API key: the question plus a text summary of the user's
     figures goes to Gemini, and the answer is shown verbatim
   - Without a key: a scripted keyword responder answers from the same
     figures
   - A failed remote call never breaks the chat: an apology is added to
     the conversation and the reply is flagged as a transient error

The advisor READS the aggregate. It NEVER writes to it.
"""

import random
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

import google.generativeai as genai
import structlog

from budget_tracker.audit import AuditLogger
from budget_tracker.config import GeminiSettings, get_settings
from budget_tracker.models.advice import (
    Advice,
    AdviceKind,
    AdvisorReply,
    ChatMessage,
    ChatRole,
)
from budget_tracker.models.audit import AuditEventBuilder
from budget_tracker.models.finance import FinancialData
from budget_tracker.reports import compute_financial_summary, expenses_by_category


logger = structlog.get_logger(__name__)


GREETING = "Hello! I'm your financial advisor. How can I help you today?"

APOLOGY = (
    "I'm sorry, I couldn't reach the advisor service right now. "
    "Please try again in a moment."
)

SAVINGS_RATE_TARGET = 20.0
LARGEST_CATEGORY_SHARE = 30.0
SUBSCRIPTION_REVIEW_MIN_EXPENSES = 5
TRAIN_SUGGESTION_MIN_TRANSACTIONS = 3

TIPS = [
    "Try the 50/30/20 rule: 50% for needs, 30% for wants, and 20% for savings.",
    "Consider automating your savings by setting up automatic transfers.",
    "Review your recurring subscriptions regularly to eliminate unused services.",
    "Build an emergency fund that covers 3-6 months of expenses.",
    "Track your spending regularly to identify areas where you can cut back.",
]

DEFAULT_RESPONSES = [
    "I can help you analyze your budget, track your spending, or provide financial tips. What would you like to know?",
    "I'm here to assist with your financial questions. You can ask about your budget, savings goals, or spending habits.",
    "I can provide insights on your financial situation. Would you like to know about your budget, income, or expenses?",
    "Need help managing your finances? I can offer advice on budgeting, saving, or reducing expenses.",
]


class AdvisorError(Exception):
    """The external advisor could not produce an answer."""
    pass


def _round_percent(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


# =============================================================================
# DASHBOARD TIPS
# =============================================================================

class AdviceEngine:
    """Heuristic tips over the financial aggregate."""

    def generate(self, data: FinancialData, is_model_trained: bool) -> list[Advice]:
        advices: list[Advice] = []

        overspent = [b for b in data.budgets if b.is_over_budget]
        if overspent:
            noun = "category" if len(overspent) == 1 else "categories"
            advices.append(Advice(
                kind=AdviceKind.OVERSPENDING,
                title="Budget Alert",
                description=(
                    f"You've exceeded your budget in {len(overspent)} {noun}: "
                    f"{', '.join(b.category for b in overspent)}. "
                    "Consider adjusting your spending habits."
                ),
                action="Review Budgets",
                action_page="Budgets",
            ))

        summary = compute_financial_summary(data)
        savings_rate = summary.savings_rate
        if savings_rate is not None and savings_rate < SAVINGS_RATE_TARGET:
            advices.append(Advice(
                kind=AdviceKind.SAVINGS_RATE,
                title="Savings Opportunity",
                description=(
                    f"Your current savings rate is {savings_rate:.1f}%. Financial experts "
                    "recommend saving at least 20% of your income."
                ),
                action="Set a Savings Goal",
                action_page="Goals",
            ))

        by_category = expenses_by_category(data.transactions)
        if by_category and by_category[0].share_percent > LARGEST_CATEGORY_SHARE:
            largest = by_category[0]
            advices.append(Advice(
                kind=AdviceKind.LARGE_EXPENSE,
                title="Spending Distribution",
                description=(
                    f"{largest.category} represents {largest.share_percent:.1f}% of your "
                    "total expenses. Consider if you can reduce spending in this category."
                ),
            ))

        expense_count = sum(1 for t in data.transactions if t.is_expense)
        if expense_count > SUBSCRIPTION_REVIEW_MIN_EXPENSES:
            advices.append(Advice(
                kind=AdviceKind.SUBSCRIPTIONS,
                title="Subscription Review",
                description=(
                    "Consider reviewing your recurring subscriptions. You might find "
                    "services you no longer use or could downgrade."
                ),
            ))

        if not is_model_trained and len(data.transactions) >= TRAIN_SUGGESTION_MIN_TRANSACTIONS:
            advices.append(Advice(
                kind=AdviceKind.TRAIN_MODEL,
                title="Enable Smart Categorization",
                description=(
                    "Train the AI model to automatically categorize your transactions "
                    "based on their descriptions."
                ),
                action="Train AI",
                action_page="Settings",
            ))

        if not advices:
            advices.append(Advice(
                kind=AdviceKind.GENERIC,
                title="Financial Health",
                description=(
                    "Continue tracking your expenses and income regularly. "
                    "Consistent monitoring is key to financial success."
                ),
            ))

        return advices


# =============================================================================
# LOCAL RESPONDER
# =============================================================================

class LocalAdvisor:
    """
    Scripted keyword responder used when no API key is configured.

    Keywords are checked in order; the first matching group answers.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def respond(self, question: str, data: FinancialData) -> str:
        query = question.lower()
        summary = compute_financial_summary(data)

        if "budget" in query or "spending" in query:
            percent_used = (
                _round_percent(summary.total_spent / summary.total_budget * 100)
                if summary.total_budget > 0 else 0
            )
            response = f"You've used {percent_used}% of your total budget. "
            overspent = [b.category for b in data.budgets if b.is_over_budget]
            if overspent:
                response += (
                    f"You're over budget in {len(overspent)} categories: "
                    f"{', '.join(overspent)}."
                )
            else:
                response += "You're staying within your budget limits, great job!"
            return response

        if "save" in query or "saving" in query or "goal" in query:
            if not data.goals:
                return "You don't have any savings goals set up yet. Would you like to create one?"
            percent_saved = (
                _round_percent(summary.current_savings / summary.savings_target * 100)
                if summary.savings_target > 0 else 0
            )
            return f"You've saved {percent_saved}% towards your goals."

        if "income" in query or "earn" in query:
            response = f"Your total income is {_money(summary.total_income)}. "
            if summary.total_income == 0:
                response += (
                    "You haven't recorded any income yet. "
                    "Would you like to add an income transaction?"
                )
            return response.strip()

        if "expense" in query or "spend" in query:
            response = f"Your total expenses are {_money(summary.total_expenses)}. "
            top = expenses_by_category(data.transactions)[:3]
            if top:
                response += "Your top spending categories are: " + ", ".join(
                    f"{row.category} ({_money(row.amount)})" for row in top
                ) + "."
            return response.strip()

        if "tip" in query or "advice" in query or "suggest" in query:
            return self._rng.choice(TIPS)

        return self._rng.choice(DEFAULT_RESPONSES)


# =============================================================================
# REMOTE ADVISOR
# =============================================================================

def build_financial_context(data: FinancialData) -> str:
    """Plain-text summary of the user's figures for the remote advisor."""
    summary = compute_financial_summary(data)
    lines = [
        f"Total income: {_money(summary.total_income)}",
        f"Total expenses: {_money(summary.total_expenses)}",
        f"Balance: {_money(summary.balance)}",
        f"Total budget: {_money(summary.total_budget)} "
        f"(spent {_money(summary.total_spent)} this month)",
    ]

    over = [b.category for b in data.budgets if b.is_over_budget]
    lines.append(f"Over budget in: {', '.join(over)}" if over else "No budgets exceeded")

    top = expenses_by_category(data.transactions)[:3]
    if top:
        lines.append("Top expense categories: " + ", ".join(
            f"{row.category} {_money(row.amount)}" for row in top
        ))

    if data.goals:
        lines.append("Savings goals:")
        for goal in data.goals:
            lines.append(
                f"- {goal.title}: {_money(goal.current_amount)} of "
                f"{_money(goal.target_amount)} by {goal.deadline.isoformat()}"
            )
    else:
        lines.append("No savings goals")

    return "\n".join(lines)


class GeminiAdvisor:
    """
    External advisor backed by Google Gemini.

    BOUNDARIES:
    - Sees only the text summary built by `build_financial_context`
    - Its answer is displayed as-is and never parsed into data
    """

    def __init__(self, api_key: str, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._api_key = api_key
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def respond(self, question: str, context: str) -> str:
        prompt = f"""You are a friendly personal finance advisor inside a budgeting app.

The user's current finances:
{context}

User question: "{question}"

Answer in a few short sentences. Base any figures ONLY on the data above."""

        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text.strip()
        except Exception as e:
            raise AdvisorError(f"Gemini request failed: {e}") from e

        if not text:
            raise AdvisorError("Gemini returned an empty response")
        return text


# =============================================================================
# CONVERSATION
# =============================================================================

class AdvisorChat:
    """
    One advisor conversation.

    Args:
        data_provider: Returns the current aggregate at question time
        local: Responder used when no remote advisor is configured
        remote: External advisor (optional)
        audit_logger: Receives remote failures (optional)
    """

    def __init__(
        self,
        data_provider: Callable[[], FinancialData],
        local: Optional[LocalAdvisor] = None,
        remote: Optional[GeminiAdvisor] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._data_provider = data_provider
        self._local = local or LocalAdvisor()
        self._remote = remote
        self._audit_logger = audit_logger
        self._messages: list[ChatMessage] = [
            ChatMessage(role=ChatRole.ASSISTANT, content=GREETING)
        ]

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def uses_remote(self) -> bool:
        return self._remote is not None

    def reset(self) -> None:
        self._messages = [ChatMessage(role=ChatRole.ASSISTANT, content=GREETING)]

    async def ask(self, question: str) -> Optional[AdvisorReply]:
        """
        Add the question and the advisor's answer to the conversation.

        Blank questions are ignored and return None.
        """
        if not question or not question.strip():
            return None

        self._messages.append(ChatMessage(role=ChatRole.USER, content=question))
        data = self._data_provider()

        if self._remote is None:
            answer = self._local.respond(question, data)
            return self._reply(answer, source="local")

        try:
            answer = await self._remote.respond(question, build_financial_context(data))
        except AdvisorError as e:
            logger.warning("advisor_remote_failed", error=str(e))
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.advisor_error("gemini", str(e)))
            return self._reply(APOLOGY, source="remote", error_message=str(e))

        return self._reply(answer, source="remote")

    def _reply(
        self,
        content: str,
        source: str,
        error_message: Optional[str] = None,
    ) -> AdvisorReply:
        message = ChatMessage(role=ChatRole.ASSISTANT, content=content)
        self._messages.append(message)
        return AdvisorReply(
            message=message,
            is_error=error_message is not None,
            error_message=error_message,
            source=source,
        )
