"""
Advisor Agents Package

Dashboard tips, the scripted responder, and the optional Gemini advisor.
"""

from budget_tracker.agents.advisor import (
    APOLOGY,
    GREETING,
    AdviceEngine,
    AdvisorChat,
    AdvisorError,
    GeminiAdvisor,
    LocalAdvisor,
    build_financial_context,
)

__all__ = [
    "APOLOGY",
    "GREETING",
    "AdviceEngine",
    "AdvisorChat",
    "AdvisorError",
    "GeminiAdvisor",
    "LocalAdvisor",
    "build_financial_context",
]
