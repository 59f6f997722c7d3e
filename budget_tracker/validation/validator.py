"""
Two-Stage Form Validation

DESIGN DECISION: Every form submission is validated before any state
mutation happens.

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Numeric coercion and positivity
- Enum membership and date parsing
- Errors here block submission

STAGE 2 - SEMANTIC VALIDATION:
- Unknown categories
- Future-dated transactions, past deadlines
- Unusually large amounts
- Only warnings: the user may still save

IMPORTANT: Validation NEVER silently fixes issues (apart from rounding
money to cents). It reports them, per field, for inline display.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from budget_tracker.config import AppSettings, get_settings
from budget_tracker.models.finance import (
    DEFAULT_CATEGORIES,
    BudgetDraft,
    BudgetPeriod,
    GoalDraft,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


_CENT = Decimal("0.01")


def _error(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message, severity="error")


def _warning(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message, severity="warning")


def parse_amount(value: Any) -> Optional[Decimal]:
    """Coerce a form value to a Decimal rounded to cents, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            return None
        return amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        # unparseable, or too many digits to hold at cent precision
        return None


def parse_date(value: Any) -> Optional[date]:
    """Accept a date or an ISO `YYYY-MM-DD` string."""
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


class FormValidator:
    """
    Validates raw form submissions and turns them into drafts.

    Each `validate_*` method returns `(draft_or_None, ValidationResult)`.
    The draft is None whenever the result has errors.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        today: Optional[date] = None,
    ):
        self._settings = settings or get_settings().app
        self._today = today

    def _current_date(self) -> date:
        return self._today or date.today()

    # -------------------------------------------------------------------------
    # Shared field checks
    # -------------------------------------------------------------------------

    def _check_amount(
        self,
        form: Mapping[str, Any],
        field: str,
        issues: list[ValidationIssue],
        positive_message: str,
        allow_zero: bool = False,
    ) -> Optional[Decimal]:
        raw = form.get(field)
        amount = parse_amount(raw)
        if amount is None:
            if raw in (None, "") and allow_zero:
                return Decimal("0")
            issues.append(_error(field, "invalid_number", positive_message))
            return None
        if allow_zero and amount < 0:
            issues.append(_error(field, "negative", positive_message))
            return None
        if not allow_zero and amount <= 0:
            issues.append(_error(field, "not_positive", positive_message))
            return None
        return amount

    def _check_text(
        self,
        form: Mapping[str, Any],
        field: str,
        issues: list[ValidationIssue],
        message: str,
        min_length: int,
    ) -> Optional[str]:
        value = form.get(field)
        text = value.strip() if isinstance(value, str) else ""
        if len(text) < min_length:
            issues.append(_error(field, "missing", message))
            return None
        return text

    def _check_category(
        self,
        form: Mapping[str, Any],
        issues: list[ValidationIssue],
    ) -> Optional[str]:
        category = self._check_text(form, "category", issues, "Category is required", 1)
        if category is not None and category not in DEFAULT_CATEGORIES:
            issues.append(_warning(
                "category",
                "unknown_category",
                f"'{category}' is not a standard category and will be shown in gray",
            ))
        return category

    def _check_large(
        self,
        field: str,
        amount: Optional[Decimal],
        issues: list[ValidationIssue],
    ) -> None:
        threshold = Decimal(str(self._settings.large_amount_threshold))
        if amount is not None and amount > threshold:
            issues.append(_warning(
                field,
                "suspicious_value",
                f"Amount (${amount:,.2f}) seems unusually high",
            ))

    @staticmethod
    def _schema_issues(form_name: str, error: ValidationError) -> list[ValidationIssue]:
        """Translate residual pydantic errors into field issues."""
        return [
            _error(
                str(err["loc"][0]) if err.get("loc") else form_name,
                err.get("type", "invalid"),
                err.get("msg", "Invalid value"),
            )
            for err in error.errors()
        ]

    # -------------------------------------------------------------------------
    # Forms
    # -------------------------------------------------------------------------

    def validate_budget_form(
        self,
        form: Mapping[str, Any],
    ) -> tuple[Optional[BudgetDraft], ValidationResult]:
        """Validate category, amount and period of a budget form."""
        issues: list[ValidationIssue] = []

        category = self._check_category(form, issues)
        amount = self._check_amount(form, "amount", issues, "Amount must be positive")

        period_raw = form.get("period") or BudgetPeriod.MONTHLY.value
        try:
            period = BudgetPeriod(period_raw)
        except ValueError:
            issues.append(_error(
                "period",
                "invalid_choice",
                "Period must be weekly, monthly or yearly",
            ))
            period = None

        self._check_large("amount", amount, issues)

        draft = None
        if not any(i.severity == "error" for i in issues):
            try:
                draft = BudgetDraft(category=category, amount=amount, period=period)
            except ValidationError as e:
                issues.extend(self._schema_issues("budget", e))

        return draft, ValidationResult(form="budget", issues=issues)

    def validate_transaction_form(
        self,
        form: Mapping[str, Any],
    ) -> tuple[Optional[TransactionDraft], ValidationResult]:
        """Validate a transaction form."""
        issues: list[ValidationIssue] = []

        description = self._check_text(
            form, "description", issues, "Description is required", 2
        )
        amount = self._check_amount(form, "amount", issues, "Amount must be positive")
        category = self._check_category(form, issues)

        tx_date = parse_date(form.get("date"))
        if tx_date is None:
            issues.append(_error("date", "missing", "Date is required"))
        elif tx_date > self._current_date():
            issues.append(_warning(
                "date",
                "future_date",
                f"Transaction date ({tx_date}) is in the future",
            ))

        type_raw = form.get("type") or TransactionType.EXPENSE.value
        try:
            tx_type = TransactionType(type_raw)
        except ValueError:
            issues.append(_error("type", "invalid_choice", "Type must be income or expense"))
            tx_type = None

        if tx_type == TransactionType.INCOME and category not in (None, "Income"):
            issues.append(_warning(
                "category",
                "inconsistent",
                "Income is usually recorded under the Income category",
            ))

        self._check_large("amount", amount, issues)

        draft = None
        if not any(i.severity == "error" for i in issues):
            try:
                draft = TransactionDraft(
                    description=description,
                    amount=amount,
                    category=category,
                    transaction_date=tx_date,
                    type=tx_type,
                )
            except ValidationError as e:
                issues.extend(self._schema_issues("transaction", e))

        return draft, ValidationResult(form="transaction", issues=issues)

    def validate_goal_form(
        self,
        form: Mapping[str, Any],
    ) -> tuple[Optional[GoalDraft], ValidationResult]:
        """Validate a savings goal form."""
        issues: list[ValidationIssue] = []

        title = self._check_text(form, "title", issues, "Title is required", 2)
        target = self._check_amount(
            form, "targetAmount", issues, "Target amount must be positive"
        )
        current = self._check_amount(
            form,
            "currentAmount",
            issues,
            "Current amount cannot be negative",
            allow_zero=True,
        )
        category = self._check_category(form, issues)

        deadline = parse_date(form.get("deadline"))
        if deadline is None:
            issues.append(_error("deadline", "missing", "Deadline is required"))
        elif deadline < self._current_date():
            issues.append(_warning(
                "deadline",
                "past_date",
                f"Deadline ({deadline}) has already passed",
            ))

        if target is not None and current is not None and current >= target:
            issues.append(_warning(
                "currentAmount",
                "already_funded",
                "This goal is already fully funded",
            ))

        self._check_large("targetAmount", target, issues)

        draft = None
        if not any(i.severity == "error" for i in issues):
            try:
                draft = GoalDraft(
                    title=title,
                    target_amount=target,
                    current_amount=current,
                    deadline=deadline,
                    category=category,
                )
            except ValidationError as e:
                issues.extend(self._schema_issues("goal", e))

        return draft, ValidationResult(form="goal", issues=issues)

    def validate_contribution(
        self,
        form: Mapping[str, Any],
    ) -> tuple[Optional[Decimal], ValidationResult]:
        """Validate the amount of a goal contribution."""
        issues: list[ValidationIssue] = []
        amount = self._check_amount(form, "amount", issues, "Amount must be positive")
        self._check_large("amount", amount, issues)
        result = ValidationResult(form="contribution", issues=issues)
        return (amount if result.is_valid else None), result
