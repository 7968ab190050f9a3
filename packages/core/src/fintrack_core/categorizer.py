"""Category suggestions for uncategorized transactions.

The narrator and the analytics never depend on this module; it sits behind
the CategorySuggester protocol so the keyword heuristic can be replaced by
a better classifier without touching callers.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence, runtime_checkable

from .models import Category, CategorySuggestion, Transaction

MIN_CONFIDENCE = 60


@dataclass(frozen=True)
class KeywordRule:
    """Score a category when both the expense text and category name match."""

    expense_keywords: tuple[str, ...]
    category_keywords: tuple[str, ...]
    score: int
    reason: str


@dataclass(frozen=True)
class AmountRule:
    """Score a category when the amount falls in a range."""

    lower: Optional[Decimal]
    upper: Optional[Decimal]
    category_keywords: tuple[str, ...]
    score: int
    reason: str

    def matches(self, amount: Decimal) -> bool:
        if self.lower is not None and amount <= self.lower:
            return False
        if self.upper is not None and amount >= self.upper:
            return False
        return True


DEFAULT_KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        ("food", "restaurant", "lunch"),
        ("food", "dining"),
        80,
        "Food-related keywords detected",
    ),
    KeywordRule(
        ("transport", "fuel", "bus"),
        ("transport",),
        80,
        "Transportation-related keywords detected",
    ),
    KeywordRule(
        ("entertainment", "movie", "game"),
        ("entertainment",),
        75,
        "Entertainment-related keywords detected",
    ),
)

DEFAULT_AMOUNT_RULES: tuple[AmountRule, ...] = (
    AmountRule(
        Decimal("50000"),
        Decimal("200000"),
        ("shopping", "personal"),
        60,
        "Amount range suggests shopping or personal expense",
    ),
    AmountRule(
        None,
        Decimal("5000"),
        ("misc", "other"),
        40,
        "Small amount suggests miscellaneous expense",
    ),
)


@runtime_checkable
class CategorySuggester(Protocol):
    def suggest(
        self,
        transaction: Transaction,
        categories: Sequence[Category],
    ) -> Optional[CategorySuggestion]:
        ...


class KeywordCategorySuggester:
    """Keyword and amount-range heuristic over the user's own categories."""

    def __init__(
        self,
        keyword_rules: Sequence[KeywordRule] = DEFAULT_KEYWORD_RULES,
        amount_rules: Sequence[AmountRule] = DEFAULT_AMOUNT_RULES,
        min_confidence: int = MIN_CONFIDENCE,
    ):
        self.keyword_rules = tuple(keyword_rules)
        self.amount_rules = tuple(amount_rules)
        self.min_confidence = min_confidence

    def _score(self, transaction: Transaction, category: Category) -> tuple[int, list[str]]:
        text = transaction.text.lower()
        category_text = f"{category.name} {category.description or ''}".lower()
        score = 0
        reasons: list[str] = []

        for rule in self.keyword_rules:
            if any(k in text for k in rule.expense_keywords) and any(
                k in category_text for k in rule.category_keywords
            ):
                score += rule.score
                reasons.append(rule.reason)

        for rule in self.amount_rules:
            if rule.matches(transaction.amount) and any(
                k in category_text for k in rule.category_keywords
            ):
                score += rule.score
                reasons.append(rule.reason)

        return score, reasons

    def suggest(
        self,
        transaction: Transaction,
        categories: Sequence[Category],
    ) -> Optional[CategorySuggestion]:
        best: Optional[tuple[int, Category, list[str]]] = None
        for category in categories:
            score, reasons = self._score(transaction, category)
            if score < self.min_confidence:
                continue
            if best is None or score > best[0]:
                best = (score, category, reasons)

        if best is None:
            return None

        score, category, reasons = best
        return CategorySuggestion(
            transaction_id=transaction.id,
            category_id=category.id,
            category_name=category.name,
            confidence=score,
            reasoning=", ".join(reasons),
        )


def suggest_categories(
    transactions: Iterable[Transaction],
    categories: Sequence[Category],
    suggester: Optional[CategorySuggester] = None,
) -> list[CategorySuggestion]:
    """Suggestions for every uncategorized transaction that matches a category."""
    suggester = suggester or KeywordCategorySuggester()
    suggestions = []
    for txn in transactions:
        if txn.category_id is not None:
            continue
        suggestion = suggester.suggest(txn, categories)
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions
