"""Input records consumed by the analytics engine.

Transactions and categories are supplied by the storage layer, already
validated and authorized for a single user. The engine treats them as
read-only value objects.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

UNCATEGORIZED_LABEL = "Uncategorized"


class PaymentMethod(str, Enum):
    """How an expense was paid."""

    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"
    OTHER = "other"


class Transaction(BaseModel):
    """A single recorded expense.

    Amounts are always non-negative; the engine only analyses spending.
    """

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": 42,
                    "category_id": 1,
                    "amount": "15000.00",
                    "occurred_on": "2025-09-15",
                    "payment_method": "card",
                    "title": "Lunch at restaurant",
                }
            ]
        },
    }

    id: Union[int, str] = Field(description="Identifier assigned by the storage layer")
    category_id: Optional[int] = Field(
        default=None,
        description="Category the expense belongs to, None when uncategorized",
    )
    amount: Decimal = Field(ge=0, description="Expense amount, never negative")
    occurred_on: date = Field(description="Calendar date the expense occurred")
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH)
    timestamp: Optional[datetime] = Field(
        default=None,
        description="When the record was created",
    )
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount_to_decimal(cls, v):
        """Coerce string and float amounts to Decimal without binary noise."""
        if isinstance(v, (str, float)):
            return Decimal(str(v))
        return v

    @property
    def period_month(self) -> str:
        """Month key (YYYY-MM) of the expense."""
        return self.occurred_on.strftime("%Y-%m")

    @property
    def text(self) -> str:
        """Title and description joined for keyword matching."""
        return " ".join(part for part in (self.title, self.description) if part)


class Category(BaseModel):
    """A user-defined expense category, used only for labelling output."""

    model_config = {"frozen": True}

    id: int
    name: str
    color: Optional[str] = None
    description: Optional[str] = None


CategoryIndex = Mapping[int, Category]


def category_label(
    category_id: Optional[int],
    categories: Optional[CategoryIndex] = None,
) -> str:
    """Resolve a display name for a category id."""
    if category_id is None:
        return UNCATEGORIZED_LABEL
    if categories and category_id in categories:
        return categories[category_id].name
    return f"Category {category_id}"
