"""Spending anomaly detection.

Each transaction is compared with an expected range around a reference
amount. When the caller supplies per-category baselines built from a
history window, the reference is the category's historical mean and the
dispersion is its standard deviation. Without a usable baseline (none for
the category, or a zero mean) the transaction's own amount is the reference
with an assumed 30% dispersion, which never flags the transaction.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Mapping, NamedTuple, Optional, Union

import structlog

from .dispersion import mean, population_std_dev
from .models import (
    Anomaly,
    AnomalyDirection,
    CategoryBaseline,
    CategoryIndex,
    Sensitivity,
    Transaction,
    category_label,
)
from .numeric import HUNDRED, ZERO, clamp_percentage, round_money
from .timeframes import parse_sensitivity

logger = structlog.get_logger()

ASSUMED_RELATIVE_DISPERSION = Decimal("0.3")
BAND_WIDTH = Decimal("2")

SENSITIVITY_MULTIPLIERS: dict[Sensitivity, Decimal] = {
    Sensitivity.LOW: Decimal("2.0"),
    Sensitivity.MEDIUM: Decimal("1.5"),
    Sensitivity.HIGH: Decimal("1.2"),
}


class ExpectedRange(NamedTuple):
    expected: Decimal
    lower: Decimal
    upper: Decimal


def expected_range(
    reference: Decimal,
    dispersion: Decimal,
    multiplier: Decimal,
) -> ExpectedRange:
    """Band of ``multiplier * 2 * dispersion`` either side of the reference.

    A smaller multiplier gives a narrower band, so higher sensitivity flags
    every transaction a lower sensitivity would, and possibly more.
    """
    half_width = multiplier * BAND_WIDTH * dispersion
    return ExpectedRange(
        expected=reference,
        lower=max(ZERO, reference - half_width),
        upper=reference + half_width,
    )


def build_category_baselines(
    history: Iterable[Transaction],
) -> dict[Optional[int], CategoryBaseline]:
    """Historical mean and population standard deviation per category."""
    amounts: dict[Optional[int], list[Decimal]] = defaultdict(list)
    for txn in history:
        amounts[txn.category_id].append(txn.amount)

    return {
        category_id: CategoryBaseline(
            category_id=category_id,
            mean=round_money(mean(values)),
            std_dev=round_money(population_std_dev(values)),
            sample_count=len(values),
        )
        for category_id, values in amounts.items()
    }


class AnomalyDetector:
    """Flag transactions outside their expected spending range."""

    def __init__(
        self,
        multipliers: Optional[Mapping[Sensitivity, Decimal]] = None,
        min_baseline_samples: int = 1,
    ):
        self.multipliers = dict(multipliers or SENSITIVITY_MULTIPLIERS)
        self.min_baseline_samples = min_baseline_samples

    def _reference(
        self,
        txn: Transaction,
        baselines: Optional[Mapping[Optional[int], CategoryBaseline]],
    ) -> tuple[Decimal, Decimal]:
        baseline = baselines.get(txn.category_id) if baselines else None
        if (
            baseline is not None
            and baseline.sample_count >= self.min_baseline_samples
            and baseline.mean > 0
        ):
            dispersion = baseline.std_dev
            if dispersion <= 0:
                dispersion = baseline.mean * ASSUMED_RELATIVE_DISPERSION
            return baseline.mean, dispersion
        return txn.amount, txn.amount * ASSUMED_RELATIVE_DISPERSION

    def detect(
        self,
        transactions: Iterable[Transaction],
        sensitivity: Union[Sensitivity, str] = Sensitivity.MEDIUM,
        baselines: Optional[Mapping[Optional[int], CategoryBaseline]] = None,
        categories: Optional[CategoryIndex] = None,
    ) -> list[Anomaly]:
        """
        Detect unusually high or low transactions.

        Args:
            transactions: Transactions to check. May be empty.
            sensitivity: low, medium or high.
            baselines: Optional per-category history from
                ``build_category_baselines``.
            categories: Optional category index used for labels.

        Returns:
            Anomalies ordered by date (newest first), then transaction id.

        Raises:
            InvalidParameterError: If sensitivity is not recognised.
        """
        sensitivity = parse_sensitivity(sensitivity)
        multiplier = self.multipliers[sensitivity]

        anomalies: list[Anomaly] = []
        for txn in transactions:
            reference, dispersion = self._reference(txn, baselines)
            band = expected_range(reference, dispersion, multiplier)
            actual = txn.amount

            if band.lower <= actual <= band.upper:
                continue

            if reference > 0:
                deviation = abs(actual - reference) / reference * HUNDRED
            else:
                deviation = ZERO

            anomalies.append(
                Anomaly(
                    transaction_id=txn.id,
                    occurred_on=txn.occurred_on,
                    category_id=txn.category_id,
                    category_name=category_label(txn.category_id, categories),
                    expected_amount=round_money(reference),
                    actual_amount=actual,
                    deviation_percentage=clamp_percentage(deviation),
                    direction=(
                        AnomalyDirection.HIGH if actual > band.upper else AnomalyDirection.LOW
                    ),
                )
            )

        anomalies.sort(key=lambda a: str(a.transaction_id))
        anomalies.sort(key=lambda a: a.occurred_on, reverse=True)

        logger.info(
            "anomalies_detected",
            sensitivity=sensitivity.value,
            total_detected=len(anomalies),
            with_baselines=bool(baselines),
        )
        return anomalies
