"""Per-category spending predictions from monthly history."""

from datetime import date
from typing import Mapping, Optional, Sequence

import structlog

from .dispersion import consistency
from .models import (
    MAX_CONFIDENCE,
    Consistency,
    Prediction,
    PredictionReport,
    TimeSeriesPoint,
)
from .numeric import clamp, round_money
from .timeframes import add_months, period_key, validate_months_ahead
from .trend import fit_trend, predict_next, seasonal_factor

logger = structlog.get_logger()

MIN_HISTORY_POINTS = 3
NEED_MORE_DATA_MESSAGE = "Need more data for accurate predictions"

CONSISTENCY_MULTIPLIERS: dict[Consistency, float] = {
    Consistency.CONSISTENT: 1.2,
    Consistency.MODERATE: 1.0,
    Consistency.VARIABLE: 0.8,
    Consistency.INSUFFICIENT_DATA: 1.0,
}


def prediction_confidence(series: Sequence[float]) -> float:
    """Heuristic confidence from sample size and consistency.

    Base: 0.3 below three points, 0.6 for three to five, 0.8 from six.
    Multiplied by 1.2 / 1.0 / 0.8 for consistent / moderate / variable
    series and capped at 0.95.
    """
    count = len(series)
    if count < 3:
        base = 0.3
    elif count <= 5:
        base = 0.6
    else:
        base = 0.8

    multiplier = CONSISTENCY_MULTIPLIERS[consistency(series)]
    return round(clamp(base * multiplier, 0.0, MAX_CONFIDENCE), 4)


class SpendingPredictor:
    """Project monthly category spending forward using a linear trend.

    Each qualifying category gets one predicted amount, repeated for every
    requested future month: the last observed total plus the OLS slope,
    scaled by the seasonal factor (last total over mean total).
    """

    def __init__(self, min_history_points: int = MIN_HISTORY_POINTS):
        self.min_history_points = min_history_points

    def predict(
        self,
        category_series: Mapping[Optional[int], Sequence[TimeSeriesPoint]],
        months_ahead: int,
        reference_date: date,
    ) -> PredictionReport:
        """
        Predict spending for each category with enough history.

        Args:
            category_series: Chronological monthly totals per category id,
                as produced by ``monthly_series_by_category``.
            months_ahead: Number of future months to cover (1-12).
            reference_date: The current date; predictions start the month after.

        Returns:
            PredictionReport. When no category has at least three months of
            history, the report is empty and flagged ``insufficient_data``.

        Raises:
            InvalidParameterError: If months_ahead is outside 1-12.
        """
        validate_months_ahead(months_ahead)

        predictions: list[Prediction] = []
        confidences: list[float] = []
        max_history = 0

        for category_id, points in category_series.items():
            amounts = [float(point.total) for point in points]
            if len(amounts) < self.min_history_points:
                logger.debug(
                    "prediction_category_skipped",
                    category_id=category_id,
                    history_points=len(amounts),
                )
                continue

            slope = fit_trend(amounts)
            factor = seasonal_factor(amounts)
            predicted = round_money(max(0.0, predict_next(amounts, slope, factor)))
            confidence = prediction_confidence(amounts)

            confidences.append(confidence)
            max_history = max(max_history, len(amounts))

            for offset in range(1, months_ahead + 1):
                predictions.append(
                    Prediction(
                        category_id=category_id,
                        period_key=period_key(add_months(reference_date, offset)),
                        predicted_amount=predicted,
                        confidence=confidence,
                    )
                )

        if not predictions:
            logger.info("predictions_insufficient_data", categories=len(category_series))
            return PredictionReport(
                months_ahead=months_ahead,
                insufficient_data=True,
                message=NEED_MORE_DATA_MESSAGE,
            )

        overall = round(sum(confidences) / len(confidences), 4)
        logger.info(
            "predictions_generated",
            categories=len(confidences),
            predictions=len(predictions),
            confidence=overall,
        )
        return PredictionReport(
            predictions=predictions,
            confidence=min(overall, MAX_CONFIDENCE),
            methodology=f"Based on {max_history} months of historical spending patterns",
            months_ahead=months_ahead,
        )
