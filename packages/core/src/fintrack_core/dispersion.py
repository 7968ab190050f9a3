"""Dispersion and direction labels for numeric series.

Used for the day-to-day spending volatility shown with insights and for
prediction confidence.
"""

import math
from typing import Sequence

from .models import Consistency, TrendDirection
from .numeric import Number, as_floats

CONSISTENT_RATIO = 0.3
MODERATE_RATIO = 0.6
DIRECTION_TOLERANCE = 0.1


def mean(series: Sequence[Number]) -> float:
    values = as_floats(series)
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_std_dev(series: Sequence[Number]) -> float:
    values = as_floats(series)
    if not values:
        return 0.0
    mu = sum(values) / len(values)
    variance = sum((v - mu) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def consistency(series: Sequence[Number]) -> Consistency:
    """Label a series by its coefficient of variation.

    consistent: sigma < 0.3 * mean
    moderate:   sigma < 0.6 * mean
    variable:   otherwise
    """
    values = as_floats(series)
    if len(values) < 2:
        return Consistency.INSUFFICIENT_DATA

    mu = mean(values)
    sigma = population_std_dev(values)
    if sigma < mu * CONSISTENT_RATIO:
        return Consistency.CONSISTENT
    if sigma < mu * MODERATE_RATIO:
        return Consistency.MODERATE
    return Consistency.VARIABLE


def trend_direction(series: Sequence[Number]) -> TrendDirection:
    """Compare the means of the two halves of a series.

    On odd lengths the first half is the smaller one. A change of more than
    10% either way counts as increasing or decreasing.
    """
    values = as_floats(series)
    if len(values) < 3:
        return TrendDirection.INSUFFICIENT_DATA

    split = len(values) // 2
    first_avg = mean(values[:split])
    second_avg = mean(values[split:])

    if second_avg > first_avg * (1 + DIRECTION_TOLERANCE):
        return TrendDirection.INCREASING
    if second_avg < first_avg * (1 - DIRECTION_TOLERANCE):
        return TrendDirection.DECREASING
    return TrendDirection.STABLE
