"""Linear trend and seasonal adjustment for ordered numeric series."""

from typing import Sequence

from .numeric import Number, as_floats


def fit_trend(series: Sequence[Number]) -> float:
    """Ordinary least squares slope of the series against its index.

    The index runs 1..n. Series shorter than two points are flat.
    """
    values = as_floats(series)
    n = len(values)
    if n < 2:
        return 0.0

    xs = range(1, n + 1)
    sum_x = sum(xs)
    sum_y = sum(values)
    sum_xy = sum(x * y for x, y in zip(xs, values))
    sum_x2 = sum(x * x for x in xs)

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def seasonal_factor(series: Sequence[Number]) -> float:
    """Last value divided by the series mean; 1.0 when the mean is zero."""
    values = as_floats(series)
    if not values:
        return 1.0
    mean = sum(values) / len(values)
    if mean == 0:
        return 1.0
    return values[-1] / mean


def predict_next(series: Sequence[Number], slope: float, factor: float) -> float:
    """Next value as ``(last + slope) * factor``, floored at zero."""
    values = as_floats(series)
    if not values:
        return 0.0
    return max(0.0, (values[-1] + slope) * factor)
