"""FinTrack Core - Spending analytics over a user's transaction history."""

__version__ = "0.1.0"

from .aggregator import aggregate, monthly_series_by_category
from .anomaly import AnomalyDetector, build_category_baselines
from .cache import InsightCache, insight_cache_key
from .exceptions import FintrackError, InvalidParameterError
from .models import Category, InsightResult, PaymentMethod, Transaction
from .predictor import SpendingPredictor
from .recurrence import RecurrenceDetector

__all__ = [
    "AnomalyDetector",
    "Category",
    "FintrackError",
    "InsightCache",
    "InsightResult",
    "InvalidParameterError",
    "PaymentMethod",
    "RecurrenceDetector",
    "SpendingPredictor",
    "Transaction",
    "aggregate",
    "build_category_baselines",
    "insight_cache_key",
    "monthly_series_by_category",
]
