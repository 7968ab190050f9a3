"""FinTrack Agents - Narrated spending insights and the analytics facade."""

from fintrack_agents.config import AnalyticsConfig, FintrackConfig, LLMConfig
from fintrack_agents.engine import AnalyticsEngine
from fintrack_agents.log_config import configure_logging, configure_logging_from
from fintrack_agents.narrator import InsightNarrator
from fintrack_agents.reasoning import (
    AnthropicReasoningClient,
    ReasoningClient,
    ReasoningOutcome,
    create_reasoning_client,
)

__version__ = "0.1.0"

__all__ = [
    "AnalyticsConfig",
    "AnalyticsEngine",
    "AnthropicReasoningClient",
    "FintrackConfig",
    "InsightNarrator",
    "LLMConfig",
    "ReasoningClient",
    "ReasoningOutcome",
    "configure_logging",
    "configure_logging_from",
    "create_reasoning_client",
]
