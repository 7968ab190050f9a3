"""External reasoning service used to narrate insights.

The narrator talks to the service through the ReasoningClient protocol and
only ever sees a ReasoningOutcome: either a successful response text or a
failure with an error message. Transport errors, timeouts and empty
responses are converted into failed outcomes here, so the narrator's
fallback is an ordinary branch rather than exception handling.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

import structlog

from fintrack_core.exceptions import ExternalServiceError

from .config import LLMConfig

logger = structlog.get_logger()

SERVICE_NAME = "anthropic"


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ReasoningOutcome:
    """Result of a single reasoning attempt."""

    status: OutcomeStatus
    text: str = ""
    error: Optional[str] = None
    tokens_used: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED and bool(self.text.strip())

    @classmethod
    def success(cls, text: str, tokens_used: int = 0) -> "ReasoningOutcome":
        return cls(status=OutcomeStatus.SUCCEEDED, text=text, tokens_used=tokens_used)

    @classmethod
    def failure(cls, error: str) -> "ReasoningOutcome":
        return cls(status=OutcomeStatus.FAILED, error=error)


@runtime_checkable
class ReasoningClient(Protocol):
    """Anything that can turn instructions and a prompt into narrative text."""

    def complete(self, instructions: str, prompt: str) -> ReasoningOutcome:
        ...


class AnthropicReasoningClient:
    """
    Reasoning client backed by the Anthropic Messages API.

    The SDK client is created with the configured timeout and with retries
    disabled: one bounded attempt per call.
    """

    def __init__(self, config: Optional[LLMConfig] = None, api_key: Optional[str] = None):
        """
        Initialize the client.

        Args:
            config: LLM settings. Defaults are loaded from the environment.
            api_key: Anthropic API key. Falls back to the config, then to the
                ANTHROPIC_API_KEY environment variable.

        Raises:
            ImportError: If the anthropic package is not installed.
            ValueError: If no API key is available.
        """
        try:
            import anthropic
            self._anthropic = anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for narrated insights. "
                "Install it with: pip install anthropic"
            )

        self.config = config or LLMConfig()
        self.api_key = api_key or self.config.api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError(
                "No Anthropic API key provided. Set FINTRACK_LLM_API_KEY or "
                "ANTHROPIC_API_KEY, or pass api_key parameter."
            )

        self.client = self._anthropic.Anthropic(
            api_key=self.api_key,
            timeout=self.config.timeout,
            max_retries=0,
        )

    def _request(self, instructions: str, prompt: str) -> tuple[str, int]:
        try:
            response = self.client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                system=instructions,
                messages=[{"role": "user", "content": prompt}],
            )
        except self._anthropic.APITimeoutError as e:
            raise ExternalServiceError(
                "Reasoning call timed out",
                service=SERVICE_NAME,
                operation="messages.create",
                api_error=str(e),
            ) from e
        except self._anthropic.APIError as e:
            raise ExternalServiceError(
                "Reasoning call failed",
                service=SERVICE_NAME,
                operation="messages.create",
                api_error=str(e),
            ) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise ExternalServiceError(
                "Reasoning service returned an empty response",
                service=SERVICE_NAME,
                operation="messages.create",
            )
        tokens_used = response.usage.input_tokens + response.usage.output_tokens
        return text, tokens_used

    def complete(self, instructions: str, prompt: str) -> ReasoningOutcome:
        """Single best-effort call; failures come back as a failed outcome."""
        try:
            text, tokens_used = self._request(instructions, prompt)
        except ExternalServiceError as e:
            logger.warning(
                "reasoning_call_failed",
                service=SERVICE_NAME,
                error=e.message,
                api_error=e.api_error,
            )
            return ReasoningOutcome.failure(e.api_error or e.message)

        logger.info("reasoning_call_succeeded", service=SERVICE_NAME, tokens_used=tokens_used)
        return ReasoningOutcome.success(text, tokens_used=tokens_used)


def create_reasoning_client(config: Optional[LLMConfig] = None) -> Optional[ReasoningClient]:
    """
    Build the default reasoning client if one can be used.

    Returns None when the call is disabled, the anthropic package is not
    installed or no API key is configured. The narrator then produces
    local insights only.
    """
    config = config or LLMConfig()
    if not config.enabled:
        logger.info("reasoning_disabled")
        return None
    try:
        return AnthropicReasoningClient(config=config)
    except (ImportError, ValueError) as e:
        logger.info("reasoning_unavailable", error=str(e))
        return None
