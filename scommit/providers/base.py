from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..config import Config


class BaseDriver(ABC):
    """Abstract base for provider-specific chat calls.

    A driver owns one provider's HTTP call pattern and response shape.
    Prompt construction and reply coercion stay in ``LLMClient`` so every
    provider is held to the same contract.
    """

    def __init__(self, config: Config, debug: bool = False) -> None:
        self.config = config
        self.debug = debug

    @abstractmethod
    def invoke_messages(
        self, messages: list[dict[str, Any]], model: Optional[str] = None
    ) -> Optional[str]:
        """Return the textual reply, or None when the reply has no content.

        Must raise ``LLMError`` on transport failures and non-success
        statuses.
        """
        raise NotImplementedError
