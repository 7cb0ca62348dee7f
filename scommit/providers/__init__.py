"""Provider drivers for remote commit-message models."""

from .base import BaseDriver
from .openai_driver import OpenAIDriver

__all__ = ["BaseDriver", "OpenAIDriver"]
