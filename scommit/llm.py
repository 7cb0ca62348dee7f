"""LLM refinement for scommit commit messages.

The model is asked for a JSON object with ``subject`` and ``body`` keys.
Replies are frequently not quite that: wrapped in markdown fences, with the
body as a list of bullets or nested under ``bullets``/``lines``, or with the
subject buried in an object. The helpers here tolerate those shapes and
raise ``LLMError`` for anything unusable so callers can fall back to the
heuristic message.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional, Sequence

from .changes import FileChange
from .config import Config, get_active_config
from .exceptions import LLMError
from .providers.base import BaseDriver
from .providers.openai_driver import OpenAIDriver
from .stats import Stats

MAX_RECENT_SUBJECTS = 6
MAX_PROMPT_CHANGES = 24
DIFF_EXCERPT_LIMIT = 4000

_TEXT_KEYS = ("text", "value", "content", "message", "summary")

SYSTEM_PROMPT = (
    "You are a git commit assistant. Produce informative, specific commit "
    "messages that mirror the repo's tone. Respond strictly as JSON with keys "
    '"subject" and "body". Subject <=72 chars, sentence case, no trailing '
    "period. Body must be 2-5 bullets starting with '- ', focusing on concrete "
    "changes and motivations; mention new commands/flags/examples, doc "
    "sections touched, and any behavioral impacts."
)

BULLET_INSTRUCTIONS = (
    "Write 2-5 bullets that capture the most meaningful changes (what/why), "
    "call out new commands/flags/examples or config/doc topics when present, "
    "and note any behavioral impacts or risks. Avoid generic wording; be "
    "specific to these changes."
)

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Reply coercion
# ----------------------------------------------------------------------
def sanitize_json_blob(content: str) -> Optional[str]:
    """Return the JSON object span inside ``content``, or None.

    A leading markdown fence (````` or ```json``) is dropped first; the
    result is the slice from the first ``{`` to the last ``}``.
    """
    text = content.strip()
    if text.startswith("```"):
        text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        newline = text.find("\n")
        if newline != -1 and "{" not in text[:newline]:
            text = text[newline + 1 :]
        text = text.strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or start >= end:
        return None
    return text[start : end + 1]


def extract_text(value: Any) -> Optional[str]:
    """Find text in a JSON-like value.

    Strings are returned as-is, numbers and booleans are rendered, lists are
    newline-joined, and objects are searched under the common textual keys.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        parts = [t for t in (extract_text(item) for item in value) if t is not None]
        return "\n".join(parts) if parts else None
    if isinstance(value, dict):
        for key in _TEXT_KEYS:
            if key in value:
                found = extract_text(value[key])
                if found is not None:
                    return found
        return None
    return None


def strip_bullet_prefix(line: str) -> str:
    return line.strip().lstrip("-•").lstrip()


def coerce_subject(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = extract_text(value)
    if text is None:
        return None
    text = text.strip()
    return text or None


def coerce_body(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        lines = []
        for item in value:
            text = extract_text(item)
            if text is None:
                continue
            lines.append(f"- {strip_bullet_prefix(text)}")
        return "\n".join(lines)
    if isinstance(value, dict):
        # Some models nest the body under "bullets" or "lines".
        for key in ("bullets", "lines"):
            if key in value:
                return coerce_body(value[key])
        text = extract_text(value)
        return text.strip() if text is not None else ""
    return ""


def parse_ai_reply(content: str) -> tuple[str, str]:
    """Turn raw model text into ``(subject, body)``.

    Raises ``LLMError`` when no JSON object can be found, when it does not
    decode, or when it carries no usable subject.
    """
    blob = sanitize_json_blob(content)
    if blob is None:
        raise LLMError(f"AI response missing JSON object: {content[:200]}")
    try:
        data = json.loads(blob)
    except (json.JSONDecodeError, RecursionError) as e:
        raise LLMError(f"decoding AI json: {e}") from e
    if not isinstance(data, dict):
        raise LLMError("AI JSON missing usable subject")
    subject = coerce_subject(data.get("subject"))
    if subject is None:
        raise LLMError("AI JSON missing usable subject")
    return subject, coerce_body(data.get("body"))


# ----------------------------------------------------------------------
# Prompt
# ----------------------------------------------------------------------
def build_prompt(
    changes: Sequence[FileChange],
    stats: Stats,
    recent_subjects: Iterable[str] = (),
    diff_stat: str = "",
    diff_excerpt: str = "",
) -> str:
    recent = list(recent_subjects)[:MAX_RECENT_SUBJECTS]
    change_lines = "\n".join(c.describe() for c in changes[:MAX_PROMPT_CHANGES])
    if len(changes) > MAX_PROMPT_CHANGES:
        change_lines += (
            f"\n... {len(changes) - MAX_PROMPT_CHANGES} more file(s) not listed"
        )
    parts = [
        (
            f"Repo stats: files {stats.files}, +{stats.added}, -{stats.deleted}; "
            f"categories {stats.describe_categories()}; "
            f"new {stats.new_files}, removed {stats.removed_files}."
        ),
        "Recent commit subjects:",
        "- " + "\n- ".join(recent) if recent else "- (none)",
        "Changes (staged):",
        change_lines,
        "",
        "Diffstat:",
        diff_stat.strip(),
        "",
        "Diff excerpt (trimmed):",
        diff_excerpt[:DIFF_EXCERPT_LIMIT],
        "",
        BULLET_INSTRUCTIONS,
    ]
    return "\n".join(parts)


class LLMClient:
    """Requests a refined commit message from the configured model."""

    def __init__(
        self,
        config: Optional[Config] = None,
        debug: bool = False,
        driver: Optional[BaseDriver] = None,
    ) -> None:
        self.config = config or get_active_config()
        self.debug = debug
        self.model = self.config.model
        self._driver = driver or OpenAIDriver(self.config, debug=debug)

    def _build_messages(self, prompt: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def try_refine(
        self,
        changes: Sequence[FileChange],
        stats: Stats,
        recent_subjects: Iterable[str] = (),
        diff_stat: str = "",
        diff_excerpt: str = "",
        model: Optional[str] = None,
    ) -> Optional[tuple[str, str]]:
        """Return a model-written ``(subject, body)`` or None.

        None means the model produced nothing usable and the heuristic
        message should be used. Transport errors, error statuses and
        malformed replies raise ``LLMError``.
        """
        prompt = build_prompt(changes, stats, recent_subjects, diff_stat, diff_excerpt)
        logger.debug("refinement prompt is %d characters", len(prompt))
        content = self._driver.invoke_messages(
            self._build_messages(prompt), model=model or self.model
        )
        if not content:
            logger.debug("model reply carried no content")
            return None
        subject, body = parse_ai_reply(content)
        if not subject:
            return None
        return subject, body
