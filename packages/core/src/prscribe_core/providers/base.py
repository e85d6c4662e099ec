"""Base narrator implementing the Template Method pattern.

All backends share the same algorithm:
    narrate() → _call_api()   ← only this differs per backend
              → _parse()

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

Prompt construction lives in prscribe_core.narrative; JSON extraction and
shape validation live here so every backend accepts and rejects the same
replies.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod

from prscribe_core.errors import NarrativeBackendError
from prscribe_core.models import PRStory

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a senior software engineer analyzing GitHub pull requests. "
    "Provide insightful, technical analysis in JSON format. Always respond with valid JSON only."
)

_MAX_TOKENS = 1000
DEFAULT_TIMEOUT = 5.0  # seconds


def first_json_object(text: str) -> str | None:
    """Return the first balanced {...} substring of text, or None.

    Braces inside JSON string literals are ignored so a summary containing
    "{" does not cut the object short.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        # Unbalanced from this brace; try the next one.
        start = text.find("{", start + 1)
    return None


class BaseNarrator(ABC):
    NAME: str = "base"
    MAX_TOKENS: int = _MAX_TOKENS

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def narrate(self, prompt: str) -> PRStory:
        """Send prompt to the backend and return the parsed story.

        Raises NarrativeBackendError on any failure: transport, empty reply,
        or a reply that does not contain a conforming JSON object.
        """
        try:
            raw = self._call_api(SYSTEM_PROMPT, prompt)
        except Exception as e:
            raise NarrativeBackendError(f"{self.NAME} API error: {e}") from e
        if not raw:
            raise NarrativeBackendError(f"No content received from {self.NAME}")
        return self._parse(raw)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each backend                                 #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; narrate() turns any exception into NarrativeBackendError.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _parse(self, raw: str) -> PRStory:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            candidate = first_json_object(raw)
            if candidate is None:
                logger.warning("%s: no JSON object in response: %s", self.__class__.__name__, raw[:200])
                raise NarrativeBackendError(f"Invalid JSON response from {self.NAME}")
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError as e:
                logger.warning("%s: failed to parse response as JSON: %s", self.__class__.__name__, raw[:200])
                raise NarrativeBackendError(f"Invalid JSON response from {self.NAME}") from e

        try:
            return PRStory.from_dict(data)
        except ValueError as e:
            raise NarrativeBackendError(f"{self.NAME} returned a malformed story: {e}") from e
