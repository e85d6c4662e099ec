from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from prscribe_core.providers.base import DEFAULT_TIMEOUT, BaseNarrator


class OpenAINarrator(BaseNarrator):
    NAME = "openai"
    # Cheaper and faster than the full-size model; the story is short.
    MODEL = "gpt-4o-mini"
    TEMPERATURE = 0.7

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this backend. " "Install it with: pip install 'prscribe[openai]'"
            )
        # SDK retries are off: a failing backend should hand over to the next
        # one, not hold up the fallback.
        self.client = _OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        return response.choices[0].message.content
