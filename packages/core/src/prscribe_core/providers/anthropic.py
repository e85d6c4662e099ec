from __future__ import annotations

from prscribe_core.providers.base import DEFAULT_TIMEOUT, BaseNarrator


class AnthropicNarrator(BaseNarrator):
    NAME = "anthropic"
    MODEL = "claude-3-5-haiku-latest"
    TEMPERATURE = 0.7

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this backend. "
                "Install it with: pip install 'prscribe[anthropic]'"
            )
        self.client = Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        # Imported inside the method because the anthropic package is optional;
        # __init__ already validated it is installed before we reach here.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.MODEL,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
