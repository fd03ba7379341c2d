"""
Language model calls for title enhancement, image analysis and
resellability classification.

One LanguageModel wraps whichever provider is configured (OpenAI or
Claude) behind a single ``complete()`` call. The three task helpers build
the prompt, call the model and interpret the answer.
"""

import logging
from typing import Optional, Any

from config import LLM_PROVIDER, MODEL_TITLE, MODEL_VISION, MODEL_CLAUDE
from services.exceptions import LanguageModelError, MissingAPIKeyError
from services.prompts import (
    TITLE_SUFFICIENT,
    TITLE_TOO_VAGUE,
    IMAGE_ANALYSIS_PROMPT,
    get_enhance_title_prompt,
    get_resellable_prompt,
)

logger = logging.getLogger(__name__)


class LanguageModel:
    """Provider-agnostic text/vision completion."""

    def __init__(
        self,
        provider: str = LLM_PROVIDER,
        openai_client: Any = None,
        anthropic_client: Any = None,
        text_model: str = MODEL_TITLE,
        vision_model: str = MODEL_VISION,
        claude_model: str = MODEL_CLAUDE,
    ):
        self.provider = provider
        self.openai_client = openai_client
        self.anthropic_client = anthropic_client
        self.text_model = text_model
        self.vision_model = vision_model
        self.claude_model = claude_model

    @property
    def available(self) -> bool:
        if self.provider == "claude":
            return self.anthropic_client is not None
        return self.openai_client is not None

    async def complete(
        self,
        prompt: str,
        max_tokens: int = 50,
        temperature: float = 0.1,
        image_url: Optional[str] = None,
    ) -> str:
        """
        Run one completion and return the stripped text ("" if empty).

        Raises:
            MissingAPIKeyError: no client for the configured provider
            LanguageModelError: the provider call failed
        """
        if not self.available:
            raise MissingAPIKeyError(self.provider)

        try:
            if self.provider == "claude":
                text = await self._call_anthropic(prompt, max_tokens, temperature, image_url)
            else:
                text = await self._call_openai(prompt, max_tokens, temperature, image_url)
        except Exception as e:
            raise LanguageModelError(
                "AI request failed",
                provider=self.provider,
                model=self.vision_model if image_url else self.text_model,
                cause=e,
            )

        return (text or "").strip()

    async def _call_openai(self, prompt, max_tokens, temperature, image_url) -> Optional[str]:
        if image_url:
            content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image_url}},
            ]
            model = self.vision_model
        else:
            content = prompt
            model = self.text_model

        response = await self.openai_client.chat.completions.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": content}],
        )
        if not response.choices:
            return None
        return response.choices[0].message.content

    async def _call_anthropic(self, prompt, max_tokens, temperature, image_url) -> Optional[str]:
        if image_url:
            content = [
                {"type": "image", "source": {"type": "url", "url": image_url}},
                {"type": "text", "text": prompt},
            ]
        else:
            content = prompt

        response = await self.anthropic_client.messages.create(
            model=self.claude_model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": content}],
        )
        if not response.content:
            return None
        return response.content[0].text


# ============================================================
# Task helpers
# ============================================================

def interpret_title_answer(answer: str, title: str) -> Optional[str]:
    """SUFFICIENT / TOO_VAGUE / empty / echo of the title all mean no enhancement."""
    cleaned = answer.strip().strip('"').strip()
    if not cleaned or cleaned.upper() in (TITLE_SUFFICIENT, TITLE_TOO_VAGUE):
        return None
    if cleaned.lower() == title.strip().lower():
        return None
    return cleaned


async def enhance_title(llm: LanguageModel, title: str) -> Optional[str]:
    """Ask for a more specific product name. None means "no enhancement"."""
    answer = await llm.complete(get_enhance_title_prompt(title), max_tokens=50)
    enhanced = interpret_title_answer(answer, title)
    logger.info(f"[AI] Title '{title[:40]}' -> {enhanced or answer or 'no answer'}")
    return enhanced


async def analyze_image(llm: LanguageModel, image_url: str) -> Optional[str]:
    """Ask for a searchable product name from a listing photo."""
    answer = await llm.complete(IMAGE_ANALYSIS_PROMPT, max_tokens=100, image_url=image_url)
    logger.info(f"[AI] Image analysis -> {answer[:60] if answer else 'no answer'}")
    return answer or None


async def classify_resellable(llm: LanguageModel, title: str) -> bool:
    """Remote classifier: only an exact (case-insensitive) "yes" counts."""
    answer = await llm.complete(get_resellable_prompt(title), max_tokens=10)
    return answer.strip().lower() == "yes"
