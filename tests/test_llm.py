# tests/test_llm.py

"""Tests for the provider-agnostic language model wrapper."""

import unittest
from unittest.mock import AsyncMock, MagicMock

from services.exceptions import LanguageModelError, MissingAPIKeyError
from services.llm import (
    LanguageModel,
    analyze_image,
    enhance_title,
    interpret_title_answer,
)


def _openai(text):
    client = MagicMock()
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


def _anthropic(text):
    client = MagicMock()
    response = MagicMock()
    response.content = [MagicMock(text=text)]
    client.messages.create = AsyncMock(return_value=response)
    return client


class TestInterpretTitleAnswer(unittest.TestCase):

    def test_sentinels_mean_no_enhancement(self) -> None:
        self.assertIsNone(interpret_title_answer("SUFFICIENT", "Yeti Mic"))
        self.assertIsNone(interpret_title_answer("too_vague", "Yeti Mic"))
        self.assertIsNone(interpret_title_answer("", "Yeti Mic"))

    def test_echo_is_no_enhancement(self) -> None:
        self.assertIsNone(interpret_title_answer('"yeti mic"', "Yeti Mic"))

    def test_product_name(self) -> None:
        self.assertEqual(
            interpret_title_answer('"Blue Yeti USB Microphone"', "Yeti Mic"),
            "Blue Yeti USB Microphone",
        )


class TestLanguageModel(unittest.IsolatedAsyncioTestCase):

    async def test_no_client_raises_missing_key(self) -> None:
        llm = LanguageModel(provider="openai")
        self.assertFalse(llm.available)
        with self.assertRaises(MissingAPIKeyError):
            await llm.complete("hi")

    async def test_openai_text_uses_title_model(self) -> None:
        client = _openai("  Blue Yeti USB Microphone \n")
        llm = LanguageModel(provider="openai", openai_client=client, text_model="gpt-4o-mini")

        self.assertEqual(await enhance_title(llm, "Yeti Mic"), "Blue Yeti USB Microphone")
        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o-mini")
        self.assertEqual(kwargs["max_tokens"], 50)

    async def test_openai_image_uses_vision_model(self) -> None:
        client = _openai("Blue Yeti")
        llm = LanguageModel(provider="openai", openai_client=client, vision_model="gpt-4o")

        self.assertEqual(await analyze_image(llm, "https://img/1.jpg"), "Blue Yeti")
        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o")
        content = kwargs["messages"][0]["content"]
        self.assertEqual(content[1], {"type": "image_url", "image_url": {"url": "https://img/1.jpg"}})

    async def test_claude_image(self) -> None:
        client = _anthropic("Blue Yeti")
        llm = LanguageModel(provider="claude", anthropic_client=client, claude_model="claude-test")

        self.assertEqual(await analyze_image(llm, "https://img/1.jpg"), "Blue Yeti")
        kwargs = client.messages.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "claude-test")
        self.assertEqual(
            kwargs["messages"][0]["content"][0],
            {"type": "image", "source": {"type": "url", "url": "https://img/1.jpg"}},
        )

    async def test_empty_image_answer_is_none(self) -> None:
        llm = LanguageModel(provider="openai", openai_client=_openai(None))
        self.assertIsNone(await analyze_image(llm, "https://img/1.jpg"))

    async def test_provider_error_wrapped(self) -> None:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=ConnectionError("reset"))
        llm = LanguageModel(provider="openai", openai_client=client)

        with self.assertRaises(LanguageModelError) as ctx:
            await llm.complete("hi")
        self.assertIsInstance(ctx.exception.cause, ConnectionError)


if __name__ == "__main__":
    unittest.main()
