"""Tests for the LangChain logging callbacks."""

from __future__ import annotations

import logging
import uuid

import pytest
from langchain_core.messages import AIMessage
from langchain_core.outputs import ChatGeneration, Generation, LLMResult

from anki_bridge.common.observability import TokenUsageCallback, extract_usage_metadata


def chat_result(usage=None, llm_output=None) -> LLMResult:
    message = AIMessage(content="{}", usage_metadata=usage)
    return LLMResult(generations=[[ChatGeneration(message=message)]], llm_output=llm_output)


class TestExtractUsageMetadata:
    def test_message_usage(self) -> None:
        usage = {"input_tokens": 3, "output_tokens": 4, "total_tokens": 7}
        assert extract_usage_metadata(chat_result(usage)) == usage

    def test_openai_token_usage(self) -> None:
        result = LLMResult(
            generations=[[Generation(text="{}")]],
            llm_output={"token_usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}},
        )
        assert extract_usage_metadata(result) == {"input_tokens": 10, "output_tokens": 5, "total_tokens": 15}

    def test_no_usage(self) -> None:
        assert extract_usage_metadata(chat_result()) is None


class TestTokenUsageCallback:
    def test_logs_usage(self, caplog: pytest.LogCaptureFixture) -> None:
        usage = {"input_tokens": 3, "output_tokens": 4, "total_tokens": 7}
        with caplog.at_level(logging.INFO, logger="anki_bridge.common.observability"):
            TokenUsageCallback().on_llm_end(chat_result(usage, {"model_name": "qwen-plus"}), run_id=uuid.uuid4())
        (record,) = caplog.records
        assert record.getMessage() == "Token usage"
        assert record.model == "qwen-plus"
        assert record.total_tokens == 7

    def test_silent_without_usage(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="anki_bridge.common.observability"):
            TokenUsageCallback().on_llm_end(chat_result(), run_id=uuid.uuid4())
        assert caplog.records == []
