from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.messages import BaseMessage
from langchain_core.outputs import LLMResult

logger = logging.getLogger(__name__)


def extract_usage_metadata(response: LLMResult) -> Optional[Dict[str, Any]]:
    """Find token usage in an LLMResult.

    Tries, in order:
    1. response.generations[0][0].message.usage_metadata (LangChain standard)
    2. response.llm_output["token_usage"] (OpenAI-compatible providers)
    """
    if response.generations and response.generations[0]:
        message = getattr(response.generations[0][0], "message", None)
        if isinstance(message, BaseMessage):
            usage = getattr(message, "usage_metadata", None)
            if usage:
                return dict(usage)

    if isinstance(response.llm_output, dict):
        usage = response.llm_output.get("token_usage")
        if isinstance(usage, dict):
            return {
                "input_tokens": usage.get("prompt_tokens"),
                "output_tokens": usage.get("completion_tokens"),
                "total_tokens": usage.get("total_tokens"),
            }

    return None


class TokenUsageCallback(BaseCallbackHandler):
    """Log token usage of each completion at INFO level.

    Nothing is accumulated: requests are independent and share no counters.
    """

    def on_llm_end(self, response: LLMResult, *, run_id, parent_run_id=None, **kwargs: Any) -> None:
        try:
            usage = extract_usage_metadata(response)
            if not usage:
                return

            model_name = None
            if isinstance(response.llm_output, dict):
                model_name = response.llm_output.get("model_name")

            logger.info(
                "Token usage",
                extra={
                    "model": model_name,
                    "input_tokens": usage.get("input_tokens"),
                    "output_tokens": usage.get("output_tokens"),
                    "total_tokens": usage.get("total_tokens"),
                },
            )
        except Exception as e:  # pragma: no cover
            logger.error(f"Failed to log token usage: {e}")


class LLMPromptResponseCallback(BaseCallbackHandler):
    """Log full LLM prompts and responses at DEBUG level."""

    def on_chat_model_start(
        self,
        serialized: Dict[str, Any],
        messages: List[List[BaseMessage]],
        *,
        run_id,
        parent_run_id=None,
        **kwargs: Any,
    ) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return

        try:
            params = kwargs.get("invocation_params", {})
            logger.debug(
                "LLM Request",
                extra={
                    "model": params.get("model") or params.get("model_name", "unknown"),
                    "temperature": params.get("temperature", "unknown"),
                },
            )
            for batch in messages:
                for message in batch:
                    logger.debug(f"[{message.type}]\n{message.content}")
        except Exception as e:
            logger.error(f"Failed to log LLM start: {e}")

    def on_llm_end(self, response: LLMResult, *, run_id, parent_run_id=None, **kwargs: Any) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return

        try:
            logger.debug(f"LLM Response:\n{response}")
        except Exception as e:
            logger.error(f"Failed to log LLM response: {e}", exc_info=True)


def get_default_callbacks() -> List[BaseCallbackHandler]:
    """Callbacks attached to every chain invocation."""
    return [
        TokenUsageCallback(),
        LLMPromptResponseCallback(),
    ]
