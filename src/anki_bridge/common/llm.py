from __future__ import annotations

from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI

from anki_bridge.config_models import LLMConfig


def build_llm(config: LLMConfig, temperature: float, json_mode: bool = False) -> Runnable:
    """Return a chat model for an OpenAI-compatible endpoint.

    Parameters
    - config: endpoint, key and model name; must be complete (see LLMConfig.require).
    - temperature: Sampling temperature.
    - json_mode: Ask the endpoint for a single JSON object
      (``response_format={"type": "json_object"}``).

    The client's own retries are disabled; callers retry with
    ``anki_bridge.common.reliability``.
    """
    config.require()
    llm = ChatOpenAI(
        model=config.model,
        api_key=config.api_key,
        base_url=config.base_url,
        temperature=temperature,
        max_retries=0,
    )
    if json_mode:
        return llm.bind(response_format={"type": "json_object"})
    return llm
