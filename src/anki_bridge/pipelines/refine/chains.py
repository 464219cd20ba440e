"""
LangChain chain turning a word and its context into a note description.
"""
from __future__ import annotations

import json
import logging

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.runnables import Runnable
from pydantic import ValidationError

from anki_bridge.common.html import escape_html, strip_tags
from anki_bridge.common.observability import get_default_callbacks
from anki_bridge.common.reliability import retry_async
from anki_bridge.errors import LLMResponseError
from anki_bridge.pipelines.refine.models import NoteDescription, RefinedNote, RefineRequest
from anki_bridge.pipelines.refine.prompts import build_refine_prompts

logger = logging.getLogger(__name__)

FULL_DEFINITION_TITLE = "Full definition"


def build_refine_chain(llm: Runnable) -> Runnable:
    """prompt | llm | text, taking ``{"word", "context"}``."""
    prompts = build_refine_prompts()
    prompt = ChatPromptTemplate.from_messages([
        ("system", prompts["system"]),
        ("human", prompts["human"]),
    ])
    return prompt | llm | StrOutputParser()


def parse_note_description(content: str) -> NoteDescription:
    """Parse the model output as a NoteDescription.

    Raises:
        LLMResponseError: if the content is not a JSON object of the expected shape
    """
    try:
        data = json.loads(content)
    except ValueError as e:
        raise LLMResponseError(f"Model response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise LLMResponseError(f"Model response is not a JSON object: {type(data).__name__}")
    try:
        return NoteDescription.model_validate(data)
    except ValidationError as e:
        raise LLMResponseError(f"Model response has an unexpected shape: {e}") from e


def render_description(description: NoteDescription) -> str:
    """Build the HTML fragment stored in the note's description field."""
    html = ""
    if description.translation:
        html += f'<div class="translation">{escape_html(description.translation)}</div>'

    if description.transcription or description.context_definition:
        html += '<div class="transcription-context">'
        if description.transcription:
            html += f'<span class="transcription">{escape_html(description.transcription)}</span>'
        if description.context_definition:
            html += f'<span class="context-definition">{escape_html(description.context_definition)}</span>'
        html += '</div>'

    if description.definition:
        html += '<div class="full-definition">'
        html += f'<strong>{FULL_DEFINITION_TITLE}</strong>'
        html += '<ul class="definition-list">'
        for sense in description.definition:
            html += f'<li>{escape_html(sense)}</li>'
        html += '</ul>'
        html += '</div>'
    return html


async def refine_note(
        request: RefineRequest,
        llm: Runnable,
        *,
        max_attempts: int,
        delay_ms: float,
) -> RefinedNote:
    """Ask the model about ``request`` and render its answer.

    The whole exchange (call + parse) is retried as one unit.

    Args:
        request: word and context; HTML tags are stripped before prompting
        llm: chat model, expected to be in JSON mode
        max_attempts: attempts including the first
        delay_ms: constant delay between attempts

    Returns:
        The refined note; word/context fall back to the stripped input
    """
    word = strip_tags(request.word)
    context = strip_tags(request.context)
    chain = build_refine_chain(llm)

    async def attempt() -> RefinedNote:
        content = await chain.ainvoke(
            {"word": word, "context": context},
            config={"callbacks": get_default_callbacks()},
        )
        if not content:
            raise LLMResponseError("No JSON was detected in the model response")
        try:
            description = parse_note_description(content)
        except LLMResponseError as e:
            logger.error(f"Failed to parse model response: {e}", extra={"word": word})
            raise
        return RefinedNote(
            word=description.word if description.word is not None else word,
            context=description.context if description.context is not None else context,
            desc=render_description(description),
        )

    return await retry_async(attempt, max_attempts, delay_ms)
