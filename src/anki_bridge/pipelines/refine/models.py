"""
Data models for note refinement.
"""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RefineRequest(BaseModel):
    """A word and the sentence it was met in."""
    word: str = Field(..., description="Word or phrase to explain")
    context: str = Field(..., description="Sentence containing the word")


class RefinedNote(BaseModel):
    """Word, context and the generated HTML description."""
    word: str = Field(..., description="Word as normalized by the model")
    context: str = Field(..., description="Context as normalized by the model")
    desc: str = Field(..., description="HTML description for the note")


class NoteDescription(BaseModel):
    """JSON object the language model is asked to emit.

    Every key is optional; missing ones are left out of the rendered HTML.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    word: Optional[str] = Field(None, description="Dictionary form of the word")
    context: Optional[str] = Field(None, description="Context with the word wrapped in <b> tags")
    translation: Optional[str] = Field(None, description="Main translation")
    transcription: Optional[str] = Field(None, description="Phonetic transcription")
    context_definition: Optional[str] = Field(
        None, alias="context-definition", description="Meaning in this context"
    )
    definition: List[str] = Field(default_factory=list, description="Full list of senses")

    @field_validator("definition", mode="before")
    @classmethod
    def _only_string_senses(cls, value: Any) -> List[str]:
        # Models occasionally answer with a single string or mixed items
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]
