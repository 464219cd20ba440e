"""Tests for ServiceContract / Action encoding and decoding."""

from __future__ import annotations

import warnings
from typing import Dict, List

import pytest
from pydantic import BaseModel

from anki_bridge.rpc.contract import Action, Param, ServiceContract
from anki_bridge.services.contracts import AI_CONTRACT, ANKI_CONTRACT, NoteRecord


class Point(BaseModel):
    x: int
    y: int


MOVE = Action(
    "move", "move",
    params=(Param("point", Point), Param("steps", List[int], default=[])),
    result=Point,
)


class TestAction:
    def test_encode_binds_and_dumps(self) -> None:
        assert MOVE.encode_args(Point(x=1, y=2), [3]) == [{"x": 1, "y": 2}, [3]]

    def test_encode_applies_defaults(self) -> None:
        assert MOVE.encode_args(point=Point(x=0, y=0)) == [{"x": 0, "y": 0}, []]

    def test_encode_rejects_unknown_keyword(self) -> None:
        with pytest.raises(TypeError, match="move"):
            MOVE.encode_args(Point(x=0, y=0), speed=3)

    def test_encode_validates_plain_mappings(self) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert MOVE.encode_args({"x": "1", "y": 2}) == [{"x": 1, "y": 2}, []]

    def test_encode_rejects_invalid_values(self) -> None:
        with pytest.raises(TypeError, match="invalid argument 'point'"):
            MOVE.encode_args({"x": "left"})

    def test_decode_validates_models(self) -> None:
        point, steps = MOVE.decode_args([{"x": 1, "y": 2}, [1, 2]])
        assert point == Point(x=1, y=2)
        assert steps == [1, 2]

    def test_decode_rejects_bad_values(self) -> None:
        with pytest.raises(ValueError):
            MOVE.decode_args([{"x": "left"}])

    def test_decode_rejects_extra_values(self) -> None:
        with pytest.raises(ValueError, match="at most 2"):
            MOVE.decode_args([{"x": 1, "y": 2}, [], "extra"])

    def test_result_round_trip(self) -> None:
        raw = MOVE.encode_result(Point(x=5, y=6))
        assert raw == {"x": 5, "y": 6}
        assert MOVE.decode_result(raw) == Point(x=5, y=6)

    def test_signature(self) -> None:
        assert list(MOVE.signature.parameters) == ["point", "steps"]
        assert MOVE.params[0].required
        assert not MOVE.params[1].required


class TestServiceContract:
    def test_lookup(self) -> None:
        contract = ServiceContract("geo", [MOVE])
        assert contract.get("move") is MOVE
        assert contract.get("Move") is None
        assert contract.get(None) is None
        assert "move" in contract
        assert len(contract) == 1
        assert list(contract) == [MOVE]

    def test_duplicate_actions_are_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate action 'move'"):
            ServiceContract("geo", [MOVE, MOVE])

    def test_repr_lists_actions(self) -> None:
        assert "move" in repr(ServiceContract("geo", [MOVE]))


class TestBridgeContracts:
    def test_anki_actions(self) -> None:
        assert ANKI_CONTRACT.names == ["storeMediaFile", "addNote", "updateNoteFields", "notesInfo"]

    def test_ai_actions(self) -> None:
        assert AI_CONTRACT.names == ["generateAudio", "refineNote"]

    def test_note_record_uses_wire_names(self) -> None:
        action = ANKI_CONTRACT.get("addNote")
        (note,) = action.decode_args([{"deckName": "D", "modelName": "M", "fields": {"Front": "x"}}])
        assert isinstance(note, NoteRecord)
        assert note.deck_name == "D"
        assert action.encode_args(note) == [{"deckName": "D", "modelName": "M", "fields": {"Front": "x"}}]

    def test_update_fields_coerces_note_id(self) -> None:
        note_id, fields = ANKI_CONTRACT.get("updateNoteFields").decode_args(["1700000000000", {"Back": "b"}])
        assert note_id == 1700000000000
        assert fields == {"Back": "b"}

    def test_notes_info_result_is_a_list_of_mappings(self) -> None:
        action = ANKI_CONTRACT.get("notesInfo")
        rows: List[Dict] = [{"Front": "x", "noteId": 1}]
        assert action.encode_result(rows) == rows
