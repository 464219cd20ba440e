"""
Explicit service contracts shared by the tunnel client and server.

A contract is a fixed table of actions. Each action names the wire action,
the Python method implementing it, its ordered parameters and its result
type. The client encodes calls from it and the server decodes requests from
it, so both sides agree on names and shapes without inspecting each other.

Example:

from anki_bridge.rpc.contract import Action, Param, ServiceContract

CALC_CONTRACT = ServiceContract("calc", [
    Action("addNumbers", "add_numbers", params=(Param("a", int), Param("b", int)), result=int),
])
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

REQUIRED = inspect.Parameter.empty


@dataclass(frozen=True)
class Param:
    """One positional parameter of an action."""
    name: str
    annotation: Any = Any
    default: Any = REQUIRED

    @property
    def required(self) -> bool:
        return self.default is REQUIRED


@dataclass(frozen=True)
class Action:
    """A single callable entry of a service contract."""
    name: str
    method: str
    params: Tuple[Param, ...] = ()
    result: Any = Any
    description: str = field(default="", compare=False)

    @cached_property
    def signature(self) -> inspect.Signature:
        return inspect.Signature([
            inspect.Parameter(
                p.name,
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                default=p.default,
                annotation=p.annotation,
            )
            for p in self.params
        ])

    @cached_property
    def _param_adapters(self) -> Tuple[TypeAdapter, ...]:
        return tuple(TypeAdapter(p.annotation) for p in self.params)

    @cached_property
    def _result_adapter(self) -> TypeAdapter:
        return TypeAdapter(self.result)

    def encode_args(self, *args: Any, **kwargs: Any) -> List[Any]:
        """Bind a Python call to the parameter list and return the JSON argument array.

        Raises:
            TypeError: if the arguments do not bind to the parameters or a
                value does not validate against its parameter type
        """
        try:
            bound = self.signature.bind(*args, **kwargs)
        except TypeError as e:
            raise TypeError(f"{self.name}(): {e}") from e
        bound.apply_defaults()
        encoded: List[Any] = []
        for param, adapter in zip(self.params, self._param_adapters):
            try:
                value = adapter.validate_python(bound.arguments[param.name])
            except ValidationError as e:
                raise TypeError(f"{self.name}(): invalid argument '{param.name}': {e}") from e
            encoded.append(adapter.dump_python(value, mode="json", by_alias=True))
        return encoded

    def decode_args(self, raw: Sequence[Any]) -> List[Any]:
        """Validate a decoded JSON argument array against the parameter list.

        Missing trailing arguments fall back to their defaults.

        Raises:
            ValueError: on too many or missing arguments, or when a value fails
                validation (pydantic's ValidationError is a ValueError)
        """
        if len(raw) > len(self.params):
            raise ValueError(f"expected at most {len(self.params)} argument(s), got {len(raw)}")
        values: List[Any] = []
        for index, (param, adapter) in enumerate(zip(self.params, self._param_adapters)):
            if index < len(raw):
                values.append(adapter.validate_python(raw[index]))
            elif not param.required:
                values.append(param.default)
            else:
                raise ValueError(f"missing required argument '{param.name}'")
        return values

    def encode_result(self, value: Any) -> Any:
        return self._result_adapter.dump_python(value, mode="json", by_alias=True)

    def decode_result(self, raw: Any) -> Any:
        return self._result_adapter.validate_python(raw)


class ServiceContract:
    """An immutable, enumerable set of actions keyed by wire name."""

    def __init__(self, name: str, actions: Iterable[Action]) -> None:
        table = {}
        for action in actions:
            if action.name in table:
                raise ValueError(f"Duplicate action '{action.name}' in contract '{name}'")
            table[action.name] = action
        self.name = name
        self._actions: Mapping[str, Action] = MappingProxyType(table)

    def get(self, name: Optional[str]) -> Optional[Action]:
        if not name:
            return None
        return self._actions.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._actions)

    def __contains__(self, name: object) -> bool:
        return name in self._actions

    def __iter__(self) -> Iterator[Action]:
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)

    def __repr__(self) -> str:
        return f"ServiceContract(name={self.name!r}, actions={self.names!r})"
