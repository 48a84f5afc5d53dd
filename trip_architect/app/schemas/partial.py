"""Deep-partial variants of the plan models.

While a plan is being streamed every field, at every nesting depth, may still
be missing. The partial models keep type and enum checks for whatever has
arrived but drop required-ness and length bounds, and accept truncated
fixed-width tuples by padding them with ``None``.
"""
from __future__ import annotations

import types
from functools import lru_cache
from typing import Annotated, Any, Optional, Union, get_args, get_origin

import annotated_types
from pydantic import BaseModel, BeforeValidator, ConfigDict, StringConstraints, create_model

_LENGTH_CONSTRAINTS = (annotated_types.MinLen, annotated_types.MaxLen, annotated_types.Len, StringConstraints)


def _pad_to(arity: int):
    def pad(value: Any) -> Any:
        if isinstance(value, (list, tuple)) and len(value) < arity:
            return [*value, *([None] * (arity - len(value)))]
        return value

    return pad


def _without_length_bounds(metadata: list[Any] | tuple[Any, ...]) -> list[Any]:
    return [item for item in metadata if not isinstance(item, _LENGTH_CONSTRAINTS)]


def _relax(annotation: Any) -> Any:
    origin = get_origin(annotation)

    if origin is Annotated:
        base, *metadata = get_args(annotation)
        relaxed = _relax(base)
        kept = _without_length_bounds(metadata)
        return Annotated[(relaxed, *kept)] if kept else relaxed

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return partial_model(annotation)

    if origin in (Union, types.UnionType):
        members = tuple(_relax(arg) for arg in get_args(annotation) if arg is not type(None))
        return Optional[Union[members]]

    if origin is list:
        (item,) = get_args(annotation)
        return list[_relax(item)]

    if origin is tuple:
        args = get_args(annotation)
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple[Optional[_relax(args[0])], ...]
        positions = tuple(Optional[_relax(arg)] for arg in args)
        return Annotated[tuple[positions], BeforeValidator(_pad_to(len(args)))]

    if origin is dict:
        key, value = get_args(annotation)
        return dict[key, Optional[_relax(value)]]

    return annotation


@lru_cache(maxsize=None)
def partial_model(model: type[BaseModel]) -> type[BaseModel]:
    fields: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        annotation = _relax(info.annotation)
        kept = _without_length_bounds(info.metadata)
        if kept:
            annotation = Annotated[(annotation, *kept)]
        fields[name] = (Optional[annotation], None)
    return create_model(f"Partial{model.__name__}", __config__=ConfigDict(extra="forbid"), **fields)
