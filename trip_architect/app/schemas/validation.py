from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ValidationError

from ..core.errors import PlanValidationError
from .optimized import OptimizedPlan
from .partial import partial_model
from .plan import Plan
from .scouter import ScouterResponse

ValidationMode = Literal["complete", "partial"]
PlanRecord = Union[Plan, ScouterResponse, OptimizedPlan]


class PlanVersion(str, Enum):
    V1 = "v1"
    V2 = "v2"
    V3 = "v3"


PLAN_MODELS: dict[PlanVersion, type[BaseModel]] = {
    PlanVersion.V1: Plan,
    PlanVersion.V2: ScouterResponse,
    PlanVersion.V3: OptimizedPlan,
}

# key unique to each shape, checked in this order
_DISCRIMINANTS: tuple[tuple[str, PlanVersion], ...] = (
    ("mission_title", PlanVersion.V2),
    ("itinerary", PlanVersion.V3),
    ("days", PlanVersion.V1),
)


def format_validation_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {
            "path": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


def validate_plan(
    payload: Any,
    version: PlanVersion | str = PlanVersion.V1,
    mode: ValidationMode = "complete",
) -> BaseModel:
    """
    Parse an untyped payload into one versioned plan shape.

    Args:
        payload: decoded JSON (dict) from a request body, the store or an LLM
        version: which of the three shapes to enforce
        mode: "complete" for saving, "partial" for in-flight streamed objects

    Raises:
        PlanValidationError: with one entry per offending field path
    """
    model = PLAN_MODELS[PlanVersion(version)]
    if mode == "partial":
        model = partial_model(model)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise PlanValidationError(format_validation_errors(exc)) from exc


def validate_partial(payload: Any, version: PlanVersion | str) -> dict[str, Any]:
    """Partial validation returning only the fields that have arrived so far."""
    return validate_plan(payload, version, mode="partial").model_dump(mode="json", exclude_unset=True)


def detect_version(payload: Any) -> PlanVersion | None:
    if not isinstance(payload, dict):
        return None
    for key, version in _DISCRIMINANTS:
        if key in payload:
            return version
    return None


def version_of(record: BaseModel) -> PlanVersion:
    for version, model in PLAN_MODELS.items():
        if isinstance(record, model):
            return version
    raise TypeError(f"Unsupported plan record: {type(record)!r}")


def parse_any(payload: Any) -> PlanRecord:
    version = detect_version(payload)
    if version is None:
        raise PlanValidationError(
            [{"path": "", "message": "Unrecognised plan shape (expected days, mission_title or itinerary)", "type": "unknown_shape"}]
        )
    return validate_plan(payload, version)  # type: ignore[return-value]
