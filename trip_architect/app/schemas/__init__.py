from .inputs import GenerateInput, GenerateInputV3, InputValidationResult
from .metadata import PlanListResponse, PlanMetadata, SavePlanResponse
from .optimized import AffiliateV3, EventV3, ItineraryDay, OptimizedPlan
from .plan import Day, Event, Plan
from .scouter import Affiliate, Quest, ScouterResponse, TargetSpot
from .validation import (
    PLAN_MODELS,
    PlanRecord,
    PlanVersion,
    detect_version,
    parse_any,
    validate_partial,
    validate_plan,
    version_of,
)

__all__ = [
    "GenerateInput",
    "GenerateInputV3",
    "InputValidationResult",
    "PlanListResponse",
    "PlanMetadata",
    "SavePlanResponse",
    "AffiliateV3",
    "EventV3",
    "ItineraryDay",
    "OptimizedPlan",
    "Day",
    "Event",
    "Plan",
    "Affiliate",
    "Quest",
    "ScouterResponse",
    "TargetSpot",
    "PLAN_MODELS",
    "PlanRecord",
    "PlanVersion",
    "detect_version",
    "parse_any",
    "validate_partial",
    "validate_plan",
    "version_of",
]
