from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, StringConstraints

NonEmptyStr = Annotated[StrictStr, StringConstraints(min_length=1)]

EventType = Literal["spot", "food", "work", "move"]
TargetType = Literal["engineer", "general"]

# (time, name, activity, type, note, image_query) - positions are fixed
Event = tuple[NonEmptyStr, NonEmptyStr, NonEmptyStr, EventType, StrictStr, StrictStr | None]

EVENT_FIELDS = ("time", "name", "activity", "type", "note", "image_query")


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class Day(StrictModel):
    day: StrictInt = Field(ge=1, description="Day number (1-indexed)")
    events: list[Event] = Field(
        description=(
            "Events as fixed 6-element arrays: [time (e.g. \"09:00\"), place or activity name, "
            "activity description, type (spot/food/work/move), note, "
            "English image search query (spot only, otherwise null)]"
        )
    )


class Plan(StrictModel):
    title: NonEmptyStr = Field(description="Title of the travel plan")
    intro: StrictStr | None = Field(default=None, description="Short introduction explaining the plan's appeal")
    target: TargetType = Field(description="Target audience for this plan")
    days: list[Day] = Field(description="Daily itineraries in order")


def event_as_dict(event: Event) -> dict[str, str | None]:
    return dict(zip(EVENT_FIELDS, event))
