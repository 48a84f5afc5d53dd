from typing import Literal

from pydantic import Field, StrictInt, StrictStr

from .plan import NonEmptyStr, StrictModel

EventTypeV3 = Literal["spot", "food", "move"]


class EventV3(StrictModel):
    time: NonEmptyStr = Field(description='Time of the event (e.g. "10:00")')
    spot: NonEmptyStr = Field(description="Spot name")
    query: NonEmptyStr = Field(description="Google Maps search query")
    description: NonEmptyStr = Field(description="What to do at this spot")
    type: EventTypeV3 = Field(description="Event type (spot/food/move)")


class ItineraryDay(StrictModel):
    day: StrictInt = Field(ge=1, description="Day number (1-indexed)")
    # events come before the URL so the model writes content first
    events: list[EventV3] = Field(description="Events for this day")
    google_maps_url: NonEmptyStr = Field(
        description="Google Maps directions URL for the whole day route (origin -> waypoints -> destination)"
    )


class AffiliateV3(StrictModel):
    label: NonEmptyStr = Field(description="Display label for the link")
    url: NonEmptyStr = Field(description="Affiliate URL")


class OptimizedPlan(StrictModel):
    title: NonEmptyStr = Field(description="Trip title")
    image_query: StrictStr | None = Field(
        default=None, description='English image search query, "City, Country" (e.g. "Matsue, Japan")'
    )
    intro: NonEmptyStr = Field(description="Introduction emphasising efficiency and freedom")
    base_area: NonEmptyStr = Field(description="Area the traveller starts from and returns to")
    target: Literal["general"] = Field(default="general", description="Target audience (always general)")
    itinerary: list[ItineraryDay] = Field(description="Daily itineraries with Google Maps routes")
    affiliate: AffiliateV3 = Field(description="Recommended service or product (rental car, hotel, ...)")
