from pydantic import Field

from .plan import NonEmptyStr, StrictModel


class TargetSpot(StrictModel):
    n: NonEmptyStr = Field(description="Spot name")
    q: NonEmptyStr = Field(description="Google Maps search query that verifies the location exists")


class Quest(StrictModel):
    t: NonEmptyStr = Field(description="Quest title / directive")
    d: NonEmptyStr = Field(description="What to do, capture or observe")
    gear: NonEmptyStr = Field(description="Recommended equipment with a specific product name")


class Affiliate(StrictModel):
    item: NonEmptyStr = Field(description="Specific product name with model number")
    reason: NonEmptyStr = Field(description="Why this product suits the mission")
    q: NonEmptyStr = Field(description="Shopping search keyword")


class ScouterResponse(StrictModel):
    mission_title: NonEmptyStr = Field(description="Mission operation name")
    intro: NonEmptyStr = Field(description="Mission briefing in an analytical tone")
    target_spot: TargetSpot = Field(description="Primary location; must be real and verifiable on Google Maps")
    atmosphere: NonEmptyStr = Field(description="Engineering appeal of the location")
    quests: list[Quest] = Field(min_length=2, max_length=4, description="Mission objectives (2-4 quests)")
    affiliate: Affiliate = Field(description="Gear recommendation")
