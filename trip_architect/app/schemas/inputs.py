from typing import Any, Literal

from pydantic import BaseModel, Field, StrictBool, StrictStr

from .plan import NonEmptyStr


class GenerateInput(BaseModel):
    destination: NonEmptyStr
    template: NonEmptyStr
    options: dict[str, Any] | None = None


class GenerateInputV3(BaseModel):
    destination: NonEmptyStr
    base_area: NonEmptyStr
    transportation: Literal["car", "transit"]


class InputValidationResult(BaseModel):
    isValid: StrictBool = Field(description="Whether the locations are valid and exist on Google Maps")
    correctedDestination: StrictStr = Field(description="Corrected destination (same as input if valid)")
    correctedBaseArea: StrictStr = Field(description="Corrected base area (same as input if valid)")
    reason: StrictStr | None = Field(description="Why the input was corrected, null when valid")
