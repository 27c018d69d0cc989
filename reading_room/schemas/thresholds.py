from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from typing_extensions import Self

from reading_room.core.exceptions import InvalidThresholdsError


class RoomThresholds(BaseModel):
    """Score boundaries between rooms.

    All three values must be positive and strictly ordered
    ``problem_max < solution_max < offer_min``.
    """

    model_config = ConfigDict(frozen=True)

    problem_max: int = Field(..., gt=0)
    solution_max: int = Field(..., gt=0)
    offer_min: int = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_order(self) -> Self:
        if not self.problem_max < self.solution_max < self.offer_min:
            raise ValueError(
                f"Thresholds must satisfy problem_max < solution_max < offer_min "
                f"(got {self.problem_max}, {self.solution_max}, {self.offer_min})"
            )
        return self


class ThresholdsOut(RoomThresholds):
    source: Literal["client", "global", "default"]


def validate_thresholds(data: Any) -> RoomThresholds:
    """Validate *data* or raise ``InvalidThresholdsError`` naming the first problem."""
    try:
        return RoomThresholds.model_validate(data)
    except ValidationError as exc:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'thresholds'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidThresholdsError(f"Invalid room thresholds: {messages}") from exc
