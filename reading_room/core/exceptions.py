from typing import List, Optional


class ReadingRoomError(Exception):
    """Base class for all Reading Room domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except ReadingRoomError`` clause can catch any domain
    error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class VisitorNotFoundError(ReadingRoomError):
    """Raised when a requested visitor does not exist."""

    def __init__(self, detail: str = "Visitor not found"):
        super().__init__(detail)


class ProspectNotFoundError(ReadingRoomError):
    """Raised when a requested prospect does not exist."""

    def __init__(self, detail: str = "Prospect not found"):
        super().__init__(detail)


class InvalidRoomTypeError(ReadingRoomError):
    """Raised when a room name is not one of problem/solution/offer."""

    def __init__(self, detail: str = "Invalid room type"):
        super().__init__(detail)


class InvalidRuleSetError(ReadingRoomError):
    """Raised when a rule set fails validation on save.

    ``reasons`` carries one message per failed check so callers can show
    every problem at once.
    """

    def __init__(
        self,
        detail: str = "Invalid scoring rules",
        reasons: Optional[List[str]] = None,
    ):
        self.reasons = reasons or []
        super().__init__(detail)


class InvalidThresholdsError(ReadingRoomError):
    """Raised when room thresholds are missing, non-positive or out of order."""

    def __init__(self, detail: str = "Invalid room thresholds"):
        super().__init__(detail)


class ScoringRulesNotFoundError(ReadingRoomError):
    """Raised when no rule set is stored for the requested scope."""

    def __init__(self, detail: str = "Scoring rules not found"):
        super().__init__(detail)


class StoreUnavailableError(ReadingRoomError):
    """Raised when a data-store call keeps timing out or failing."""

    def __init__(self, detail: str = "Data store unavailable"):
        super().__init__(detail)


class GenerationRateLimitError(ReadingRoomError):
    """Raised when the hourly AI generation allowance is used up."""

    def __init__(self, detail: str = "AI generation rate limit exceeded"):
        super().__init__(detail)
