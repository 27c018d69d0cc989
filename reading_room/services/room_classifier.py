from reading_room.schemas.thresholds import RoomThresholds


def classify_room(total: int, thresholds: RoomThresholds) -> str:
    """Map an aggregate score to a room.

    Offer is checked first, so a score at or above ``offer_min`` is an
    offer even when it also falls inside the solution band.
    """
    if total >= thresholds.offer_min:
        return "offer"
    if total > thresholds.problem_max:
        return "solution"
    if total > 0:
        return "problem"
    return "none"
