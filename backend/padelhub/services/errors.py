"""
Draw engine errors.

Every error here is a caller-recoverable validation failure. Routes turn them into
HTTP responses using ``status_code``; storage errors are not wrapped.
"""


class DrawError(Exception):
    """Base exception for draw/scheduling errors"""

    status_code = 400


class NoGroupsError(DrawError):
    """Category has no groups to place teams into"""

    pass


class NoTeamsError(DrawError):
    """No unassigned teams left to partition"""

    pass


class InsufficientTeamsError(DrawError):
    """Fewer than two teams for a round robin or bracket"""

    pass


class InvalidWinnerError(DrawError):
    """Winner is not one of the two teams on the match"""

    status_code = 422


class AlreadyCompletedError(DrawError):
    """Match (or bracket) already has a recorded result"""

    status_code = 409


class SlotConflictError(DrawError):
    """Court is already booked at that time"""

    status_code = 409


class CourtNotAvailableError(DrawError):
    """Court does not belong to the match's tournament"""

    pass


class NoCourtsError(DrawError):
    """Tournament has no courts to schedule on"""

    pass


class InvalidAssignmentError(DrawError):
    """Bulk group assignment payload is inconsistent with the category"""

    pass


class MatchesAlreadyGeneratedError(DrawError):
    status_code = 409


class GroupStageIncompleteError(DrawError):
    status_code = 409


class GroupLockedError(DrawError):
    """Team already plays group matches, so its group membership is fixed"""

    status_code = 409
