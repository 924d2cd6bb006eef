from __future__ import annotations

from typing import Literal, Optional

Step = Literal["override-lookup", "plan-lookup", "day-lookup", "routine-delete", "routine-insert"]


class PlannerError(RuntimeError):
    pass


class NotFoundError(PlannerError):
    pass


class ValidationFailure(PlannerError):
    pass


class PersistenceFailure(PlannerError):
    """Transport or backend error raised by a gateway.

    ``step`` names the lookup or write that failed when the caller knows it.
    """

    def __init__(self, message: str, step: Optional[Step] = None) -> None:
        super().__init__(message)
        self.step = step


class PartialSaveFailure(PersistenceFailure):
    """Existing rows were deleted but the new rows were not inserted.

    The routine may now be empty; the user should be prompted to retry the save.
    """

    def __init__(self, message: str = "save failed, routine may be empty") -> None:
        super().__init__(message, step="routine-insert")


class SaveInProgressError(PlannerError):
    pass


class UnsavedChangesError(PlannerError):
    pass
