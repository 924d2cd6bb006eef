from __future__ import annotations

from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter

ResolutionStep = Literal["override-lookup", "plan-lookup", "day-lookup"]
AssignmentSource = Literal["override", "plan"]


class RestDay(BaseModel):
    kind: Literal["rest"] = "rest"
    source: AssignmentSource = "override"


class RoutineDay(BaseModel):
    kind: Literal["routine"] = "routine"
    routine_id: str
    title: str
    source: AssignmentSource
    plan_id: Optional[str] = None


class SessionDay(BaseModel):
    kind: Literal["session"] = "session"
    title: str
    plan_id: Optional[str] = None


class Unplanned(BaseModel):
    kind: Literal["unplanned"] = "unplanned"


class ResolutionFailed(BaseModel):
    kind: Literal["error"] = "error"
    step: ResolutionStep
    message: str = ""


Assignment = Annotated[
    Union[RestDay, RoutineDay, SessionDay, Unplanned, ResolutionFailed],
    Field(discriminator="kind"),
]

assignment_adapter: TypeAdapter[Assignment] = TypeAdapter(Assignment)
