from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional
from pydantic import BaseModel, model_validator


class TrainingPlan(BaseModel):
    id: str
    user_id: str
    start_date: date
    end_date: date
    created_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_range(self) -> "TrainingPlan":
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class PlanDay(BaseModel):
    id: Optional[str] = None
    plan_id: str
    date: date
    routine_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


class Override(BaseModel):
    user_id: str
    date: date
    is_rest: bool = False
    routine_id: Optional[str] = None

    @property
    def is_malformed(self) -> bool:
        return not self.is_rest and not self.routine_id


class PlanItem(BaseModel):
    routine_id: str
    title: str
    subtitle: str = ""


# ISO date -> item, for one Monday-start week
PlanMap = Dict[str, PlanItem]
