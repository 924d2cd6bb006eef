from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Optional


class ExerciseRef(BaseModel):
    id: str = Field(..., description="Exercise ID in the catalog table")
    name: str = "Exercise"
    image_url: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "6f1c2f4e-8a55-4c2f-9d0e-2d8f1b7c9a10",
                    "name": "Barbell Bench Press",
                    "image_url": None,
                }
            ]
        }
    }
