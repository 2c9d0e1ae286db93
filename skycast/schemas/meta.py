from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    timestamp: datetime
    api_key: str = Field(alias="apiKey")


class KeyValidationOut(BaseModel):
    valid: bool
    message: str
