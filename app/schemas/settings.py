from pydantic import BaseModel, Field
from typing import Optional


class SettingUpdate(BaseModel):
    value: Optional[str] = Field(None, max_length=5000)
