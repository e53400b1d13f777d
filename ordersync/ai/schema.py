from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ExtractedOrder(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="")
    phone: str = Field(default="")
    address: str = Field(default="")
    clean_note: str = Field(default="", alias="cleanNote")
