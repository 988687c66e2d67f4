import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AchievementFields(BaseModel):
    """Text fields of an achievement form; images arrive as file parts."""

    name: Optional[str] = Field(default=None, min_length=1)
    date: Optional[dt.date] = None


class AchievementOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    date: Optional[dt.date] = None
    image_urls: list[str] = []


def achievement_out(a) -> dict:
    return AchievementOut.model_validate(a).model_dump(mode="json", by_alias=True)
