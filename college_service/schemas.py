from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ProjectIn(_Camel):
    title: str = Field(min_length=1)
    description: str = ""
    image_url: Optional[str] = None
    project_url: Optional[str] = None


class CollegeIn(_Camel):
    collegename: str = Field(min_length=1)
    image_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    projects: Optional[list[ProjectIn]] = None


class AddProjectIn(ProjectIn):
    collegename: str = Field(min_length=1)


class ProjectOut(ProjectIn):
    id: int


class CollegeOut(_Camel):
    id: int
    collegename: str
    image_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    projects: list[ProjectOut] = []


def college_out(c) -> dict:
    return CollegeOut.model_validate(c).model_dump(by_alias=True)


def project_out(p) -> dict:
    return ProjectOut.model_validate(p).model_dump(by_alias=True)
