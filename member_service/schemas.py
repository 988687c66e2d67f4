from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

CATEGORIES = ("college", "job", "marketing", "development")


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Quote(_Camel):
    quote: str
    author: str = ""


# Category payloads. Every field is optional: absent means "not provided".

class CollegeDetails(_Camel):
    category: Literal["college"] = "college"
    collegename: Optional[str] = None
    year: Optional[str] = None
    cgpa: Optional[float] = Field(default=None, ge=0, le=10)
    testimonials: Optional[list[str]] = None


class JobDetails(_Camel):
    category: Literal["job"] = "job"
    position: Optional[str] = None
    current_positions: Optional[list[str]] = None
    current_roles: Optional[list[str]] = None
    skills: Optional[list[str]] = None


class MarketingDetails(_Camel):
    category: Literal["marketing"] = "marketing"
    testimonials: Optional[list[str]] = None
    skills: Optional[list[str]] = None
    portfolio_url: Optional[str] = None


class DevelopmentDetails(_Camel):
    category: Literal["development"] = "development"
    skills: Optional[list[str]] = None
    current_roles: Optional[list[str]] = None
    portfolio_url: Optional[str] = None


MemberDetails = Annotated[
    Union[CollegeDetails, JobDetails, MarketingDetails, DevelopmentDetails],
    Field(discriminator="category"),
]
member_details_adapter = TypeAdapter(MemberDetails)

DETAILS_MODELS: dict[str, type[BaseModel]] = {
    "college": CollegeDetails,
    "job": JobDetails,
    "marketing": MarketingDetails,
    "development": DevelopmentDetails,
}


def detail_fields(category: str) -> set[str]:
    """Names of the payload fields that apply to a category."""
    model = DETAILS_MODELS[category]
    return {name for name in model.model_fields if name != "category"}


# Fields shared by every category, besides name/category/attachments.
UNIVERSAL_FIELDS = ("linkedin_url", "quotes")

# Text fields that arrive JSON-encoded in multipart submissions.
LIST_FIELDS = ("current_positions", "current_roles", "testimonials", "skills", "quotes")

TEXT_FIELDS = ("fullname", "category", *UNIVERSAL_FIELDS) + tuple(
    sorted({f for c in CATEGORIES for f in detail_fields(c)})
)


class MemberOut(_Camel):
    id: str
    slug: str
    fullname: str
    category: str
    image_url: str
    certificate_urls: list[str]
    linkedin_url: Optional[str] = None
    quotes: Optional[list[Quote]] = None

    collegename: Optional[str] = None
    year: Optional[str] = None
    cgpa: Optional[float] = None
    testimonials: Optional[list[str]] = None
    position: Optional[str] = None
    current_positions: Optional[list[str]] = None
    current_roles: Optional[list[str]] = None
    skills: Optional[list[str]] = None
    portfolio_url: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def member_out(m) -> dict[str, Any]:
    out = MemberOut(
        id=m.id,
        slug=m.slug,
        fullname=m.fullname,
        category=m.category,
        image_url=m.image_url,
        certificate_urls=list(m.certificate_urls or []),
        linkedin_url=m.linkedin_url,
        quotes=m.quotes,
        created_at=m.created_at,
        updated_at=m.updated_at,
        **(m.details or {}),
    )
    return out.model_dump(mode="json", by_alias=True, exclude_none=True)
