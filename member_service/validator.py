from dataclasses import dataclass, field
from typing import Any

from shared.errors import InvalidCategory, InvalidRange, MalformedSubmission, MissingField
from shared.forms import Attachment

from .schemas import CATEGORIES

CGPA_MIN = 0.0
CGPA_MAX = 10.0


@dataclass
class Submission:
    """A decoded multipart submission: canonical text fields plus attachment parts."""

    fields: dict[str, Any] = field(default_factory=dict)
    images: list[Attachment] = field(default_factory=list)
    certificates: list[Attachment] = field(default_factory=list)


@dataclass
class ValidationResult:
    category: str
    cgpa: float | None = None


def _blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and v.strip() == "")


def parse_cgpa(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidRange(f"cgpa must be a number, got {raw!r}")
    if value != value or not (CGPA_MIN <= value <= CGPA_MAX):
        raise InvalidRange(f"cgpa must be between {CGPA_MIN:g} and {CGPA_MAX:g}, got {raw!r}")
    return value


def validate(
    submission: Submission,
    category: str | None,
    *,
    partial: bool = False,
    max_certificates: int = 3,
) -> ValidationResult:
    """
    Pure check of a decoded submission; never touches storage.

    With partial=True (updates) only the fields that are present are checked,
    and `category` is the effective category after the update.
    """
    f = submission.fields

    if not partial:
        if _blank(f.get("fullname")):
            raise MissingField("fullname")
        if _blank(category):
            raise MissingField("category")
        if not submission.images:
            raise MissingField("image")
    elif "fullname" in f and _blank(f["fullname"]):
        raise MissingField("fullname")

    if _blank(category):
        raise MissingField("category")
    category = str(category).strip()
    if category not in CATEGORIES:
        raise InvalidCategory(category)

    if len(submission.images) > 1:
        raise MalformedSubmission("Only one image may be submitted")
    if len(submission.certificates) > max_certificates:
        raise MalformedSubmission(f"At most {max_certificates} certificates may be submitted")

    cgpa = None
    if category == "college" and not _blank(f.get("cgpa")):
        cgpa = parse_cgpa(f["cgpa"])

    return ValidationResult(category=category, cgpa=cgpa)
