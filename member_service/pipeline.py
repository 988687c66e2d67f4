"""
Upload-and-persist pipeline for member profiles.

submit(): decode -> validate -> build payload -> upload image -> upload certificates -> persist.
Each step gates the next. Nothing is uploaded for a submission that fails
validation. Blobs stored before a later failure are not deleted; their URLs are
logged as orphans instead.
"""
import json
import logging
from typing import Any, Iterable, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.errors import MalformedSubmission, NotFound, UploadFailed
from shared.forms import Attachment

from . import crud
from .models import CURRENT_SCHEMA_VERSION, Member
from .schemas import (
    LIST_FIELDS,
    TEXT_FIELDS,
    Quote,
    detail_fields,
    member_details_adapter,
)
from .slugs import derive_slug
from .uploader import AttachmentUploader
from .validator import Submission, ValidationResult, validate

logger = logging.getLogger("member-service")

# multipart part name -> canonical field name
FIELD_ALIASES: dict[str, str] = {}
for _name in TEXT_FIELDS:
    FIELD_ALIASES[_name] = _name
    FIELD_ALIASES[to_camel(_name)] = _name
FIELD_ALIASES["userType"] = "category"
FIELD_ALIASES["fullName"] = "fullname"

IMAGE_PARTS = ("image",)
CERTIFICATE_PARTS = ("certificates", "certificates[]", "certificate")

RawSubmission = Iterable[tuple[str, Union[str, Attachment]]]


def _decode_list(name: str, raw: str) -> list:
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        raise MalformedSubmission(f"{name} must be a JSON array")
    if not isinstance(value, list):
        raise MalformedSubmission(f"{name} must be a JSON array")
    return value


def decode_submission(raw: RawSubmission) -> Submission:
    """Turn multipart (name, value) pairs into a Submission. Unknown text parts are ignored."""
    sub = Submission()
    for key, value in raw:
        if isinstance(value, Attachment):
            if key in IMAGE_PARTS:
                sub.images.append(value)
            elif key in CERTIFICATE_PARTS:
                sub.certificates.append(value)
            else:
                raise MalformedSubmission(f"Unexpected file field: {key}")
            continue

        name = FIELD_ALIASES.get(key)
        if name is None:
            continue
        if name in LIST_FIELDS:
            sub.fields[name] = _decode_list(key, value)
        else:
            sub.fields[name] = value.strip() if isinstance(value, str) else value
    return sub


def universal_fields(fields: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if "linkedin_url" in fields:
        out["linkedin_url"] = fields["linkedin_url"] or None
    if "quotes" in fields:
        try:
            out["quotes"] = [Quote.model_validate(q).model_dump() for q in fields["quotes"]]
        except ValidationError as e:
            raise MalformedSubmission(f"quotes: {e.errors()[0]['msg']}")
    return out


def build_details(category: str, fields: dict[str, Any], result: ValidationResult) -> dict[str, Any]:
    """Category payload built only from provided fields that apply to `category`."""
    applicable = {k: v for k, v in fields.items() if k in detail_fields(category)}
    if result.cgpa is not None:
        applicable["cgpa"] = result.cgpa
    elif "cgpa" in applicable:
        del applicable["cgpa"]  # blank grade means "not provided"
    try:
        model = member_details_adapter.validate_python({**applicable, "category": category})
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(p) for p in err["loc"])
        raise MalformedSubmission(f"{loc}: {err['msg']}")
    return model.model_dump(exclude_none=True, exclude={"category"})


class ProfilePipeline:
    def __init__(self, uploader: AttachmentUploader, max_certificates: int = 3):
        self.uploader = uploader
        self.max_certificates = max_certificates

    def _upload_image(self, images: list[Attachment]) -> str:
        return self.uploader.upload_all(images[:1])[0]

    def _upload_certificates(self, certificates: list[Attachment], stored: list[str]) -> list[str]:
        try:
            return self.uploader.upload_all(certificates)
        except UploadFailed:
            if stored:
                logger.warning("Certificate upload failed; orphaned blobs: %s", stored)
            raise

    def _persist(self, db: Session, m: Member, uploaded: list[str]) -> Member:
        try:
            return crud.save_member(db, m)
        except SQLAlchemyError:
            db.rollback()
            if uploaded:
                logger.warning("Member write failed; orphaned blobs: %s", uploaded)
            raise

    def submit(self, db: Session, raw: RawSubmission) -> Member:
        sub = decode_submission(raw)
        result = validate(sub, sub.fields.get("category"), max_certificates=self.max_certificates)

        # build the payload before uploading so malformed fields never leave blobs behind
        details = build_details(result.category, sub.fields, result)
        universal = universal_fields(sub.fields)

        image_url = self._upload_image(sub.images)
        certificate_urls = self._upload_certificates(sub.certificates, [image_url])

        fullname = sub.fields["fullname"]
        m = Member(
            fullname=fullname,
            slug=crud.unique_slug(db, derive_slug(fullname)),
            category=result.category,
            image_url=image_url,
            certificate_urls=certificate_urls,
            details=details,
            schema_version=CURRENT_SCHEMA_VERSION,
            **universal,
        )
        m = self._persist(db, m, [image_url, *certificate_urls])
        logger.info("Created member %s (%s, %s)", m.id, m.slug, m.category)
        return m

    def update(self, db: Session, slug_or_id: str, raw: RawSubmission) -> Member:
        m = crud.resolve_member(db, slug_or_id)
        if not m:
            raise NotFound(f"Member not found: {slug_or_id}")

        sub = decode_submission(raw)
        category = sub.fields.get("category", m.category)
        result = validate(sub, category, partial=True, max_certificates=self.max_certificates)

        merged = dict(m.details or {})
        merged.update({k: v for k, v in sub.fields.items() if k not in ("fullname", "category")})
        if result.category == "college" and result.cgpa is None and "cgpa" in merged:
            if "cgpa" in sub.fields:
                merged.pop("cgpa")  # cleared by a blank value
            else:
                result.cgpa = merged["cgpa"]
        details = build_details(result.category, merged, result)
        universal = universal_fields(sub.fields)

        uploaded: list[str] = []
        image_url = None
        if sub.images:
            image_url = self._upload_image(sub.images)
            uploaded.append(image_url)
        certificate_urls = None
        if sub.certificates:
            certificate_urls = self._upload_certificates(sub.certificates, uploaded)
            uploaded.extend(certificate_urls)

        if "fullname" in sub.fields and sub.fields["fullname"] != m.fullname:
            m.fullname = sub.fields["fullname"]
            m.slug = crud.unique_slug(db, derive_slug(m.fullname), exclude_id=m.id)
        if result.category != m.category:
            m.category = result.category
        if details != (m.details or {}):
            m.details = details
        for k, v in universal.items():
            setattr(m, k, v)
        if image_url is not None:
            m.image_url = image_url
        if certificate_urls is not None:
            m.certificate_urls = certificate_urls

        m = self._persist(db, m, uploaded)
        logger.info("Updated member %s (%s)", m.id, m.slug)
        return m

    def delete(self, db: Session, member_id: str) -> None:
        # stored blobs are kept; only the record goes
        if not crud.delete_member(db, member_id):
            raise NotFound(f"Member not found: {member_id}")
        logger.info("Deleted member %s", member_id)
