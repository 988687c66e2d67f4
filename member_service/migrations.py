"""
Versioned upgrade of legacy member documents.

Older deployments stored members as flat documents whose shape drifted over time:
`year` as a list of strings, no `userType`, `quotes`/`position`/`portfolioUrl`
added later. upgrade_document() maps any of those shapes onto the current
header + category payload layout (schema_version 2).

    python -m member_service.migrations [legacy_export.json]
"""
import argparse
import json
import logging
from typing import Any

from sqlalchemy.orm import Session

from shared.errors import MalformedSubmission, MissingField

from . import crud
from .models import CURRENT_SCHEMA_VERSION, Member
from .pipeline import FIELD_ALIASES, build_details, universal_fields
from .schemas import CATEGORIES, detail_fields
from .slugs import derive_slug
from .validator import ValidationResult, parse_cgpa

logger = logging.getLogger("member-service")

ALL_DETAIL_FIELDS = {name for c in CATEGORIES for name in detail_fields(c)}

HEADER_ALIASES = {
    "_id": "id",
    "id": "id",
    "imageUrl": "image_url",
    "image_url": "image_url",
    "certificateUrls": "certificate_urls",
    "certificate_urls": "certificate_urls",
}


def _canonical(doc: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in doc.items():
        name = HEADER_ALIASES.get(k) or FIELD_ALIASES.get(k)
        if name:
            out[name] = v
    return out


def upgrade_document(doc: dict[str, Any]) -> dict[str, Any]:
    """Return Member column values for a legacy (or current) flat document."""
    d = _canonical(doc)

    if not d.get("fullname"):
        raise MissingField("fullname")
    if not d.get("image_url"):
        raise MissingField("image")

    category = d.get("category") or ("college" if d.get("collegename") else None)
    if category not in CATEGORIES:
        raise MalformedSubmission(f"Cannot infer category for legacy member {d.get('fullname')!r}")

    dropped = sorted(
        k for k in d
        if k in ALL_DETAIL_FIELDS and k not in detail_fields(category) and d[k] not in (None, "", [])
    )
    if dropped:
        logger.warning(
            "Legacy member %r (%s): dropping fields not used by this category: %s",
            d["fullname"], category, ", ".join(dropped),
        )

    year = d.get("year")
    if isinstance(year, list):
        d["year"] = str(year[0]) if year else None
    elif year is not None:
        d["year"] = str(year)

    cgpa = None
    if category == "college" and d.get("cgpa") not in (None, ""):
        cgpa = parse_cgpa(d["cgpa"])

    values = {
        "fullname": str(d["fullname"]).strip(),
        "category": category,
        "image_url": d["image_url"],
        "certificate_urls": list(d.get("certificate_urls") or []),
        "details": build_details(category, d, ValidationResult(category=category, cgpa=cgpa)),
        "schema_version": CURRENT_SCHEMA_VERSION,
        **universal_fields(d),
    }
    legacy_id = d.get("id")
    if isinstance(legacy_id, dict):  # mongoexport: {"$oid": "..."}
        legacy_id = legacy_id.get("$oid")
    if legacy_id:
        values["id"] = str(legacy_id)
    return values


def import_legacy_documents(db: Session, docs: list[dict[str, Any]]) -> list[Member]:
    created = []
    for doc in docs:
        values = upgrade_document(doc)
        if values.get("id") and crud.get_member(db, values["id"]):
            logger.info("Skipping already imported member %s", values["id"])
            continue
        values["slug"] = crud.unique_slug(db, derive_slug(values["fullname"]))
        created.append(crud.create_member(db, values))
    logger.info("Imported %d legacy members", len(created))
    return created


def migrate_stored_members(db: Session) -> int:
    """Upgrade rows written under an older schema_version. Returns the number upgraded."""
    rows = db.query(Member).filter(Member.schema_version < CURRENT_SCHEMA_VERSION).all()
    for m in rows:
        flat = {
            **(m.details or {}),
            "fullname": m.fullname,
            "category": m.category,
            "image_url": m.image_url,
            "certificate_urls": m.certificate_urls,
        }
        if m.linkedin_url is not None:
            flat["linkedin_url"] = m.linkedin_url
        if m.quotes is not None:
            flat["quotes"] = m.quotes
        values = upgrade_document(flat)
        for k, v in values.items():
            setattr(m, k, v)
        db.add(m)
    db.commit()
    logger.info("Upgraded %d stored members to schema v%d", len(rows), CURRENT_SCHEMA_VERSION)
    return len(rows)


def main(argv: list[str] | None = None) -> None:
    from shared.config import load_settings
    from shared.database import init_db, make_engine, make_session_local

    parser = argparse.ArgumentParser(description="Upgrade legacy member documents")
    parser.add_argument("export", nargs="?", help="JSON file holding a list of legacy member documents")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    engine = make_engine(load_settings().database_url)
    init_db(engine)
    SessionLocal = make_session_local(engine)

    with SessionLocal() as db:
        if args.export:
            with open(args.export, encoding="utf-8") as fh:
                import_legacy_documents(db, json.load(fh))
        migrate_stored_members(db)


if __name__ == "__main__":
    main()
