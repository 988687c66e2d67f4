import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from shared.database import db_dependency
from shared.envelope import ok
from shared.errors import MalformedSubmission, MissingField, NotFound
from shared.forms import Attachment, read_form

from .crud import (
    create_achievement,
    delete_achievement,
    get_achievement,
    list_achievements,
    update_achievement,
)
from .schemas import AchievementFields, achievement_out

logger = logging.getLogger("achievement-service")

IMAGE_PARTS = ("images", "images[]", "image")


def _split_form(items) -> tuple[dict, list[Attachment]]:
    fields: dict = {}
    images: list[Attachment] = []
    for key, value in items:
        if isinstance(value, Attachment):
            if key not in IMAGE_PARTS:
                raise MalformedSubmission(f"Unexpected file field: {key}")
            images.append(value)
        elif key in AchievementFields.model_fields:
            fields[key] = value.strip() or None
    try:
        parsed = AchievementFields.model_validate(fields)
    except ValidationError as e:
        err = e.errors()[0]
        raise MalformedSubmission(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
    return parsed.model_dump(include=set(fields)), images


def build_router(SessionLocal, uploader):
    router = APIRouter(prefix="/achievements", tags=["Achievements"])
    get_db = db_dependency(SessionLocal)

    def _get_or_404(db: Session, achievement_id: int):
        a = get_achievement(db, achievement_id)
        if not a:
            raise NotFound(f"Achievement not found: {achievement_id}")
        return a

    def _write(db: Session, write, fields: dict, images: list[Attachment]):
        urls = uploader.upload_all(images) if images else []
        if urls:
            fields["image_urls"] = urls
        try:
            return write(fields)
        except SQLAlchemyError:
            db.rollback()
            if urls:
                logger.warning("Achievement write failed; orphaned blobs: %s", urls)
            raise

    # upload + database work runs off the event loop; only form parsing stays on it
    def _create(db: Session, fields: dict, images: list[Attachment]):
        a = _write(db, lambda f: create_achievement(db, f), fields, images)
        logger.info("Created achievement %s with %d images", a.id, len(a.image_urls))
        return achievement_out(a)

    def _update(db: Session, achievement_id: int, fields: dict, images: list[Attachment]):
        _get_or_404(db, achievement_id)
        a = _write(db, lambda f: update_achievement(db, achievement_id, f), fields, images)
        return achievement_out(a)

    @router.post("", status_code=201)
    async def create(request: Request, db: Session = Depends(get_db)):
        fields, images = _split_form(await read_form(request))
        if not fields.get("name"):
            raise MissingField("name")
        if not images:
            raise MissingField("images")

        out = await run_in_threadpool(_create, db, fields, images)
        return ok(out, message="Achievement created successfully")

    @router.get("")
    def get_all(db: Session = Depends(get_db)):
        return ok([achievement_out(a) for a in list_achievements(db)])

    @router.get("/{achievement_id}")
    def get_one(achievement_id: int, db: Session = Depends(get_db)):
        return ok(achievement_out(_get_or_404(db, achievement_id)))

    @router.put("/{achievement_id}")
    async def update(achievement_id: int, request: Request, db: Session = Depends(get_db)):
        fields, images = _split_form(await read_form(request))
        if "name" in fields and not fields["name"]:
            raise MissingField("name")

        out = await run_in_threadpool(_update, db, achievement_id, fields, images)
        return ok(out, message="Achievement updated successfully")

    @router.delete("/{achievement_id}")
    def remove(achievement_id: int, db: Session = Depends(get_db)):
        if not delete_achievement(db, achievement_id):
            raise NotFound(f"Achievement not found: {achievement_id}")
        return ok(message="Achievement deleted successfully")

    return router
