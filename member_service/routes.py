from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from shared.database import db_dependency
from shared.envelope import ok
from shared.errors import NotFound
from shared.forms import read_form

from .crud import get_member_by_slug, list_members
from .pipeline import ProfilePipeline
from .schemas import CATEGORIES, member_out


def build_router(SessionLocal, pipeline: ProfilePipeline):
    router = APIRouter(tags=["Members"])
    get_db = db_dependency(SessionLocal)

    def _by_slug(db: Session, slug: str) -> dict:
        m = get_member_by_slug(db, slug)
        if not m:
            raise NotFound(f"Member not found: {slug}")
        return ok(member_out(m))

    @router.post("/upload", status_code=201)
    async def upload(request: Request, db: Session = Depends(get_db)):
        items = await read_form(request)
        m = await run_in_threadpool(pipeline.submit, db, items)
        return ok(member_out(m), message="Data uploaded successfully")

    @router.get("/members")
    def get_all(
        category: list[str] | None = Query(default=None),
        collegename: str | None = Query(default=None),
        year: str | None = Query(default=None),
        db: Session = Depends(get_db),
    ):
        rows = list_members(db, categories=category, collegename=collegename, year=year)
        return ok([member_out(m) for m in rows])

    @router.get("/members/{type_or_slug}")
    def get_by_type_or_slug(type_or_slug: str, db: Session = Depends(get_db)):
        if type_or_slug in CATEGORIES:
            return ok([member_out(m) for m in list_members(db, category=type_or_slug)])
        return _by_slug(db, type_or_slug)

    @router.get("/member/{slug}")
    def get_one(slug: str, db: Session = Depends(get_db)):
        return _by_slug(db, slug)

    @router.put("/members/{slug_or_id}")
    async def update(slug_or_id: str, request: Request, db: Session = Depends(get_db)):
        items = await read_form(request)
        m = await run_in_threadpool(pipeline.update, db, slug_or_id, items)
        return ok(member_out(m), message="Member updated successfully")

    @router.delete("/members/{member_id}")
    def remove(member_id: str, db: Session = Depends(get_db)):
        pipeline.delete(db, member_id)
        return ok(message="Member deleted successfully")

    return router
