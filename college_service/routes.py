import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from shared.database import db_dependency
from shared.envelope import ok
from shared.errors import NotFound

from .crud import add_project, get_college, list_colleges, list_projects, upsert_college
from .schemas import AddProjectIn, CollegeIn, college_out, project_out

logger = logging.getLogger("college-service")


def build_router(SessionLocal):
    router = APIRouter(tags=["Colleges"])
    get_db = db_dependency(SessionLocal)

    @router.put("/addCollege")
    def add_college(payload: CollegeIn, db: Session = Depends(get_db)):
        c, created = upsert_college(db, payload.model_dump(exclude_unset=True))
        logger.info("%s college %s", "Created" if created else "Updated", c.collegename)
        if created:
            return JSONResponse(status_code=201, content=ok(college_out(c), message="College added successfully"))
        return ok(college_out(c), message="College updated successfully")

    @router.get("/colleges")
    def get_colleges(db: Session = Depends(get_db)):
        return ok([college_out(c) for c in list_colleges(db)])

    @router.post("/addProject", status_code=201)
    def create_project(payload: AddProjectIn, db: Session = Depends(get_db)):
        data = payload.model_dump(exclude={"collegename"})
        p = add_project(db, payload.collegename, data)
        if not p:
            raise NotFound(f"College not found: {payload.collegename}")
        return ok(project_out(p), message="Project added successfully")

    @router.get("/getProjects")
    def get_projects(collegename: str | None = Query(default=None), db: Session = Depends(get_db)):
        if collegename and not get_college(db, collegename):
            raise NotFound(f"College not found: {collegename}")
        return ok([project_out(p) for p in list_projects(db, collegename)])

    return router
