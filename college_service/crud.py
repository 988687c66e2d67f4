from sqlalchemy.orm import Session

from .models import College, Project


def get_college(db: Session, collegename: str) -> College | None:
    return db.query(College).filter(College.collegename == collegename).first()


def list_colleges(db: Session):
    return db.query(College).order_by(College.collegename.asc()).all()


def upsert_college(db: Session, payload: dict) -> tuple[College, bool]:
    """
    Create the college, or update the provided fields of an existing one.
    Projects, when given, replace the stored list.
    Returns (college, created).
    """
    projects = payload.pop("projects", None)
    c = get_college(db, payload["collegename"])
    created = c is None

    if created:
        c = College(**payload)
        db.add(c)
    else:
        for field, value in payload.items():
            if value is not None and hasattr(c, field):
                setattr(c, field, value)

    if projects is not None:
        c.projects = [Project(**p) for p in projects]

    db.commit()
    db.refresh(c)
    return c, created


def add_project(db: Session, collegename: str, payload: dict) -> Project | None:
    c = get_college(db, collegename)
    if not c:
        return None
    p = Project(college_id=c.id, **payload)
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


def list_projects(db: Session, collegename: str | None = None):
    q = db.query(Project)
    if collegename:
        q = q.join(College).filter(College.collegename == collegename)
    return q.order_by(Project.id.asc()).all()
