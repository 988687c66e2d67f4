from sqlalchemy import or_
from sqlalchemy.orm import Session

from .models import Member
from .slugs import next_free_slug


def get_member(db: Session, member_id: str) -> Member | None:
    return db.query(Member).filter(Member.id == member_id).first()


def get_member_by_slug(db: Session, slug: str) -> Member | None:
    return db.query(Member).filter(Member.slug == slug).first()


def resolve_member(db: Session, slug_or_id: str) -> Member | None:
    return get_member_by_slug(db, slug_or_id) or get_member(db, slug_or_id)


def list_members(
    db: Session,
    category: str | None = None,
    categories: list[str] | None = None,
    collegename: str | None = None,
    year: str | None = None,
) -> list[Member]:
    q = db.query(Member)
    if category:
        q = q.filter(Member.category == category)
    if categories:
        q = q.filter(Member.category.in_(categories))
    if collegename:
        q = q.filter(Member.details["collegename"].as_string() == collegename)
    if year:
        q = q.filter(Member.details["year"].as_string() == year)
    return q.order_by(Member.created_at.desc()).all()


def unique_slug(db: Session, base: str, exclude_id: str | None = None) -> str:
    q = db.query(Member.slug).filter(or_(Member.slug == base, Member.slug.like(f"{base}-%")))
    if exclude_id:
        q = q.filter(Member.id != exclude_id)
    taken = {row[0] for row in q.all()}
    return next_free_slug(base, taken)


def create_member(db: Session, payload: dict) -> Member:
    m = Member(**payload)
    db.add(m)
    db.commit()
    db.refresh(m)
    return m


def save_member(db: Session, m: Member) -> Member:
    db.add(m)
    db.commit()
    db.refresh(m)
    return m


def delete_member(db: Session, member_id: str) -> bool:
    m = get_member(db, member_id)
    if not m:
        return False
    db.delete(m)
    db.commit()
    return True
