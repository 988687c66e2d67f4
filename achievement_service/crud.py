from sqlalchemy.orm import Session

from .models import Achievement


def list_achievements(db: Session):
    return db.query(Achievement).order_by(Achievement.date.desc(), Achievement.id.desc()).all()


def get_achievement(db: Session, achievement_id: int) -> Achievement | None:
    return db.query(Achievement).filter(Achievement.id == achievement_id).first()


def create_achievement(db: Session, payload: dict) -> Achievement:
    a = Achievement(**payload)
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


def update_achievement(db: Session, achievement_id: int, payload: dict) -> Achievement | None:
    """Fields not provided remain unchanged."""
    a = get_achievement(db, achievement_id)
    if not a:
        return None
    for field, value in payload.items():
        if hasattr(a, field):
            setattr(a, field, value)
    db.commit()
    db.refresh(a)
    return a


def delete_achievement(db: Session, achievement_id: int) -> bool:
    a = get_achievement(db, achievement_id)
    if not a:
        return False
    db.delete(a)
    db.commit()
    return True
