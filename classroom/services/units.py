import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classroom.core.errors import NotFound
from classroom.models.assignment import Assignment
from classroom.models.unit import Unit
from classroom.models.user import User
from classroom.services.access import ensure_can_manage_class, ensure_class

logger = logging.getLogger(__name__)


def create_unit(
    db: Session,
    class_id: int,
    teacher: User,
    title: str,
    description: str | None = None,
    order: int = 0,
) -> Unit:
    school_class = ensure_class(db, class_id)
    ensure_can_manage_class(db, school_class, teacher)

    unit = Unit(class_id=class_id, title=title, description=description, order=order)
    db.add(unit)
    db.commit()
    db.refresh(unit)
    logger.info("unit %s created in class %s", unit.id, class_id)
    return unit


def list_units(db: Session, class_id: int) -> list[Unit]:
    ensure_class(db, class_id)
    return (
        db.query(Unit)
        .filter(Unit.class_id == class_id)
        .order_by(Unit.order.asc(), Unit.id.asc())
        .all()
    )


def delete_unit(db: Session, unit_id: int, teacher: User) -> None:
    """Delete a unit; its assignments move to "no unit", they are never deleted."""
    unit = db.query(Unit).filter(Unit.id == unit_id).first()
    if not unit:
        raise NotFound("Unit not found")
    ensure_can_manage_class(db, unit.school_class, teacher)

    try:
        db.query(Assignment).filter(Assignment.unit_id == unit_id).update(
            {Assignment.unit_id: None}, synchronize_session=False
        )
        db.delete(unit)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("unit %s deleted, assignments detached", unit_id)
