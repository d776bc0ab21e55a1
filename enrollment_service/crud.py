from typing import List, Optional

from sqlalchemy.orm import Session

from enrollment_service.models import Activity, Client, Enrollment, Trainer


def find_client_by_id(db: Session, client_num: str) -> Optional[Client]:
    return db.get(Client, client_num)


def find_trainer_by_id(db: Session, trainer_code: str) -> Optional[Trainer]:
    return db.get(Trainer, trainer_code)


def find_activity_by_id(db: Session, activity_id: str) -> Optional[Activity]:
    return db.get(Activity, activity_id)


def list_all_activities(db: Session) -> List[Activity]:
    return db.query(Activity).order_by(Activity.id).all()


def find_enrollment(db: Session, client_num: str, activity_id: str) -> Optional[Enrollment]:
    return db.get(Enrollment, (client_num, activity_id))


def get_enrolled_clients(db: Session, activity_id: str) -> List[Client]:
    return (
        db.query(Client)
        .join(Enrollment, Enrollment.client_num == Client.num)
        .filter(Enrollment.activity_id == activity_id)
        .order_by(Client.num)
        .all()
    )


def get_client_activity_ids(db: Session, client_num: str) -> List[str]:
    rows = (
        db.query(Enrollment.activity_id)
        .filter(Enrollment.client_num == client_num)
        .order_by(Enrollment.activity_id)
        .all()
    )
    return [row.activity_id for row in rows]


def get_enrollment_rows(db: Session, activity_id: Optional[str] = None):
    query = (
        db.query(Activity.id, Activity.name, Client.num, Client.name, Client.government_id)
        .join(Enrollment, Enrollment.activity_id == Activity.id)
        .join(Client, Client.num == Enrollment.client_num)
    )
    if activity_id is not None:
        query = query.filter(Activity.id == activity_id)
    return query.order_by(Activity.id, Client.num).all()


def find_trainer_activity_at(
    db: Session, trainer_code: str, day: str, hour: int, excluding_activity_id: Optional[str] = None
) -> Optional[Activity]:
    query = db.query(Activity).filter(
        Activity.trainer_code == trainer_code,
        Activity.day == day,
        Activity.hour == hour,
    )
    if excluding_activity_id:
        query = query.filter(Activity.id != excluding_activity_id)
    return query.first()


# Mutation primitives. Callers run them inside database.transaction().

def persist(db: Session, entity):
    db.add(entity)
    db.flush()
    return entity


def merge(db: Session, entity):
    merged = db.merge(entity)
    db.flush()
    return merged


def remove(db: Session, entity) -> None:
    db.delete(entity)
    db.flush()
