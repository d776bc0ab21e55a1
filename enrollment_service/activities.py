import logging

from sqlalchemy.orm import Session

import enrollment_service.crud as crud
from enrollment_service.config import ENROLLMENT_TOPIC
from enrollment_service.database import transaction
from enrollment_service.errors import ConflictError, NotFoundError
from enrollment_service.events import publish_event
from enrollment_service.models import Activity
from enrollment_service.schedule import ensure_slot_free
from enrollment_service.schemas import ActivityRequest, ActivityResponse

logger = logging.getLogger(__name__)


def _resolve_trainer(db: Session, trainer_code):
    if not trainer_code:
        return None
    trainer = crud.find_trainer_by_id(db, trainer_code)
    if trainer is None:
        raise NotFoundError(f"Trainer {trainer_code} not found")
    return trainer


def _activity_event(event: str, activity: ActivityResponse) -> dict:
    return {
        "event": event,
        "activity_id": activity.id,
        "trainer_code": activity.trainer_code,
        "day": activity.day,
        "hour": activity.hour,
        "price": activity.price,
    }


def create_activity(db: Session, req: ActivityRequest, producer=None) -> ActivityResponse:
    with transaction(db):
        if crud.find_activity_by_id(db, req.activity_id) is not None:
            raise ConflictError(f"Activity {req.activity_id} already exists")

        trainer = _resolve_trainer(db, req.trainer_code)
        if trainer is not None:
            ensure_slot_free(db, trainer.code, req.day, req.hour)

        activity = crud.persist(db, Activity(
            id=req.activity_id,
            name=req.name,
            description=req.description,
            price=req.price,
            day=req.day.value,
            hour=req.hour,
            trainer_code=trainer.code if trainer else None,
        ))
        response = ActivityResponse.model_validate(activity)

    logger.info(f"Created activity {response.id} ({response.day} {response.hour}:00)")
    publish_event(producer, ENROLLMENT_TOPIC, _activity_event("create_activity", response))
    return response


def update_activity(db: Session, activity_id: str, req: ActivityRequest, producer=None) -> ActivityResponse:
    with transaction(db):
        activity = crud.find_activity_by_id(db, activity_id)
        if activity is None:
            raise NotFoundError(f"Activity {activity_id} not found")

        trainer = _resolve_trainer(db, req.trainer_code)
        if trainer is not None:
            ensure_slot_free(db, trainer.code, req.day, req.hour, excluding_activity_id=activity.id)

        activity.name = req.name
        activity.description = req.description
        activity.price = req.price
        activity.day = req.day.value
        activity.hour = req.hour
        activity.trainer_code = trainer.code if trainer else None
        activity = crud.merge(db, activity)
        response = ActivityResponse.model_validate(activity)

    logger.info(f"Updated activity {response.id}")
    publish_event(producer, ENROLLMENT_TOPIC, _activity_event("update_activity", response))
    return response
