"""
Trainer double-booking check.

A schedule slot is (trainer, weekday, hour). No trainer may be in charge of two
different activities in the same slot. An activity being edited never clashes
with itself, so its own id can be excluded from the check.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

import enrollment_service.crud as crud
from enrollment_service.errors import ScheduleConflictError
from enrollment_service.schemas import Weekday

logger = logging.getLogger(__name__)


def is_occupied(
    db: Session,
    trainer_code: Optional[str],
    day: Weekday | str,
    hour: int,
    excluding_activity_id: Optional[str] = None,
) -> bool:
    if not trainer_code:
        # no trainer assigned, nothing to clash with
        return False

    day = Weekday(day)
    clash = crud.find_trainer_activity_at(db, trainer_code, day.value, hour, excluding_activity_id)
    if clash is not None:
        logger.info(f"Trainer {trainer_code} is busy on {day.value} at {hour}:00 with activity {clash.id}")
        return True
    return False


def ensure_slot_free(
    db: Session,
    trainer_code: Optional[str],
    day: Weekday | str,
    hour: int,
    excluding_activity_id: Optional[str] = None,
) -> None:
    if is_occupied(db, trainer_code, day, hour, excluding_activity_id):
        raise ScheduleConflictError(trainer_code, Weekday(day).value, hour)
