"""
Client <-> activity enrollment.

The relation lives in the ``performs`` table and is only ever changed here,
by explicit insert and delete of (client_num, activity_id) rows. Each public
operation is a single transaction: either every change it makes lands, or the
session is rolled back to the state before the call.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import enrollment_service.crud as crud
from enrollment_service.config import ENROLLMENT_TOPIC
from enrollment_service.database import transaction
from enrollment_service.errors import ConflictError, NoOpError, NotFoundError
from enrollment_service.events import publish_event
from enrollment_service.models import Enrollment
from enrollment_service.schemas import (
    EnrollmentRequest,
    EnrollmentResponse,
    EnrollmentRow,
    ReassignRequest,
)

logger = logging.getLogger(__name__)


def _require_client(db: Session, client_num: str):
    client = crud.find_client_by_id(db, client_num)
    if client is None:
        raise NotFoundError(f"Client {client_num} not found")
    return client


def _require_activity(db: Session, activity_id: str):
    activity = crud.find_activity_by_id(db, activity_id)
    if activity is None:
        raise NotFoundError(f"Activity {activity_id} not found")
    return activity


def _insert_pair(db: Session, client_num: str, activity_id: str) -> Enrollment:
    # the composite primary key is the last word on uniqueness; the lookup
    # before this only gives a friendlier error in the common case
    try:
        return crud.persist(db, Enrollment(client_num=client_num, activity_id=activity_id))
    except IntegrityError as e:
        raise ConflictError(f"Client {client_num} is already enrolled in {activity_id}") from e


def enroll(db: Session, req: EnrollmentRequest, producer=None) -> EnrollmentResponse:
    with transaction(db):
        client = _require_client(db, req.client_num)
        activity = _require_activity(db, req.activity_id)

        if crud.find_enrollment(db, client.num, activity.id) is not None:
            logger.warning(f"Client {client.num} is already enrolled in {activity.id}")
            raise ConflictError(f"Client {client.num} is already enrolled in {activity.id}")

        _insert_pair(db, client.num, activity.id)
        message = f"Enrolled {client.name} -> {activity.name}"
        activity_ids = crud.get_client_activity_ids(db, client.num)

    logger.info(message)
    publish_event(producer, ENROLLMENT_TOPIC, {
        "event": "enroll",
        "client_num": req.client_num,
        "activity_id": req.activity_id,
    })
    return EnrollmentResponse(success=True, message=message, client_num=req.client_num, activity_ids=activity_ids)


def unenroll(db: Session, req: EnrollmentRequest, producer=None) -> EnrollmentResponse:
    with transaction(db):
        pair = crud.find_enrollment(db, req.client_num, req.activity_id)
        if pair is None:
            logger.warning(f"No enrollment of client {req.client_num} in {req.activity_id}")
            raise NotFoundError(f"Client {req.client_num} is not enrolled in {req.activity_id}")

        crud.remove(db, pair)
        activity_ids = crud.get_client_activity_ids(db, req.client_num)

    message = f"Client {req.client_num} unenrolled from {req.activity_id}"
    logger.info(message)
    publish_event(producer, ENROLLMENT_TOPIC, {
        "event": "unenroll",
        "client_num": req.client_num,
        "activity_id": req.activity_id,
    })
    return EnrollmentResponse(success=True, message=message, client_num=req.client_num, activity_ids=activity_ids)


def reassign(db: Session, req: ReassignRequest, producer=None) -> EnrollmentResponse:
    """
    Moves a client from one activity to another.

    The old pair is deleted and the new pair inserted in the same transaction,
    so a failure half way leaves the client enrolled exactly as before.

    Raises:
        NoOpError: source and target are the same activity.
        NotFoundError: the client, either activity or the source enrollment is missing.
        ConflictError: the client is already enrolled in the target activity.
    """
    if req.from_activity_id == req.to_activity_id:
        raise NoOpError(f"Client {req.client_num} is already in {req.to_activity_id}, nothing to change")

    with transaction(db):
        client = _require_client(db, req.client_num)
        _require_activity(db, req.from_activity_id)
        target = _require_activity(db, req.to_activity_id)

        old_pair = crud.find_enrollment(db, client.num, req.from_activity_id)
        if old_pair is None:
            raise NotFoundError(f"Client {client.num} is not enrolled in {req.from_activity_id}")
        if crud.find_enrollment(db, client.num, target.id) is not None:
            raise ConflictError(f"Client {client.num} is already enrolled in {target.id}")

        crud.remove(db, old_pair)
        _insert_pair(db, client.num, target.id)
        message = f"Moved {client.name} from {req.from_activity_id} to {target.name}"
        activity_ids = crud.get_client_activity_ids(db, client.num)

    logger.info(message)
    publish_event(producer, ENROLLMENT_TOPIC, {
        "event": "reassign",
        "client_num": req.client_num,
        "from_activity_id": req.from_activity_id,
        "to_activity_id": req.to_activity_id,
    })
    return EnrollmentResponse(success=True, message=message, client_num=req.client_num, activity_ids=activity_ids)


def list_enrollments(db: Session, activity_id: Optional[str] = None) -> List[EnrollmentRow]:
    with transaction(db):
        if activity_id is not None:
            _require_activity(db, activity_id)
        rows = crud.get_enrollment_rows(db, activity_id)

    return [
        EnrollmentRow(
            activity_id=row[0],
            activity_name=row[1],
            client_num=row[2],
            client_name=row[3],
            government_id=row[4],
        )
        for row in rows
    ]
