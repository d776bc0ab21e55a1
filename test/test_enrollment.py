import logging

import pytest
from kafka.errors import KafkaTimeoutError
from sqlalchemy.exc import OperationalError

import enrollment_service.crud as crud
from enrollment_service.database import transaction
from enrollment_service.enrollment import enroll, list_enrollments, reassign, unenroll
from enrollment_service.errors import ConflictError, NoOpError, NotFoundError, PersistenceError
from enrollment_service.models import Enrollment
from enrollment_service.schemas import EnrollmentRequest, ReassignRequest


def pairs(db):
    return sorted((e.client_num, e.activity_id) for e in db.query(Enrollment).all())


def test_enroll_adds_pair(db, producer):
    result = enroll(db, EnrollmentRequest(client_num="S004", activity_id="A01"), producer)

    assert result.success
    assert result.activity_ids == ["A01", "A03"]
    assert ("S004", "A01") in pairs(db)
    assert producer.sent == [
        ("class-events", {"event": "enroll", "client_num": "S004", "activity_id": "A01"})
    ]


def test_enroll_twice_is_rejected_without_change(db, producer):
    req = EnrollmentRequest(client_num="S004", activity_id="A02")
    enroll(db, req, producer)
    before = pairs(db)

    with pytest.raises(ConflictError):
        enroll(db, req, producer)

    assert pairs(db) == before
    assert producer.events() == ["enroll"]


def test_enroll_unknown_client(db):
    with pytest.raises(NotFoundError):
        enroll(db, EnrollmentRequest(client_num="S999", activity_id="A01"))


def test_enroll_unknown_activity(db):
    with pytest.raises(NotFoundError):
        enroll(db, EnrollmentRequest(client_num="S001", activity_id="A99"))


def test_storage_key_rejects_duplicate_when_lookup_misses(db, session_factory, monkeypatch):
    # another session inserted the pair between our check and our insert
    monkeypatch.setattr(crud, "find_enrollment", lambda *args: None)
    before = pairs(db)

    other = session_factory()
    try:
        with pytest.raises(ConflictError):
            enroll(other, EnrollmentRequest(client_num="S001", activity_id="A01"))
        assert pairs(other) == before
    finally:
        other.close()


def test_unenroll_removes_pair(db, producer):
    result = unenroll(db, EnrollmentRequest(client_num="S001", activity_id="A01"), producer)

    assert result.activity_ids == []
    assert ("S001", "A01") not in pairs(db)
    assert producer.events() == ["unenroll"]


def test_unenroll_missing_pair(db, producer):
    before = pairs(db)

    with pytest.raises(NotFoundError):
        unenroll(db, EnrollmentRequest(client_num="S004", activity_id="A01"), producer)

    assert pairs(db) == before
    assert producer.sent == []


def test_reassign_moves_client(db, producer):
    result = reassign(db, ReassignRequest(client_num="S001", from_activity_id="A01", to_activity_id="A03"), producer)

    assert result.activity_ids == ["A03"]
    assert crud.get_client_activity_ids(db, "S001") == ["A03"]
    assert producer.sent[0][1] == {
        "event": "reassign",
        "client_num": "S001",
        "from_activity_id": "A01",
        "to_activity_id": "A03",
    }


def test_reassign_to_same_activity_is_no_op(db, producer):
    before = pairs(db)

    with pytest.raises(NoOpError):
        reassign(db, ReassignRequest(client_num="S001", from_activity_id="A01", to_activity_id="A01"), producer)

    assert pairs(db) == before
    assert producer.sent == []


def test_reassign_without_source_enrollment(db):
    with pytest.raises(NotFoundError):
        reassign(db, ReassignRequest(client_num="S004", from_activity_id="A01", to_activity_id="A02"))
    assert crud.get_client_activity_ids(db, "S004") == ["A03"]


def test_reassign_to_unknown_activity(db):
    with pytest.raises(NotFoundError):
        reassign(db, ReassignRequest(client_num="S001", from_activity_id="A01", to_activity_id="A99"))
    assert crud.get_client_activity_ids(db, "S001") == ["A01"]


def test_reassign_onto_existing_enrollment(db):
    enroll(db, EnrollmentRequest(client_num="S001", activity_id="A02"))

    with pytest.raises(ConflictError):
        reassign(db, ReassignRequest(client_num="S001", from_activity_id="A01", to_activity_id="A02"))

    assert crud.get_client_activity_ids(db, "S001") == ["A01", "A02"]


def test_reassign_failure_rolls_back_both_changes(db, producer, monkeypatch):
    def broken_persist(session, entity):
        raise OperationalError("INSERT INTO performs", {}, Exception("disk I/O error"))

    monkeypatch.setattr(crud, "persist", broken_persist)

    with pytest.raises(PersistenceError):
        reassign(db, ReassignRequest(client_num="S001", from_activity_id="A01", to_activity_id="A03"), producer)

    monkeypatch.undo()
    assert crud.get_client_activity_ids(db, "S001") == ["A01"]
    assert producer.sent == []


def test_pair_stays_unique_across_operations(db):
    steps = [
        lambda: enroll(db, EnrollmentRequest(client_num="S002", activity_id="A02")),
        lambda: enroll(db, EnrollmentRequest(client_num="S002", activity_id="A02")),
        lambda: reassign(db, ReassignRequest(client_num="S002", from_activity_id="A01", to_activity_id="A02")),
        lambda: unenroll(db, EnrollmentRequest(client_num="S002", activity_id="A02")),
        lambda: reassign(db, ReassignRequest(client_num="S002", from_activity_id="A01", to_activity_id="A02")),
        lambda: enroll(db, EnrollmentRequest(client_num="S002", activity_id="A01")),
    ]
    for step in steps:
        try:
            step()
        except (ConflictError, NotFoundError):
            pass
        all_pairs = pairs(db)
        assert len(all_pairs) == len(set(all_pairs))

    assert crud.get_client_activity_ids(db, "S002") == ["A01", "A02"]


def test_deleting_client_drops_its_enrollments(db):
    with transaction(db):
        crud.remove(db, crud.find_client_by_id(db, "S001"))

    assert all(client_num != "S001" for client_num, _ in pairs(db))
    assert [c.num for c in crud.get_enrolled_clients(db, "A01")] == ["S002", "S003"]


def test_list_enrollments(db):
    rows = list_enrollments(db)

    assert [(r.activity_id, r.client_num) for r in rows] == [
        ("A01", "S001"), ("A01", "S002"), ("A01", "S003"), ("A03", "S004"),
    ]
    assert rows[0].activity_name == "Yoga"
    assert rows[0].client_name == "Jan Kowalski"
    assert rows[0].government_id == "12345678Z"


def test_list_enrollments_for_one_activity(db):
    rows = list_enrollments(db, "A03")
    assert [r.client_name for r in rows] == ["Kasia Kwiatkowska"]

    with pytest.raises(NotFoundError):
        list_enrollments(db, "A99")


def test_publishing_failure_keeps_committed_enrollment(db):
    class BrokenProducer:
        def send(self, topic, value=None):
            raise RuntimeError("broker down")

    result = enroll(db, EnrollmentRequest(client_num="S004", activity_id="A02"), BrokenProducer())

    assert result.success
    assert ("S004", "A02") in pairs(db)


def test_failed_delivery_is_logged_and_enrollment_kept(db, producer, caplog):
    enroll(db, EnrollmentRequest(client_num="S004", activity_id="A02"), producer)

    with caplog.at_level(logging.ERROR, logger="enrollment_service.events"):
        producer.futures[0].fail(KafkaTimeoutError("broker unreachable"))

    assert "Delivery of enroll event on topic class-events failed" in caplog.text
    assert ("S004", "A02") in pairs(db)


def test_deleting_trainer_unassigns_its_activities(db):
    with transaction(db):
        crud.remove(db, crud.find_trainer_by_id(db, "T001"))

    db.expire_all()
    assert crud.find_trainer_by_id(db, "T001") is None
    assert crud.find_activity_by_id(db, "A01").trainer_code is None
    assert crud.find_activity_by_id(db, "A02").trainer_code is None
    assert crud.find_activity_by_id(db, "A03").trainer_code == "T002"
    # the activities and their enrollments stay
    assert ("S001", "A01") in pairs(db)


def test_deleting_activity_drops_its_enrollments(db):
    with transaction(db):
        crud.remove(db, crud.find_activity_by_id(db, "A01"))

    db.expire_all()
    assert crud.find_activity_by_id(db, "A01") is None
    assert pairs(db) == [("S004", "A03")]
    assert crud.find_client_by_id(db, "S001") is not None
