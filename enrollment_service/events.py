import json
import logging

from jsonschema import ValidationError, validate
from kafka import KafkaProducer

logger = logging.getLogger(__name__)

"""
class-events:
	value: (utf-8 encoded json) {
		"event": "enroll" | "unenroll" | "reassign" | "create_activity" | "update_activity",
		"client_num"?: "S001",
		"activity_id"?: "A01",
		"from_activity_id"?: "A01",		//reassign only
		"to_activity_id"?: "A02",		//reassign only
		...
	}
"""

event_schema = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["event"],
    "properties": {
        "event": {
            "type": "string",
            "enum": ["enroll", "unenroll", "reassign", "create_activity", "update_activity"],
        },
        "client_num": {"type": "string"},
        "activity_id": {"type": "string"},
        "from_activity_id": {"type": "string"},
        "to_activity_id": {"type": "string"},
        "trainer_code": {"type": ["string", "null"]},
        "day": {"type": "string"},
        "hour": {"type": "integer", "minimum": 0, "maximum": 23},
        "price": {"type": "integer", "minimum": 0},
    },
    "allOf": [
        {
            "if": {"properties": {"event": {"const": "reassign"}}},
            "then": {"required": ["client_num", "from_activity_id", "to_activity_id"]},
        },
        {
            "if": {"properties": {"event": {"enum": ["enroll", "unenroll"]}}},
            "then": {"required": ["client_num", "activity_id"]},
        },
        {
            "if": {"properties": {"event": {"enum": ["create_activity", "update_activity"]}}},
            "then": {"required": ["activity_id", "day", "hour"]},
        },
    ],
    "additionalProperties": True,
}


def _log_delivery_failure(event_name: str, topic: str, exc):
    logger.error(f"Delivery of {event_name} event on topic {topic} failed: {exc}")


def publish_event(producer, topic: str, event: dict) -> bool:
    """
    Sends an already committed change to the event stream.

    Runs after the transaction, so a failure here is logged and reported as
    False but never undoes the database change.
    """
    if producer is None:
        return False

    try:
        validate(event, event_schema)
    except ValidationError as e:
        logger.error(f"Refusing to publish malformed event {event}: {e.message}")
        return False

    try:
        future = producer.send(topic, value=event)
    except Exception:
        logger.exception(f"Failed to publish event {event.get('event')} on topic {topic}")
        return False

    # send() only queues the record; broker errors arrive on the future
    future.add_errback(_log_delivery_failure, event["event"], topic)
    logger.info(f"Published {event['event']} event on {topic}")
    return True


def make_producer(broker: str | None):
    if not broker:
        logger.info("KAFKA_BROKER not set - enrollment events are disabled")
        return None

    return KafkaProducer(
        bootstrap_servers=broker,
        value_serializer=lambda v: json.dumps(v).encode("utf-8"),
    )
