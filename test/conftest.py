import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from enrollment_service.database import make_engine
from enrollment_service.models import Base
from enrollment_service.populate_db import build_seed_data


class PendingSend:
    """Stands in for the future KafkaProducer.send returns."""

    def __init__(self):
        self.errbacks = []

    def add_errback(self, f, *args, **kwargs):
        self.errbacks.append((f, args, kwargs))
        return self

    def fail(self, exc):
        for f, args, kwargs in self.errbacks:
            f(*args, exc, **kwargs)


class RecordingProducer:
    def __init__(self):
        self.sent = []
        self.futures = []

    def send(self, topic, value=None):
        self.sent.append((topic, value))
        future = PendingSend()
        self.futures.append(future)
        return future

    def events(self):
        return [value["event"] for _, value in self.sent]


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    trainers, activities, clients, enrollments = build_seed_data()

    session = session_factory()
    session.add_all(trainers)
    session.add_all(clients)
    session.flush()
    session.add_all(activities)
    session.flush()
    session.add_all(enrollments)
    session.commit()

    yield session
    session.close()


@pytest.fixture
def producer():
    return RecordingProducer()
