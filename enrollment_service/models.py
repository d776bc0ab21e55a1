from sqlalchemy import Column, ForeignKey, Integer, String, CheckConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

DATE_FORMAT = "%d/%m/%Y"  # dates are kept as dd/MM/yyyy text


class Client(Base):
    __tablename__ = "client"

    num = Column(String, primary_key=True)           # membership number, e.g. "S001"
    name = Column(String, nullable=False)
    government_id = Column(String, unique=True, nullable=False)
    birth_date = Column(String)
    phone = Column(String)
    email = Column(String)
    start_date = Column(String, nullable=False)
    category = Column(String(1), nullable=False, default="A")

    enrollments = relationship(
        "Enrollment", back_populates="client", cascade="all, delete-orphan", passive_deletes=True
    )


class Trainer(Base):
    __tablename__ = "trainer"

    code = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    government_id = Column(String, unique=True, nullable=False)
    phone = Column(String)
    email = Column(String)
    hire_date = Column(String)
    nick = Column(String)

    activities = relationship("Activity", back_populates="trainer")


class Activity(Base):
    __tablename__ = "activity"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String)
    price = Column(Integer, nullable=False)
    day = Column(String, nullable=False)
    hour = Column(Integer, nullable=False)
    trainer_code = Column(String, ForeignKey("trainer.code", ondelete="SET NULL"), nullable=True, index=True)

    trainer = relationship("Trainer", back_populates="activities")
    enrollments = relationship(
        "Enrollment", back_populates="activity", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="non_negative_price"),
        CheckConstraint("hour >= 0 AND hour <= 23", name="valid_hour"),
    )


class Enrollment(Base):
    """One (client, activity) membership pair. The composite key makes each pair unique."""
    __tablename__ = "performs"

    client_num = Column(String, ForeignKey("client.num", ondelete="CASCADE"), primary_key=True)
    activity_id = Column(String, ForeignKey("activity.id", ondelete="CASCADE"), primary_key=True)

    client = relationship("Client", back_populates="enrollments")
    activity = relationship("Activity", back_populates="enrollments")
