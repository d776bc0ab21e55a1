from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            raise ValueError("Invalid type for weekday")

        normalized = value.strip().lower()
        for day in cls:
            if day.value.lower() == normalized:
                return day
        raise ValueError(f"Invalid weekday: {value}")


class MembershipCategory(str, Enum):
    a = "A"
    b = "B"
    c = "C"
    d = "D"


class EnrollmentRequest(BaseModel):
    client_num: str
    activity_id: str


class ReassignRequest(BaseModel):
    client_num: str
    from_activity_id: str
    to_activity_id: str


class ActivityRequest(BaseModel):
    activity_id: str
    name: str
    description: Optional[str] = None
    price: int = Field(..., ge=0)
    day: Weekday
    hour: int = Field(..., ge=0, le=23)
    trainer_code: Optional[str] = None


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str]
    price: int
    day: str
    hour: int
    trainer_code: Optional[str]


class EnrollmentResponse(BaseModel):
    success: bool
    message: str
    client_num: str
    activity_ids: List[str]


class EnrollmentRow(BaseModel):
    activity_id: str
    activity_name: str
    client_num: str
    client_name: str
    government_id: str


class SlotStatus(BaseModel):
    trainer_code: str
    day: Weekday
    hour: int
    occupied: bool


class ActivityStatistics(BaseModel):
    activity_id: str
    enrolled_count: int
    average_age: float
    dominant_category: Optional[str]
    total_revenue: float
