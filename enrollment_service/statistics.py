import logging
from collections import Counter
from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

import enrollment_service.crud as crud
from enrollment_service.database import transaction
from enrollment_service.errors import NotFoundError
from enrollment_service.models import DATE_FORMAT
from enrollment_service.schemas import ActivityStatistics, MembershipCategory

logger = logging.getLogger(__name__)

# Percent off the activity price per membership category
CATEGORY_DISCOUNTS = {
    MembershipCategory.a.value: 0,
    MembershipCategory.b.value: 10,
    MembershipCategory.c.value: 20,
    MembershipCategory.d.value: 30,
}


def normalize_category(category: Optional[str]) -> str:
    return (category or "").strip().upper()


def discounted_price(price: int, category: Optional[str]) -> float:
    # unknown or missing categories pay full price
    percent = CATEGORY_DISCOUNTS.get(normalize_category(category), 0)
    return price * (100 - percent) / 100


def birth_year(birth_date: Optional[str]) -> Optional[int]:
    if not birth_date:
        return None
    try:
        return datetime.strptime(birth_date.strip(), DATE_FORMAT).year
    except ValueError:
        return None


def simplified_age(birth_date: Optional[str], current_year: int) -> Optional[int]:
    """Years between the birth year and current_year; month and day are ignored."""
    year = birth_year(birth_date)
    if year is None:
        return None
    return current_year - year


def dominant_category(categories: Iterable[Optional[str]]) -> Optional[str]:
    """Most frequent category; ties go to the smaller value."""
    counts = Counter(c for c in map(normalize_category, categories) if c)
    if not counts:
        return None
    return min(counts, key=lambda c: (-counts[c], c))


def compute_activity_statistics(
    db: Session, activity_id: str, today: Optional[date] = None
) -> ActivityStatistics:
    current_year = (today or date.today()).year

    with transaction(db):
        activity = crud.find_activity_by_id(db, activity_id)
        if activity is None:
            raise NotFoundError(f"Activity {activity_id} not found")

        price = activity.price
        clients = crud.get_enrolled_clients(db, activity_id)
        snapshot = [(c.birth_date, c.category) for c in clients]

    ages = [age for age in (simplified_age(b, current_year) for b, _ in snapshot) if age is not None]
    average_age = sum(ages) / len(ages) if ages else 0.0
    total_revenue = float(sum(discounted_price(price, category) for _, category in snapshot))

    stats = ActivityStatistics(
        activity_id=activity_id,
        enrolled_count=len(snapshot),
        average_age=average_age,
        dominant_category=dominant_category(category for _, category in snapshot),
        total_revenue=total_revenue,
    )
    logger.info(
        f"Statistics for {activity_id}: {stats.enrolled_count} enrolled, "
        f"avg age {stats.average_age:.1f}, revenue {stats.total_revenue:.2f}"
    )
    return stats
