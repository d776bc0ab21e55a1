class EnrollmentServiceError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(EnrollmentServiceError):
    pass


class ConflictError(EnrollmentServiceError):
    pass


class ScheduleConflictError(ConflictError):
    def __init__(self, trainer_code: str, day: str, hour: int):
        super().__init__(
            f"Trainer {trainer_code} already has another activity on {day} at {hour}:00"
        )
        self.trainer_code = trainer_code
        self.day = day
        self.hour = hour


class NoOpError(EnrollmentServiceError):
    """Source and target of a reassignment are the same activity; nothing is written."""


class PersistenceError(EnrollmentServiceError):
    pass
