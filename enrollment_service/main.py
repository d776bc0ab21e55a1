import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import uvicorn

from enrollment_service import activities, enrollment, schedule, statistics
from enrollment_service.config import HOST, KAFKA_BROKER, LOG_LEVEL, PORT
from enrollment_service.database import SessionLocal, init_db, transaction
from enrollment_service.errors import (
    ConflictError,
    NoOpError,
    NotFoundError,
    PersistenceError,
)
from enrollment_service.events import make_producer
from enrollment_service.schemas import (
    ActivityRequest,
    ActivityResponse,
    ActivityStatistics,
    EnrollmentRequest,
    EnrollmentResponse,
    EnrollmentRow,
    ReassignRequest,
    SlotStatus,
    Weekday,
)

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.producer = make_producer(KAFKA_BROKER)
    yield
    if app.state.producer is not None:
        app.state.producer.flush()
        app.state.producer.close()


app = FastAPI(lifespan=lifespan)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_producer(request: Request):
    return getattr(request.app.state, "producer", None)


@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ConflictError)
def conflict_handler(request: Request, exc: ConflictError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(NoOpError)
def no_op_handler(request: Request, exc: NoOpError):
    return JSONResponse(status_code=200, content={"success": False, "message": exc.message})


@app.exception_handler(PersistenceError)
def persistence_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=503, content={"detail": exc.message})


@app.post("/enrollments", response_model=EnrollmentResponse)
def enroll_client(req: EnrollmentRequest, db: Session = Depends(get_db), producer=Depends(get_producer)):
    return enrollment.enroll(db, req, producer)


@app.delete("/enrollments", response_model=EnrollmentResponse)
def unenroll_client(req: EnrollmentRequest, db: Session = Depends(get_db), producer=Depends(get_producer)):
    return enrollment.unenroll(db, req, producer)


@app.post("/enrollments/reassign", response_model=EnrollmentResponse)
def reassign_client(req: ReassignRequest, db: Session = Depends(get_db), producer=Depends(get_producer)):
    return enrollment.reassign(db, req, producer)


@app.get("/enrollments", response_model=List[EnrollmentRow])
def list_enrollments(activity_id: Optional[str] = None, db: Session = Depends(get_db)):
    return enrollment.list_enrollments(db, activity_id)


@app.get("/schedule/occupied", response_model=SlotStatus)
def slot_status(
    trainer_code: str,
    day: Weekday,
    hour: int = Query(..., ge=0, le=23),
    excluding: Optional[str] = None,
    db: Session = Depends(get_db),
):
    with transaction(db):
        occupied = schedule.is_occupied(db, trainer_code, day, hour, excluding)
    return SlotStatus(trainer_code=trainer_code, day=day, hour=hour, occupied=occupied)


@app.post("/activities", response_model=ActivityResponse)
def create_activity(req: ActivityRequest, db: Session = Depends(get_db), producer=Depends(get_producer)):
    return activities.create_activity(db, req, producer)


@app.put("/activities/{activity_id}", response_model=ActivityResponse)
def update_activity(
    activity_id: str, req: ActivityRequest, db: Session = Depends(get_db), producer=Depends(get_producer)
):
    return activities.update_activity(db, activity_id, req, producer)


@app.get("/activities/{activity_id}/statistics", response_model=ActivityStatistics)
def activity_statistics(activity_id: str, db: Session = Depends(get_db)):
    return statistics.compute_activity_statistics(db, activity_id)


if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
