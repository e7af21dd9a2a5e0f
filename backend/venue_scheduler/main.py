from contextlib import asynccontextmanager
from pathlib import Path
import logging

from fastapi import FastAPI, Depends, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

# ── local modules ───────────────────────────────────────────────────
from . import queries, scheduler
from .config import settings
from .db import Base, engine, get_db
from .errors import SchedulingError, parse_id
from .schemas import EventIn, EventOut, EventPage, EventUpdate, PageMeta, ParticipantOut, ParticipantsIn
# ────────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# ───────────────────────── DB migrations (optional) ─────────────────
from alembic import command
from alembic.config import Config


def run_migrations() -> None:
    app_dir = Path(__file__).resolve().parent
    cfg = Config(str(app_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(app_dir / "migrations"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url)
    cfg.attributes["configure_logger"] = False
    command.upgrade(cfg, "head")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_migrate:
        logger.info("running migrations")
        run_migrations()
    elif engine.dialect.name == "sqlite":
        # local dev database: create tables directly
        Base.metadata.create_all(engine)
    yield


app = FastAPI(title="Venue Scheduler API", lifespan=lifespan)

# ───────────────────────── CORS ─────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=86400,
)


# ───────────────────────── Errors ───────────────────────────────────
@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ───────────────────────── Lifecycle & health ───────────────────────
@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/")
def read_root():
    return {"message": "Venue scheduler is running."}


@app.get("/dbcheck")
def dbcheck(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"db": "ok"}


# ───────────────────────── Event CRUD ───────────────────────────────
@app.get("/events", response_model=EventPage)
def list_events(request: Request, db: Session = Depends(get_db)):
    filters, pagination = queries.split_query_params(request.query_params)
    rows, total = queries.list_events(db, filters, pagination)
    return EventPage(
        items=[EventOut.model_validate(r) for r in rows],
        meta=PageMeta(page=pagination.page, limit=pagination.limit, total=total),
    )


@app.get("/events/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    return queries.get_event(db, parse_id(event_id, "eventId"))


@app.post("/events", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventIn, db: Session = Depends(get_db)):
    return scheduler.create_event(db, payload)


@app.put("/events/{event_id}", response_model=EventOut)
def replace_event(event_id: str, payload: EventIn, db: Session = Depends(get_db)):
    return scheduler.update_event(db, parse_id(event_id, "eventId"), payload)


@app.patch("/events/{event_id}", response_model=EventOut)
def patch_event(event_id: str, payload: EventUpdate, db: Session = Depends(get_db)):
    return scheduler.update_event(db, parse_id(event_id, "eventId"), payload)


@app.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(event_id: str, db: Session = Depends(get_db)):
    scheduler.delete_event(db, parse_id(event_id, "eventId"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ───────────────────────── Participants ─────────────────────────────
@app.post(
    "/events/{event_id}/participants",
    response_model=list[ParticipantOut],
    status_code=status.HTTP_201_CREATED,
)
def add_participants(event_id: str, payload: ParticipantsIn, db: Session = Depends(get_db)):
    return scheduler.add_participants(db, parse_id(event_id, "eventId"), payload.participants)


@app.delete("/events/{event_id}/participants/{participant_id}", response_model=ParticipantOut)
def remove_participant(event_id: str, participant_id: str, db: Session = Depends(get_db)):
    return scheduler.remove_participant(
        db,
        parse_id(event_id, "eventId"),
        parse_id(participant_id, "participantId"),
    )
