import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.clock import OrgCalendar
from app.db import get_db_connection, create_tables
from app.routes.regulars import router as regulars_router
from app.routes.setup import router as setup_router
from app.routes.shifts import router as shifts_router
from app.routes.volunteers import router as volunteers_router
from app.scheduler import start_scheduler, shutdown_scheduler

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="regulars", description="Regular Volunteer Auto-Signup Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(regulars_router)
app.include_router(setup_router)
app.include_router(shifts_router)
app.include_router(volunteers_router)


@app.on_event("startup")
def startup():
    db_path = os.getenv("DB_PATH", "regulars.db")
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)
    conn = get_db_connection(db_path)
    create_tables(conn)
    app.state.db = conn
    app.state.calendar = OrgCalendar()
    app.state.scheduler = start_scheduler()


@app.on_event("shutdown")
def shutdown():
    app.state.db.close()
    shutdown_scheduler(app.state.scheduler)


@app.get("/healthz")
def healthz():
    return {"status": "ok"}
