from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler

from app.regulars.pauses import schedule_pause_sweep


def start_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone="UTC")
    schedule_pause_sweep(scheduler)
    scheduler.start()
    return scheduler


def shutdown_scheduler(scheduler: BackgroundScheduler) -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
