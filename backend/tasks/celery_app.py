"""Celery app and the periodic system-maintenance task."""

from celery import Celery
from backend.core.config import settings

celery_app = Celery(
    "admin_platform",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_soft_time_limit=600,  # 10 min soft limit
    task_time_limit=900,  # 15 min hard limit
    beat_schedule={
        "system-maintenance": {
            "task": "run_system_maintenance",
            "schedule": settings.MAINTENANCE_INTERVAL_MINUTES * 60.0,
        },
    },
)


@celery_app.task(bind=True, name="run_system_maintenance")
def run_system_maintenance(self) -> dict:
    """Run the full maintenance cycle against the configured database."""
    from backend.db import session as db_session
    from backend.db.store import SqlAlchemyStore
    from backend.services.maintenance_service import MaintenanceService

    db_session.connect()
    db = db_session.SessionLocal()
    try:
        report = MaintenanceService(SqlAlchemyStore(db)).run_full_maintenance()
        return report.model_dump()
    finally:
        db.close()
