"""Celery application for the restock worker."""

from celery import Celery
from celery.schedules import crontab

from restock_service.config import get_settings
from restock_service.logging_config import configure_logging

settings = get_settings()
configure_logging(settings)

# Create Celery app
app = Celery(
    "email_worker",
    broker=settings.celery_broker,
    backend=settings.celery_backend,
    include=[
        "email_worker.tasks.back_in_stock",
    ],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    task_soft_time_limit=240,  # 4 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_default_queue="email",
    task_routes={
        "email_worker.tasks.*": {"queue": "email"},
    },
)

# Beat schedule for periodic tasks
app.conf.beat_schedule = {
    # Free subscriptions whose notifying pass crashed
    "release-stale-claims": {
        "task": "email_worker.tasks.back_in_stock.release_stale_claims",
        "schedule": crontab(minute=f"*/{settings.stale_claim_sweep_minutes}"),
    },
}


def run() -> None:
    """Run the Celery worker."""
    app.worker_main(["worker", "--loglevel=info", "-Q", "email"])


if __name__ == "__main__":
    run()
