# src/tasks/celery_app.py
"""
Celery application and beat schedule.

The only periodic job is the daily payment reminder sweep.
"""

from celery import Celery
from celery.schedules import crontab

from src.config import Settings

PAYMENT_REMINDER_TASK = "bookings.send_payment_reminders"


def build_beat_schedule(settings: Settings) -> dict:
    return {
        "send-payment-reminders-daily": {
            "task": PAYMENT_REMINDER_TASK,
            "schedule": crontab(hour=settings.reminder_hour, minute=settings.reminder_minute),
            "options": {"expires": 60 * 60},
        },
    }


def create_celery_app(settings: Settings | None = None) -> Celery:
    settings = settings or Settings.from_env()
    app = Celery(
        "event_bookings",
        broker=settings.celery_broker_url,
        include=["src.tasks.payment_reminders"],
    )
    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_ignore_result=True,
        beat_schedule=build_beat_schedule(settings),
    )
    return app


celery_app = create_celery_app()
