import logging

from celery.signals import worker_process_init, worker_process_shutdown

from src.application.reminder_sweep import SweepResult
from src.config import Settings
from src.container import ServiceContainer
from src.tasks.celery_app import PAYMENT_REMINDER_TASK, celery_app

logger = logging.getLogger(__name__)

_container: ServiceContainer | None = None


@worker_process_init.connect
def _start_container(**_kwargs) -> None:
    global _container
    _container = ServiceContainer(Settings.from_env())
    _container.start()


@worker_process_shutdown.connect
def _stop_container(**_kwargs) -> None:
    global _container
    if _container is not None:
        _container.shutdown()
        _container = None


def run_sweep(container: ServiceContainer) -> dict:
    result: SweepResult = container.reminder_sweep.run()
    return {"sent": result.sent, "failed": result.failed, "skipped": result.skipped}


@celery_app.task(name=PAYMENT_REMINDER_TASK)
def send_payment_reminders() -> dict:
    if _container is None:
        raise RuntimeError("Worker container not started")
    return run_sweep(_container)
