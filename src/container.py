import logging
import time
from datetime import date
from typing import Callable

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from src.application.reminder_sweep import PaymentReminderSweep
from src.config import Settings
from src.infrastructure.db import models  # noqa: F401  registers tables on Base
from src.infrastructure.db.session import Base, build_engine, build_session_factory
from src.infrastructure.integrations.auth import JwtAuthVerifier
from src.infrastructure.integrations.media_store import CloudinaryMediaStore
from src.infrastructure.integrations.notifier import ResendNotifier
from src.infrastructure.integrations.payment_gateway import RazorpayGateway
from src.infrastructure.locks import RedisLock

logger = logging.getLogger(__name__)

SWEEP_LOCK_KEY = "locks:payment-reminder-sweep"


class ServiceContainer:
    """
    Owns the process-wide collaborators: engine, session factory and the
    external integrations. Built once per process and torn down explicitly.
    """

    def __init__(
        self,
        settings: Settings,
        engine: Engine | None = None,
        gateway=None,
        media_store=None,
        notifier=None,
        auth_verifier=None,
        sweep_lock=None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.engine = engine or build_engine(settings.database_url)
        self.session_factory = build_session_factory(self.engine)
        self.gateway = gateway or RazorpayGateway(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
        )
        self.media_store = media_store or CloudinaryMediaStore(
            cloud_name=settings.cloudinary_cloud_name,
            upload_preset=settings.cloudinary_upload_preset,
            timeout=settings.media_upload_timeout,
        )
        self.notifier = notifier or ResendNotifier(
            api_key=settings.resend_api_key,
            sender=settings.mail_from,
        )
        self.auth_verifier = auth_verifier or JwtAuthVerifier(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        self.reminder_sweep = PaymentReminderSweep(
            self.session_factory,
            self.notifier,
            currency=settings.payment_currency,
            today=today,
            lock=sweep_lock or RedisLock.from_url(
                settings.redis_url,
                key=SWEEP_LOCK_KEY,
                ttl_s=settings.sweep_lock_ttl,
            ),
        )

    def start(self) -> None:
        self._wait_for_db()
        Base.metadata.create_all(bind=self.engine)

    def shutdown(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed.")

    def _wait_for_db(self) -> None:
        # Handles the common case where the service starts before Postgres is ready.
        max_retries = self.settings.db_connect_max_retries
        retry_delay_seconds = self.settings.db_connect_retry_delay

        for attempt in range(1, max_retries + 1):
            try:
                with self.engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                logger.info("Database is reachable.")
                return
            except OperationalError:
                if attempt == max_retries:
                    logger.exception(
                        "Database not reachable after %s attempts. Check DATABASE_URL and Postgres status.",
                        max_retries,
                    )
                    raise
                logger.warning(
                    "Database not ready (attempt %s/%s). Retrying in %.1f seconds...",
                    attempt,
                    max_retries,
                    retry_delay_seconds,
                )
                time.sleep(retry_delay_seconds)
