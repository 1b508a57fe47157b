import logging
import uuid
from contextlib import contextmanager
from typing import Iterator

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RedisLock:
    """
    Mutex shared by every process pointed at the same Redis, held on a single
    key with SET NX EX. The TTL bounds how long a crashed holder can block
    others.

    An unreachable Redis counts as "not acquired": callers skip their work
    rather than run unguarded.
    """

    def __init__(self, client: Redis, key: str, ttl_s: int = 3600):
        self.client = client
        self.key = key
        self.ttl_s = ttl_s
        self._token: str | None = None

    @classmethod
    def from_url(cls, url: str, key: str, ttl_s: int = 3600) -> "RedisLock":
        client = Redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, key, ttl_s=ttl_s)

    def acquire(self) -> bool:
        token = uuid.uuid4().hex
        try:
            acquired = bool(self.client.set(self.key, token, nx=True, ex=self.ttl_s))
        except RedisError as exc:
            logger.warning("Could not take lock %s: %s", self.key, exc)
            return False
        if acquired:
            self._token = token
        return acquired

    def release(self) -> None:
        token, self._token = self._token, None
        if token is None:
            return
        try:
            # Only drop the key while it is still ours; it may have expired and been retaken.
            if self.client.get(self.key) == token:
                self.client.delete(self.key)
        except RedisError as exc:
            logger.warning("Could not release lock %s, it expires within %ss: %s", self.key, self.ttl_s, exc)

    @contextmanager
    def held(self) -> Iterator[bool]:
        acquired = self.acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
