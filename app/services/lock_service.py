import uuid
from contextlib import contextmanager

import redis
from app.domain.errors import CartBusy
from app.utils.retry import lock_wait_retry, redis_retry
from app.utils.settings import REDIS_URL, CART_LOCK_TTL_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

#LUA compare and delete, atomic
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis runs the script as one uninterruptible operation,
#nobody can squeeze in between GET and DEL so we never drop someone else's lock


class LockService:
    """
    -per-user cart lock (serializes read-modify-write on the cart)
    -release only by the holder token
    -atomic release with lua
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(user_id: int) -> str:
        return f"cart:user:{user_id}:lock"

    @redis_retry()
    def acquire_cart_lock(self, user_id: int, token: str, ttl: int) -> bool:
        key = self._key(user_id)
        logger.debug(f"Acquire lock {key}")
        #SET cart:user:1:lock "<token>" NX EX 10
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True,  #only if the key does not exist yet
                ex=ttl,  #expires by itself, no manual cleanup after a crash
            )
        )

    @redis_retry()
    def release_cart_lock(self, user_id: int, token: str) -> bool:
        key = self._key(user_id)
        logger.debug(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @lock_wait_retry()
    def _wait_for_cart_lock(self, user_id: int, token: str, ttl: int) -> bool:
        return self.acquire_cart_lock(user_id, token, ttl)

    @contextmanager
    def cart_lock(self, user_id: int, ttl: int = CART_LOCK_TTL_SECONDS):
        token = uuid.uuid4().hex

        if not self._wait_for_cart_lock(user_id, token, ttl):
            logger.warning(f"Cart of user {user_id} is locked by another request")
            raise CartBusy()

        try:
            yield
        finally:
            if not self.release_cart_lock(user_id, token):
                logger.warning(f"Cart lock of user {user_id} expired before release")
