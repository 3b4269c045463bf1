import uuid
from contextlib import contextmanager

import redis
from tenacity import Retrying, retry_if_result, stop_after_delay, wait_exponential

from app.domain.errors import CartLocked
from app.utils.retry import redis_retry
from app.utils.settings import REDIS_URL, CART_LOCK_TTL_SECONDS, CART_LOCK_WAIT_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nie mozna wcisnac sie miedzy GET a DEL
#wiec lock zwalnia tylko ten, kto go trzyma (token)


class LockService:
    """
    -blokada koszyka usera (jedna mutacja na raz dla danego usera)
    -zwalnianie locka tylko przez wlasciciela tokenu
    -atomowosc przy pomocy lua
    """

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
        ttl: int = CART_LOCK_TTL_SECONDS,
        wait: float = CART_LOCK_WAIT_SECONDS,
    ):
        self.redis = client if client is not None else redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl
        self.wait = wait

    @staticmethod
    def _key(user_id: int) -> str:
        return f"cart:{user_id}:lock"

    @redis_retry()
    def acquire_cart_lock(self, user_id: int, token: str, ttl: int) -> bool:
        key = self._key(user_id)
        logger.debug(f"Acquire lock {key}")
        #SET cart:1:lock "<token>" NX EX 10
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True,
                ex=ttl, #lock wygasa sam jesli proces padnie
            )
        )

    @redis_retry()
    def release_cart_lock(self, user_id: int, token: str) -> bool:
        key = self._key(user_id)
        logger.debug(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    def _wait_for_lock(self, user_id: int, token: str, ttl: int, wait: float) -> bool:
        retryer = Retrying(
            stop=stop_after_delay(wait),
            wait=wait_exponential(multiplier=0.01, min=0.01, max=0.2),
            retry=retry_if_result(lambda acquired: not acquired),
            retry_error_callback=lambda state: False,
        )
        return retryer(self.acquire_cart_lock, user_id, token, ttl)

    @contextmanager
    def cart_lock(
        self,
        user_id: int,
        ttl: int | None = None,
        wait: float | None = None,
    ):
        if ttl is None:
            ttl = self.ttl
        if wait is None:
            wait = self.wait
        token = uuid.uuid4().hex

        if not self._wait_for_lock(user_id, token, ttl, wait):
            logger.warning(f"Nie udalo sie zablokowac koszyka usera {user_id} w {wait}s")
            raise CartLocked(f"Cart of user {user_id} is locked by another operation")

        try:
            yield token
        finally:
            if not self.release_cart_lock(user_id, token):
                #ttl minal w trakcie operacji, lock mogl przejac ktos inny
                logger.warning(f"Lock koszyka usera {user_id} wygasl przed zwolnieniem")
