from functools import wraps
from structlog import get_logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
import httpx

logger = get_logger(__name__)


def retry_api(tries: int = 3, delay: float = 1, backoff: float = 2, retry_on=(httpx.TransportError,)):
    """Retry an async call on transient errors, re-raising the last error once attempts run out."""
    def decorator(func):
        @wraps(func)
        @retry(
            stop=stop_after_attempt(tries),
            wait=wait_exponential(multiplier=delay, exp_base=backoff),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        )
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except retry_on as e:
                logger.warning("Retry attempt", func=func.__name__, error=str(e))
                raise
        return wrapper
    return decorator
