from fastapi import Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

_import_limiter = RateLimiter(times=2, seconds=300)


async def import_rate_limit(request: Request, response: Response):
    # limiter is only initialised when Redis is reachable at startup
    if FastAPILimiter.redis is None:
        return
    await _import_limiter(request, response)
