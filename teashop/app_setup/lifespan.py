"""
Lifespan FastAPI: vérifications de démarrage et ressources partagées.
- Signale la configuration checkout incomplète (Stripe, Supabase) sans bloquer le démarrage.
- Initialise FastAPILimiter (Redis) pour /checkout, avec options de test (fakeredis).
Variables d’environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: pas de rate limiting (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: fakeredis au lieu de Redis
  - RATE_LIMIT_REDIS_URL: URL Redis (défaut redis://127.0.0.1:6379/0)
  - LOCAL_RATE_LIMIT_FALLBACK=1: compteur mémoire local si Redis est indisponible
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter
from redis import asyncio as aioredis

from teashop import config

logger = logging.getLogger("uvicorn.error")


def _warn_missing_settings() -> None:
    missing = [
        name for name, value in (
            ("STRIPE_SECRET_KEY", config.STRIPE_SECRET_KEY),
            ("STRIPE_WEBHOOK_SECRET", config.STRIPE_WEBHOOK_SECRET),
            ("SUPABASE_URL", config.SUPABASE_URL),
            ("SUPABASE_SERVICE_KEY", config.SUPABASE_SERVICE_KEY),
        ) if not value
    ]
    if missing:
        # webhook sans secret: tous les événements seront refusés
        logger.warning("Checkout configuration incomplete, missing: %s", ", ".join(missing))


async def _init_rate_limiter(app: FastAPI) -> None:
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        from fakeredis import FakeAsyncRedis
        redis = FakeAsyncRedis(decode_responses=True)
    else:
        redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
        redis = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)
    await FastAPILimiter.init(redis)
    app.state.rate_limit_enabled = True


@asynccontextmanager
async def lifespan(app: FastAPI):
    _warn_missing_settings()
    app.state.rate_limit_enabled = False

    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
    else:
        try:
            await _init_rate_limiter(app)
            logger.info("Rate limiting enabled on checkout")
        except Exception as e:
            # Redis injoignable: le checkout reste servi, sans limite (ou avec le fallback mémoire)
            mode = "local in-memory fallback" if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1" else "disabled"
            logger.warning("Rate limiting %s due to init error: %s", mode, e)

    yield

    if app.state.rate_limit_enabled:
        await FastAPILimiter.close()
