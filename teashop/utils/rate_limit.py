from typing import Dict, Any, List
from fastapi import Request, Response, HTTPException
import os
import time

def _client_key(req: Request) -> str:
    # Pas d'authentification: clé = IP (ou X-Forwarded-For derrière proxy) + chemin
    forwarded = (req.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    ip = forwarded or (req.client.host if req.client else "local")
    return f"ip:{ip}:{req.url.path}"

def _prune(store: Dict[str, List[float]], now: float, seconds: int) -> None:
    """Retire les clés dont toutes les requêtes sont sorties de la fenêtre."""
    stale = [key for key, hits in store.items() if not hits or now - hits[-1] >= seconds]
    for key in stale:
        del store[key]

def _local_hit(request: Request, times: int, seconds: int) -> None:
    now = time.time()
    store: Dict[str, List[float]] = getattr(request.app.state, "_rl_store", None)
    if store is None:
        store = request.app.state._rl_store = {}
    _prune(store, now, seconds)
    key = _client_key(request)
    hits = [t for t in store.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        store[key] = hits
        raise HTTPException(status_code=429, detail="Too Many Requests")
    hits.append(now)
    store[key] = hits

def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        # Forcer le fallback mémoire en DEV si demandé
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _local_hit(request, times, seconds)
            return

        # Respecter le flag global
        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return _client_key(req)
        return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    from fastapi_limiter import FastAPILimiter
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    return {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": "redis" if limiter_ready else None,
        "local_keys": len(getattr(request.app.state, "_rl_store", None) or {}),
    }
