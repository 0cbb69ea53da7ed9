"""Health checks for the gateway."""

import logging
import os
import shutil
from typing import Any, Dict

from translator.cache import TranslationCache
from translator.engine_client import EngineClient

logger = logging.getLogger(__name__)


def check_engine_health(engine_client: EngineClient) -> Dict[str, Any]:
    """
    Check that the engine binary can be executed.

    The engine is never invoked here; a test call would spawn a process
    and hit the upstream translation provider.
    """
    binary = engine_client.binary_path
    resolved = binary if os.path.sep in binary else shutil.which(binary)

    executable = bool(
        resolved and os.path.isfile(resolved) and os.access(resolved, os.X_OK)
    )
    return {
        "is_healthy": executable,
        "binary_path": binary,
        "resolved_path": resolved,
        "calls_made": engine_client.calls_made,
    }


async def check_cache_health(cache: TranslationCache) -> Dict[str, Any]:
    """Check the cache backend connection."""
    backend = await cache.health_check()
    return {
        "is_healthy": bool(backend.get("connected")),
        "backend": type(cache.store).__name__,
        "details": backend,
    }


async def check_health(engine_client: EngineClient, cache: TranslationCache) -> Dict[str, Any]:
    """
    Comprehensive health check of the gateway dependencies.

    Returns:
        Dict with overall 'status' ('healthy' or 'unhealthy'), per-check
        booleans and details
    """
    try:
        engine = check_engine_health(engine_client)
        cache_health = await check_cache_health(cache)

        checks = {
            "engine_available": engine["is_healthy"],
            "cache_connected": cache_health["is_healthy"],
        }

        if not all(checks.values()):
            logger.warning(f"⚠️  Health check failed: {checks}")

        return {
            "status": "healthy" if all(checks.values()) else "unhealthy",
            "checks": checks,
            "details": {"engine": engine, "cache": cache_health},
        }
    except Exception as e:
        logger.error(f"❌ Health check error: {e}", exc_info=True)
        return {"status": "error", "error": str(e), "checks": {}, "details": {}}
