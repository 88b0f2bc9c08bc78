import json
import redis
import structlog
from typing import Optional, Any
from ..config import settings

logger = structlog.get_logger()

_redis_client: Optional[redis.Redis] = None

def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client

def outline_key(course_id: int, locale: str) -> str:
    return f"course:{course_id}:outline:{locale}"

def get_cache(key: str) -> Optional[Any]:
    """Получить значение из кэша"""
    if not settings.CACHE_ENABLED:
        return None
    try:
        value = get_redis().get(key)
        if value:
            return json.loads(value)
    except (redis.RedisError, ValueError) as e:
        # Redis недоступен - работаем как при промахе
        logger.warning("cache_get_failed", key=key, error=str(e))
    return None

def set_cache(key: str, value: Any, ttl: int = None) -> bool:
    """Сохранить значение в кэш"""
    if not settings.CACHE_ENABLED:
        return False
    try:
        ttl = ttl or settings.CACHE_TTL
        get_redis().setex(key, ttl, json.dumps(value, ensure_ascii=False))
        return True
    except (redis.RedisError, TypeError) as e:
        logger.warning("cache_set_failed", key=key, error=str(e))
        return False
