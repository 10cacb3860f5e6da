from __future__ import annotations

import hashlib
import json
import logging
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from ..validation import Normalized, validate
from .schema import SIGNAL_SCHEMA, AnalysisResult, to_analysis_result

logger = logging.getLogger(__name__)


def cache_key(raw_image_bytes: bytes, market: str, strategy: str) -> str:
    sha = hashlib.sha256(raw_image_bytes).hexdigest()
    return f"analysis:{sha}:{market}:{strategy}"


def get_cached(conn: Optional[Redis], key: str) -> Optional[AnalysisResult]:
    """Cached signal, re-validated against SIGNAL_SCHEMA. Stale/corrupt entries are dropped."""
    if conn is None:
        return None
    try:
        data = conn.get(key)
    except RedisError as e:
        logger.warning("Cache read failed: %s", e)
        return None
    if not data:
        return None

    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None

    res = validate(payload, SIGNAL_SCHEMA)
    if not isinstance(res, Normalized):
        logger.warning("Dropping cached signal that no longer validates: %s", key)
        try:
            conn.delete(key)
        except RedisError as e:
            logger.warning("Cache delete failed: %s", e)
        return None
    return to_analysis_result(res)


def put_cached(conn: Optional[Redis], key: str, result: AnalysisResult, ttl_sec: int) -> None:
    if conn is None:
        return
    try:
        conn.set(key, result.model_dump_json(by_alias=True), ex=ttl_sec)
    except RedisError as e:
        logger.warning("Cache write failed: %s", e)
