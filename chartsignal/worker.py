import asyncio
import json
import logging

from rq import Worker, get_current_job

from .core.config import settings
from .core.logging import configure_logging
from .core.redisq import redis_conn, queue
from .vision.display import render_outcome
from .vision.errors import AnalysisError
from .vision.pipeline import analyze_chart_image_bytes

logger = logging.getLogger(__name__)

RESULT_TTL_SEC = 3600


def run_analysis_job(image_id: str, market: str, strategy: str) -> dict:
    meta = redis_conn.hgetall(f"img:{image_id}")
    raw = redis_conn.get(f"img:{image_id}:data")
    content_type = meta.get(b"content_type", b"").decode("utf-8") or None

    if not raw:
        payload = {"status": "error", "detail": "Uploaded image expired. Upload again."}
    else:
        try:
            outcome = asyncio.run(analyze_chart_image_bytes(raw, market, strategy, content_type=content_type))
            payload = render_outcome(outcome)
        except AnalysisError as e:
            logger.warning("Job for image %s failed: %s", image_id, e.message)
            payload = {"status": "error", "detail": e.message}
        except Exception:
            logger.exception("Job for image %s crashed", image_id)
            # /vision/result reports "running" until this key exists
            _store_result({"status": "error", "detail": AnalysisError().message})
            raise

    _store_result(payload)
    return payload


def _store_result(payload: dict) -> None:
    # store result for polling
    redis_conn.set(f"job:{_current_job_id()}", json.dumps(payload), ex=RESULT_TTL_SEC)


def _current_job_id() -> str:
    # RQ sets current_job in worker process context
    job = get_current_job()
    return job.id if job else "unknown"


if __name__ == "__main__":
    configure_logging(settings.log_level)
    if not redis_conn or not queue:
        raise RuntimeError("REDIS_URL not configured")
    Worker([queue], connection=redis_conn).work()
