import hashlib, json, uuid
from fastapi import APIRouter, UploadFile, File, Form, HTTPException
from pydantic import BaseModel
from ..core.redisq import queue, redis_conn
from ..vision.schema import MarketIndex, TradingStrategy

router = APIRouter(prefix="/vision", tags=["vision"])

IMAGE_TTL_SEC = 3600

class UploadResp(BaseModel):
    image_id: str
    sha256: str

class JobResp(BaseModel):
    job_id: str

@router.post("/upload", response_model=UploadResp)
async def upload_chart(file: UploadFile = File(...)):
    raw = await file.read()
    if not raw:
        raise HTTPException(400, "Empty upload")

    if not redis_conn:
        raise HTTPException(500, "REDIS_URL not configured")

    sha = hashlib.sha256(raw).hexdigest()
    image_id = uuid.uuid4().hex

    # raw bytes go to the worker untouched; it runs the same preprocessing as /v1/analyze
    redis_conn.set(f"img:{image_id}:data", raw, ex=IMAGE_TTL_SEC)
    redis_conn.hset(
        f"img:{image_id}",
        mapping={"sha256": sha, "content_type": file.content_type or "application/octet-stream"},
    )
    redis_conn.expire(f"img:{image_id}", IMAGE_TTL_SEC)

    return UploadResp(image_id=image_id, sha256=sha)

@router.post("/analyze/{image_id}", response_model=JobResp)
def analyze(image_id: str, market: MarketIndex = Form("NIFTY"), strategy: TradingStrategy = Form("INTRADAY")):
    if not queue or not redis_conn:
        raise HTTPException(500, "Redis/Queue not configured")

    meta = redis_conn.hgetall(f"img:{image_id}")
    if not meta:
        raise HTTPException(404, "Unknown image_id")

    job = queue.enqueue("chartsignal.worker.run_analysis_job", image_id, market, strategy)
    return JobResp(job_id=job.id)

@router.get("/result/{job_id}")
def result(job_id: str):
    if not redis_conn:
        raise HTTPException(500, "Redis not configured")

    data = redis_conn.get(f"job:{job_id}")
    if not data:
        return {"status": "running"}
    return {"status": "done", "result": json.loads(data)}
