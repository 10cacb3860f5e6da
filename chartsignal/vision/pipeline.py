from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

import openai
from openai import AsyncOpenAI

from ..core.config import settings
from ..validation import Normalized, Violation, validate
from .errors import (
    AIConfigurationError,
    AIQuotaError,
    AIResponseFormatError,
    AnalysisError,
    InvalidImageError,
    UnsupportedSelectionError,
)
from .preprocess import ImageUploadError, process_image
from .prompt import SYSTEM, user_prompt
from .schema import MARKETS, SIGNAL_SCHEMA, STRATEGIES, AnalysisOutcome, AnalysisResult, to_analysis_result

logger = logging.getLogger(__name__)


def _strip_code_fences(text: str) -> str:
    if "```" not in text:
        return text.strip()
    return text.replace("```json", "").replace("```", "").strip()


def _usage_meta(resp, *, model_fallback: str | None = None) -> dict[str, Any]:
    usage = getattr(resp, "usage", None)
    return {
        "model": getattr(resp, "model", None) or model_fallback,
        "prompt_tokens": getattr(usage, "prompt_tokens", None) if usage is not None else None,
        "completion_tokens": getattr(usage, "completion_tokens", None) if usage is not None else None,
        "total_tokens": getattr(usage, "total_tokens", None) if usage is not None else None,
    }


def parse_model_json(text: str) -> Any:
    """Model text -> decoded JSON value. Raises AIResponseFormatError."""
    cleaned = _strip_code_fences(text or "")
    try:
        return json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, int literals past the digit limit, runaway nesting
        logger.error("Model returned unparseable text (%d chars): %s", len(cleaned), type(e).__name__)
        raise AIResponseFormatError() from e


def validate_signal(data: Any) -> Tuple[Optional[AnalysisResult], List[Violation]]:
    res = validate(data, SIGNAL_SCHEMA)
    if isinstance(res, Normalized):
        return to_analysis_result(res), []
    return None, list(res.violations)


def _check_selection(market: str, strategy: str) -> None:
    if market not in MARKETS:
        raise UnsupportedSelectionError(f"Unknown market '{market}'. Use one of: {', '.join(MARKETS)}")
    if strategy not in STRATEGIES:
        raise UnsupportedSelectionError(f"Unknown strategy '{strategy}'. Use one of: {', '.join(STRATEGIES)}")


def _client() -> AsyncOpenAI:
    if not settings.api_key_configured:
        raise AIConfigurationError()
    return AsyncOpenAI(api_key=settings.openai_api_key)


async def analyze_chart_image_bytes(
    raw_image_bytes: bytes,
    market: str,
    strategy: str,
    *,
    content_type: str | None = "image/png",
    client: AsyncOpenAI | None = None,
    now: datetime | None = None,
) -> AnalysisOutcome:
    """Chart screenshot -> validated trade signal (or the violations that block it)."""
    _check_selection(market, strategy)

    try:
        image = process_image(raw_image_bytes, content_type)
    except ImageUploadError as e:
        raise InvalidImageError(str(e)) from e

    client = client or _client()
    model = settings.vision_model

    try:
        resp = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": user_prompt(market, strategy, now)},
                        {"type": "image_url", "image_url": {"url": image.data_url}},
                    ],
                },
            ],
            temperature=0,
            response_format={"type": "json_object"},
        )
    except openai.AuthenticationError as e:
        logger.error("Model call rejected credentials: %s", type(e).__name__)
        raise AIConfigurationError() from e
    except openai.RateLimitError as e:
        logger.warning("Model quota/rate limit hit")
        raise AIQuotaError() from e
    except openai.BadRequestError as e:
        if "image" in str(e).lower():
            raise InvalidImageError() from e
        logger.error("Model call failed: %s", e)
        raise AnalysisError() from e
    except openai.OpenAIError as e:
        logger.error("Model call failed: %s: %s", type(e).__name__, e)
        raise AnalysisError() from e

    data = parse_model_json((resp.choices[0].message.content or "").strip())
    result, violations = validate_signal(data)
    usage = _usage_meta(resp, model_fallback=model)
    usage["image"] = image.as_meta()

    if result is None:
        logger.warning(
            "Model response failed validation market=%s strategy=%s violations=%s",
            market,
            strategy,
            [v.dotted_path + ":" + v.kind.value for v in violations],
        )
    else:
        logger.info(
            "Analysis completed market=%s strategy=%s signal=%s confidence=%s",
            market,
            strategy,
            result.signal,
            result.confidence,
        )

    return AnalysisOutcome(
        market=market,
        strategy=strategy,
        model=usage.get("model"),
        result=result,
        violations=violations,
        usage=usage,
    )


async def check_api_health(client: AsyncOpenAI | None = None) -> bool:
    """One tiny model call to prove the key works."""
    if client is None and not settings.api_key_configured:
        return False
    try:
        client = client or _client()
        await client.chat.completions.create(
            model=settings.vision_model,
            messages=[{"role": "user", "content": "test"}],
            max_tokens=1,
        )
        return True
    except (openai.OpenAIError, AnalysisError) as e:
        logger.warning("API health check failed: %s", type(e).__name__)
        return False
