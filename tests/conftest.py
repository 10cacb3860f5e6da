import io
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image


@pytest.fixture
def signal_payload():
    """A model response that satisfies SIGNAL_SCHEMA with every optional field omitted."""
    return {
        "signal": "LONG",
        "entry": "48500-48550",
        "sl": "48350",
        "targets": "48750",
        "confidence": 78,
        "reason": "breakout",
        "marketRegime": "TRENDING",
        "newsSentiment": "NEUTRAL",
    }


def make_image_bytes(size=(64, 48), fmt="PNG", color=(20, 120, 60)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes()


def make_chat_response(content: str, model: str = "gpt-4o-mini"):
    return SimpleNamespace(
        model=model,
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=900, completion_tokens=120, total_tokens=1020),
    )


@pytest.fixture
def fake_client():
    """Stand-in for AsyncOpenAI: set fake_client.chat.completions.create.return_value."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client
