from __future__ import annotations

import re
from typing import Iterable, List

from ..validation import Violation, ViolationKind
from .schema import AnalysisOutcome, AnalysisResult, MarketBias

_LEVEL_RE = re.compile(r"\d{4,5}")

SIGNAL_TITLES = {
    "LONG": "BUY CALL Options (CE)",
    "SHORT": "BUY PUT Options (PE)",
    "NO TRADE": "No Clear Setup",
}


def market_bias(signal: str) -> MarketBias:
    if signal == "LONG":
        return "BULLISH"
    if signal == "SHORT":
        return "BEARISH"
    return "NEUTRAL"


def technical_levels(text: str, limit: int = 5) -> List[str]:
    """Best-effort: 4-5 digit numbers mentioned in the reasoning text."""
    return _LEVEL_RE.findall(text or "")[:limit]


def build_signal_card(r: AnalysisResult) -> dict:
    """Display-only values derived from a validated result."""
    no_trade = r.signal == "NO TRADE"
    return {
        "trade_type": r.signal,
        "market_bias": market_bias(r.signal),
        "signal_title": SIGNAL_TITLES[r.signal],
        "confidence_label": f"CONFIDENCE: {r.confidence:g}%",
        # levels are hidden on NO TRADE cards
        "show_levels": not no_trade,
        "entry_zone": r.entry,
        "stop_loss": r.sl,
        "targets": r.targets,
        "technical_levels": technical_levels(r.reason),
    }


def summarize_violations(violations: Iterable[Violation]) -> List[str]:
    """User-facing lines like 'AI response missing required field `signal`'."""
    out: List[str] = []
    for v in violations:
        if v.kind == ViolationKind.MISSING_REQUIRED:
            out.append(f"AI response missing required field `{v.dotted_path}`")
        else:
            out.append(f"AI response invalid: {v.message}")
    return out


def render_outcome(outcome: AnalysisOutcome) -> dict:
    """JSON body for the presentation layer. Never mixes a signal with violations."""
    base = {
        "market": outcome.market,
        "strategy": outcome.strategy,
        "model": outcome.model,
        "usage": outcome.usage,
    }
    if outcome.ok:
        return {
            "status": "success",
            **base,
            "signal": outcome.result.model_dump(by_alias=True),
            "card": build_signal_card(outcome.result),
        }
    return {
        "status": "invalid_response",
        **base,
        "violations": [v.model_dump(mode="json") for v in outcome.violations],
        "summary": summarize_violations(outcome.violations),
    }
