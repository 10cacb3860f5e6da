from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field as PydField

from ..validation import Field, Normalized, Schema, Violation, array, enum, number, obj, string

# ----------------------------
# Request side
# ----------------------------
MarketIndex = Literal["NIFTY", "BANKNIFTY"]
TradingStrategy = Literal["INTRADAY", "SCALPING"]

MARKETS = get_args(MarketIndex)
STRATEGIES = get_args(TradingStrategy)

# ----------------------------
# Model output (trade signal)
# ----------------------------
TradeType = Literal["LONG", "SHORT", "NO TRADE"]
MarketRegime = Literal["TRENDING", "RANGING", "VOLATILE"]
NewsSentiment = Literal["POSITIVE", "NEGATIVE", "NEUTRAL"]
MarketBias = Literal["BULLISH", "BEARISH", "NEUTRAL"]

SOURCE_SCHEMA = Schema(
    Field("title", string()),
    Field("uri", string()),
)

SIGNAL_SCHEMA = Schema(
    Field("signal", enum(*get_args(TradeType))),
    Field("entry", string()),
    Field("sl", string()),
    Field("targets", string()),
    Field("confidence", number(), range=(0, 100)),
    Field("reason", string(), non_empty=True),
    Field("marketRegime", enum(*get_args(MarketRegime))),
    Field("newsSentiment", enum(*get_args(NewsSentiment))),
    Field("suggestedStrategy", string(), required=False, default="Wait for confirmation"),
    Field("expiry", string(), required=False, default="Check current weekly expiry"),
    Field("newsSummary", string(), required=False, default="No significant news"),
    Field("sources", array(obj(*SOURCE_SCHEMA)), required=False, default=[]),
)


class NewsSource(BaseModel):
    title: str
    uri: str


class AnalysisResult(BaseModel):
    """Typed view of a record that already passed SIGNAL_SCHEMA."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    signal: TradeType
    entry: str
    sl: str
    targets: str
    confidence: float
    reason: str

    market_regime: MarketRegime = PydField(alias="marketRegime")
    suggested_strategy: str = PydField(alias="suggestedStrategy")

    expiry: str
    news_sentiment: NewsSentiment = PydField(alias="newsSentiment")
    news_summary: str = PydField(alias="newsSummary")
    sources: List[NewsSource] = PydField(default_factory=list)


def to_analysis_result(normalized: Normalized) -> AnalysisResult:
    return AnalysisResult.model_validate(normalized.value)


class AnalysisOutcome(BaseModel):
    """What one analyze call produced: a usable signal, or why there isn't one."""

    market: MarketIndex
    strategy: TradingStrategy
    model: Optional[str] = None

    result: Optional[AnalysisResult] = None
    violations: List[Violation] = PydField(default_factory=list)

    usage: Dict[str, Any] = PydField(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.result is not None and not self.violations
