from __future__ import annotations

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

IST = ZoneInfo("Asia/Kolkata")

SYSTEM = """You are an Indian market options strategist specializing in NIFTY and BANKNIFTY chart analysis.

You MUST follow these rules:
- Output MUST be a single JSON object (no markdown, no code fences, no commentary).
- Analyze only what is visible on the chart: trend, support/resistance, patterns, volume, moving averages, momentum.
- If the chart is unclear or there is no clear setup, signal MUST be "NO TRADE".
- Always give a stop loss (sl) for risk management.
- Risk:reward at least 1:1.5, ideally 1:2 or better. No trade if the setup is ambiguous.
- reason is a short Hinglish (Hindi + English) explanation mixing technical and news context.

Output keys:
- signal: one of "LONG", "SHORT", "NO TRADE"
- entry: entry price or zone as a string (e.g. "48500-48550")
- sl: stop loss level as a string (e.g. "48350")
- targets: target levels as a string (e.g. "48750, 48900")
- confidence: number from 0 to 100
- reason: non-empty string
- marketRegime: one of "TRENDING", "RANGING", "VOLATILE"
- suggestedStrategy: string (e.g. "Breakout Pullback", "Mean Reversion", "Trend Following")
- expiry: nearest weekly/monthly expiry date as a string
- newsSentiment: one of "POSITIVE", "NEGATIVE", "NEUTRAL"
- newsSummary: 1-2 sentences of news context
- sources: array of {"title": string, "uri": string}; [] when no news sources were used

Enum values are case-sensitive and must match exactly.
"""

STRATEGY_FOCUS = {
    "SCALPING": "Focus on: quick 5-15 point moves, very tight stops, immediate execution setups on 1-5 min charts.",
    "INTRADAY": "Focus on: intraday swings, 30-100 point moves, session high/low breaks on 5-15 min charts.",
}

MARKET_NOTES = {
    "BANKNIFTY": "Remember: BANKNIFTY weekly expiry is Wednesday. High volatility index, moves 200-500 points intraday.",
    "NIFTY": "Remember: NIFTY weekly expiry is Thursday. Relatively stable, moves 50-150 points intraday.",
}


def user_prompt(market: str, strategy: str, now: Optional[datetime] = None) -> str:
    """Context prompt sent next to the chart image."""
    now = (now or datetime.now(IST)).astimezone(IST)
    return (
        f"MARKET: {market}\n"
        f"STRATEGY: {strategy}\n"
        f"CURRENT_DATE: {now.strftime('%d/%m/%Y')}\n"
        f"DAY_OF_WEEK: {now.strftime('%A')}\n\n"
        f"Analyze this {market} chart for {strategy} trading opportunities.\n\n"
        f"{STRATEGY_FOCUS.get(strategy, STRATEGY_FOCUS['INTRADAY'])}\n\n"
        f"{MARKET_NOTES.get(market, MARKET_NOTES['NIFTY'])}\n\n"
        "Return ONLY the JSON object, with exactly the keys listed in the system instructions.\n"
    )
