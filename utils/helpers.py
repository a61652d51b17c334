from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Percentiles:
    p5: list[float]
    p25: list[float]
    p50: list[float]
    p75: list[float]
    p95: list[float]


def format_currency(value: float) -> str:
    return f"${value:,.0f}"


def format_months(months: float) -> str:
    years, remainder = divmod(round(months), 12)
    if years == 0:
        return f"{remainder} mo"
    if remainder == 0:
        return f"{years} yr"
    return f"{years} yr {remainder} mo"


def annual_to_monthly_rate(annual_rate: float) -> float:
    return (1 + annual_rate) ** (1 / 12) - 1
