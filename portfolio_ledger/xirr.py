"""Annualized internal rate of return for irregular, dated cash flows.

``xirr`` solves ``xnpv(rate) == 0`` with Newton-Raphson and falls back to
bisection over ``[MIN_RATE, MAX_RATE]`` when Newton stalls. Years are counted
as Actual/365.25 so results are reproducible across calendars.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from .models import CashFlow

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25
SECONDS_PER_YEAR = DAYS_PER_YEAR * 24 * 60 * 60
MIN_RATE = -0.99
MAX_RATE = 10.0
TOLERANCE = 1e-4
MAX_ITERATIONS = 100
DERIVATIVE_FLOOR = 1e-10


def year_frac(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_YEAR


def xnpv(rate: float, cash_flows: Sequence[CashFlow]) -> float:
    """Net present value of ``cash_flows`` discounted to the first flow's date."""

    first_date = cash_flows[0].date
    return sum(
        float(cf.amount) / (1 + rate) ** year_frac(first_date, cf.date) for cf in cash_flows
    )


def xnpv_derivative(rate: float, cash_flows: Sequence[CashFlow]) -> float:
    first_date = cash_flows[0].date
    derivative = 0.0
    for cf in cash_flows:
        years = year_frac(first_date, cf.date)
        if years != 0:
            derivative -= years * float(cf.amount) / (1 + rate) ** (years + 1)
    return derivative


def _clamp(rate: float) -> float:
    return min(max(rate, MIN_RATE), MAX_RATE)


def _newton(cash_flows: Sequence[CashFlow], guess: float) -> float | None:
    rate = _clamp(guess)
    for _ in range(MAX_ITERATIONS):
        npv = xnpv(rate, cash_flows)
        derivative = xnpv_derivative(rate, cash_flows)
        if abs(derivative) < DERIVATIVE_FLOOR:
            logger.debug("XIRR derivative vanished at rate %s", rate)
            return None
        candidate = rate - npv / derivative
        next_rate = _clamp(candidate)
        if abs(next_rate - rate) < TOLERANCE:
            if next_rate != candidate:
                logger.debug("XIRR Newton step pinned at bound %s", next_rate)
                return None
            return next_rate
        rate = next_rate
    logger.debug("XIRR Newton did not converge in %s iterations", MAX_ITERATIONS)
    return None


def _bisect(cash_flows: Sequence[CashFlow]) -> float | None:
    low, high = MIN_RATE, MAX_RATE
    npv_low = xnpv(low, cash_flows)
    npv_high = xnpv(high, cash_flows)
    if npv_low == 0:
        return low
    if npv_high == 0:
        return high
    if npv_low * npv_high > 0:
        logger.debug("XIRR bracket [%s, %s] has no sign change", low, high)
        return None

    for _ in range(MAX_ITERATIONS):
        mid = (low + high) / 2
        npv_mid = xnpv(mid, cash_flows)
        if abs(npv_mid) < TOLERANCE:
            return mid
        if npv_low * npv_mid < 0:
            high = mid
        else:
            low, npv_low = mid, npv_mid
        if abs(high - low) < TOLERANCE:
            return mid
    return None


def xirr(cash_flows: Sequence[CashFlow], guess: float = 0.1) -> float | None:
    """Return the annualized rate as a fraction (0.15 == 15%), or ``None``.

    ``None`` means there is no meaningful rate: fewer than two flows, all flows
    of one sign or on one date, or no root found in ``[MIN_RATE, MAX_RATE]``.
    """

    if not cash_flows or len(cash_flows) < 2:
        return None
    has_negative = any(cf.amount < 0 for cf in cash_flows)
    has_positive = any(cf.amount > 0 for cf in cash_flows)
    if not (has_negative and has_positive):
        logger.debug("XIRR needs both an outflow and an inflow")
        return None

    ordered = sorted(cash_flows, key=lambda cf: cf.date)
    if ordered[0].date == ordered[-1].date:
        logger.debug("XIRR needs flows spread over time")
        return None
    rate = _newton(ordered, guess)
    if rate is not None:
        return rate
    return _bisect(ordered)


__all__ = [
    "DAYS_PER_YEAR",
    "MIN_RATE",
    "MAX_RATE",
    "year_frac",
    "xnpv",
    "xnpv_derivative",
    "xirr",
]
