"""
Approximate distribution functions used by the alpha significance test.

The erf polynomial (Abramowitz and Stegun 7.1.26), the Stirling log-gamma
and the Student-t CDF below are deliberately low precision. Test outcomes
are pinned against these exact approximations, so they must not be swapped
for library implementations. ``exact_critical_value`` is the one optional
scipy-backed path and is only used when configured.
"""

import logging
import math
from enum import Enum
from typing import Dict, Tuple

from scipy import stats

logger = logging.getLogger(__name__)


class Alternative(Enum):
    """Alternative hypothesis for a one-sample test."""
    GREATER = "greater"
    LESS = "less"
    TWO_SIDED = "two-sided"


ERF_A1 = 0.254829592
ERF_A2 = -0.284496736
ERF_A3 = 1.421413741
ERF_A4 = -1.453152027
ERF_A5 = 1.061405429
ERF_P = 0.3275911

# Degrees of freedom above which the normal approximation is used
LARGE_SAMPLE_DF = 30

DEFAULT_CRITICAL_VALUE = 1.96

# (alternative, significance level, df > 30) -> critical value
CRITICAL_VALUES: Dict[Tuple[Alternative, float, bool], float] = {
    (Alternative.GREATER, 0.01, True): 2.33,
    (Alternative.GREATER, 0.01, False): 2.75,
    (Alternative.GREATER, 0.05, True): 1.645,
    (Alternative.GREATER, 0.05, False): 1.96,
    (Alternative.GREATER, 0.10, True): 1.28,
    (Alternative.GREATER, 0.10, False): 1.645,
    (Alternative.TWO_SIDED, 0.01, True): 2.58,
    (Alternative.TWO_SIDED, 0.01, False): 2.96,
    (Alternative.TWO_SIDED, 0.05, True): 1.96,
    (Alternative.TWO_SIDED, 0.05, False): 2.26,
    (Alternative.TWO_SIDED, 0.10, True): 1.645,
    (Alternative.TWO_SIDED, 0.10, False): 1.86,
}


def erf_approx(x: float) -> float:
    """Error function, Abramowitz and Stegun polynomial approximation."""
    sign = 1 if x >= 0 else -1
    x = abs(x)

    t = 1.0 / (1.0 + ERF_P * x)
    y = 1.0 - (((((ERF_A5 * t + ERF_A4) * t) + ERF_A3) * t + ERF_A2) * t + ERF_A1) * t * math.exp(-x * x)

    return sign * y


def normal_cdf(z: float) -> float:
    """Standard normal CDF via ``erf_approx``."""
    return 0.5 * (1 + erf_approx(z / math.sqrt(2)))


def log_gamma_stirling(z: float) -> float:
    """Stirling approximation of ln(Gamma(z)) with one correction term."""
    return (z - 0.5) * math.log(z) - z + 0.5 * math.log(2 * math.pi) + 1 / (12 * z)


def beta_function(a: float, b: float) -> float:
    return math.exp(log_gamma_stirling(a) + log_gamma_stirling(b) - log_gamma_stirling(a + b))


def t_cdf_approx(t: float, df: float) -> float:
    """Approximate Student-t CDF.

    Saturates at 0.5 for large ``|t|`` because the density term decays to
    zero; callers depend on that behaviour.
    """
    if df <= 0:
        raise ValueError("Degrees of freedom must be positive")

    x = t / math.sqrt(df)
    beta = beta_function(0.5, df / 2)
    density = (1 + t * t / df) ** (-(df + 1) / 2)

    if t >= 0:
        return 0.5 + (x * math.sqrt(df)) / (2 * beta) * density
    return 0.5 - (abs(x) * math.sqrt(df)) / (2 * beta) * density


def p_value(t_statistic: float, df: float,
            alternative: Alternative = Alternative.GREATER) -> float:
    """P-value of a t statistic.

    Uses the normal approximation when ``df > 30`` and the approximate
    t-CDF otherwise.
    """
    if df > LARGE_SAMPLE_DF:
        upper_tail = 1 - normal_cdf(t_statistic)
        if alternative == Alternative.GREATER:
            return upper_tail
        if alternative == Alternative.LESS:
            return 1 - upper_tail
        return 2 * min(upper_tail, 1 - upper_tail)

    probability = t_cdf_approx(t_statistic, df)
    if alternative == Alternative.GREATER:
        return 1 - probability
    if alternative == Alternative.LESS:
        return probability
    return 2 * min(probability, 1 - probability)


def critical_value(df: float, significance_level: float,
                   alternative: Alternative = Alternative.GREATER) -> float:
    """Critical value from the fixed lookup table (1.96 when not tabulated)."""
    key = (alternative, round(significance_level, 10), df > LARGE_SAMPLE_DF)
    return CRITICAL_VALUES.get(key, DEFAULT_CRITICAL_VALUE)


def exact_critical_value(df: float, significance_level: float,
                         alternative: Alternative = Alternative.GREATER) -> float:
    """Critical value from the Student-t inverse CDF."""
    if alternative == Alternative.TWO_SIDED:
        return float(stats.t.ppf(1 - significance_level / 2, df))
    return float(stats.t.ppf(1 - significance_level, df))
