"""
Benchmark generation and alpha significance testing.
"""

from .benchmarks import BenchmarkGenerator, BenchmarkStrategy, PeriodType
from .distributions import Alternative, critical_value, normal_cdf, p_value, t_cdf_approx
from .statistical_tests import (
    AlphaTestingEngine,
    AlphaTestResult,
    ComprehensiveAlphaTest,
    EvidenceLevel,
    HypothesisDecision,
    MetaAnalysis,
)
