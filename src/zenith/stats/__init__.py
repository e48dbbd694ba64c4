"""
Statistical testing module for competitive gene set analysis.

Exports core functions for:
- Inter-gene correlation and variance inflation (Camera VIF)
- Correlation-adjusted rank sum testing
- t-to-z conversion
- Multiple testing correction (FDR)
- Single-coefficient and multi-coefficient gene set tests
"""

from .correlation import (
    SetCorrelation,
    correlation_in_gene_set,
    estimate_set_correlation,
    variance_inflation_factor,
)
from .ranksum import RankSumResult, rank_sum_test_with_correlation
from .zscore import zscore_t
from .multitest import fdr_correction
from .core import RESULT_COLUMNS, zenith
from .gsa import zenith_gsa

__all__ = [
    "SetCorrelation",
    "correlation_in_gene_set",
    "estimate_set_correlation",
    "variance_inflation_factor",
    "RankSumResult",
    "rank_sum_test_with_correlation",
    "zscore_t",
    "fdr_correction",
    "RESULT_COLUMNS",
    "zenith",
    "zenith_gsa",
]
