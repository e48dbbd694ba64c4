"""
Multiple testing correction across gene sets.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from statsmodels.stats.multitest import multipletests

_METHOD_MAP = {"BH": "fdr_bh", "BY": "fdr_by", "bonferroni": "bonferroni"}


def fdr_correction(
    pvalues: ArrayLike,
    method: Literal["BH", "BY", "bonferroni"] = "BH",
    alpha: float = 0.05,
) -> NDArray[np.float64]:
    """
    Apply multiple testing correction.

    NaN p-values are left out of the correction (they do not count
    towards the number of tests) and stay NaN in the output.

    Args:
        pvalues: Array of raw p-values.
        method: Correction method:
            - "BH": Benjamini-Hochberg (controls FDR)
            - "BY": Benjamini-Yekutieli (controls FDR under dependence)
            - "bonferroni": Bonferroni (controls FWER)
        alpha: Significance threshold passed to statsmodels; does not
            affect the adjusted values.

    Returns:
        Array of adjusted p-values, same order as the input.

    Raises:
        ValueError: If ``method`` is not one of the supported names.
    """
    if method not in _METHOD_MAP:
        raise ValueError(f"Unknown correction method '{method}'. Use one of {list(_METHOD_MAP)}")

    pvalues = np.asarray(pvalues, dtype=np.float64)
    valid_mask = ~np.isnan(pvalues)
    adj_pvals = np.full_like(pvalues, np.nan)

    if not np.any(valid_mask):
        return adj_pvals

    _, adj_pvals[valid_mask], _, _ = multipletests(
        pvalues[valid_mask],
        alpha=alpha,
        method=_METHOD_MAP[method],
    )
    return adj_pvals


__all__ = ["fdr_correction"]
