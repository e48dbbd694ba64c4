"""
Inter-gene correlation within a gene set and the Camera variance
inflation factor.

Genes in the same set tend to be co-regulated, so their statistics are
not independent. If rho_bar is the mean pairwise correlation among the m
genes of a set, the variance of the set mean is inflated by

    VIF = 1 + (m - 1) * rho_bar

relative to m independent genes (Wu & Smyth, NAR 2012).

The correlation is either supplied by the caller (the default, a small
fixed value such as 0.01) or estimated from the model residuals. The
estimate uses the residual matrix rather than the statistics themselves,
so the set's own signal does not feed back into its standard error.

References:
    Wu & Smyth (2012) "Camera: a competitive gene set test accounting for
    inter-gene correlation", NAR 40(17):e133.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass(frozen=True)
class SetCorrelation:
    """Correlation summary for one gene set.

    Attributes:
        correlation: Mean pairwise inter-gene correlation (rho_bar).
        vif: Variance inflation factor, 1 + (m - 1) * rho_bar.
    """

    correlation: float
    vif: float


def variance_inflation_factor(correlation: float, n_genes: int) -> float:
    """Camera VIF for a set of ``n_genes`` genes with mean correlation ``correlation``."""
    return 1.0 + correlation * (n_genes - 1)


def is_fixed_correlation(inter_gene_cor: float | None) -> bool:
    """True when ``inter_gene_cor`` is a value to use rather than a request to estimate."""
    return inter_gene_cor is not None and not np.isnan(inter_gene_cor)


def estimate_set_correlation(
    residuals: NDArray[np.float64],
    index: ArrayLike,
    square_corr: bool = False,
) -> SetCorrelation:
    """
    Estimate the mean pairwise correlation among a subset of genes.

    Each residual row is centered and scaled to unit length, so the
    correlation matrix is C = Z Z'. Then sum(C) = ||sum_g Z_g||^2, which
    gives VIF = sum(C) / m without forming the m x m matrix. With
    ``square_corr`` the mean squared off-diagonal correlation is used
    instead, which needs the full matrix.

    Args:
        residuals: Residual matrix (n_genes, n_samples), rows in fit order.
        index: Row positions of the set.
        square_corr: Average squared correlations (sign-agnostic).

    Returns:
        SetCorrelation. Sets with fewer than two genes have no pairs and
        return correlation 0.0, VIF 1.0.
    """
    rows = np.asarray(residuals, dtype=np.float64)[np.asarray(index, dtype=np.intp)]
    m = rows.shape[0]
    if m < 2:
        return SetCorrelation(correlation=0.0, vif=1.0)

    centered = rows - rows.mean(axis=1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        z = centered / np.linalg.norm(centered, axis=1, keepdims=True)

    if square_corr:
        corr = z @ z.T
        correlation = float(((corr ** 2).sum() - m) / (m * (m - 1)))
        vif = variance_inflation_factor(correlation, m)
    else:
        vif = float(np.sum(z.sum(axis=0) ** 2) / m)
        correlation = (vif - 1.0) / (m - 1)

    if not np.isfinite(correlation):
        warnings.warn(
            "Inter-gene correlation is undefined for a gene set containing "
            "residual rows with zero variance",
            RuntimeWarning,
            stacklevel=2,
        )
    return SetCorrelation(correlation=correlation, vif=vif)


def correlation_in_gene_set(
    index: ArrayLike,
    inter_gene_cor: float | None = 0.01,
    residuals: NDArray[np.float64] | None = None,
    square_corr: bool = False,
) -> SetCorrelation:
    """
    Correlation and VIF for one gene set.

    When ``inter_gene_cor`` is a number it is used directly and the
    residuals are never touched. When it is None (or NaN) the correlation
    is estimated from ``residuals``.

    Args:
        index: Row positions of the set.
        inter_gene_cor: Fixed correlation, or None to estimate.
        residuals: Residual matrix (n_genes, n_samples); required only when
            estimating.
        square_corr: Passed to ``estimate_set_correlation``.

    Returns:
        SetCorrelation for the set.

    Raises:
        ValueError: If estimation is requested without residuals.
    """
    if is_fixed_correlation(inter_gene_cor):
        m = len(np.atleast_1d(np.asarray(index)))
        correlation = float(inter_gene_cor)
        return SetCorrelation(
            correlation=correlation,
            vif=variance_inflation_factor(correlation, m),
        )

    if residuals is None:
        raise ValueError("residuals are required to estimate inter-gene correlation")
    return estimate_set_correlation(residuals, index, square_corr=square_corr)


__all__ = [
    "SetCorrelation",
    "variance_inflation_factor",
    "is_fixed_correlation",
    "estimate_set_correlation",
    "correlation_in_gene_set",
]
