"""
Pytest configuration and shared fixtures for zenith tests.

Fits are built directly from simulated statistics and residuals rather
than by running a model, so each test controls exactly which genes carry
signal.
"""

import numpy as np
import pandas as pd
import pytest

from zenith.core.fit import LinearModelFit, MixedModelFit


def gene_names(n_genes: int) -> pd.Index:
    return pd.Index([f"GENE_{i:05d}" for i in range(n_genes)])


def generate_linear_fit(
    n_genes: int = 1000,
    n_samples: int = 20,
    n_up: int = 20,
    shift: float = 3.0,
    df_residual: float = 18.0,
    df_total: float = 50.0,
    coefficients: tuple = ("Age", "Group"),
    seed: int = 42,
) -> LinearModelFit:
    """
    Least squares fit with t-statistics drawn from N(0, 1).

    The first ``n_up`` genes have their 'Group' statistic shifted by
    ``shift``. Residuals are independent N(0, 1) noise.
    """
    rng = np.random.default_rng(seed)
    genes = gene_names(n_genes)
    t = pd.DataFrame(
        rng.normal(0, 1, size=(n_genes, len(coefficients))),
        index=genes,
        columns=list(coefficients),
    )
    if "Group" in t.columns:
        t.iloc[:n_up, t.columns.get_loc("Group")] += shift

    residuals = pd.DataFrame(
        rng.normal(0, 1, size=(n_genes, n_samples)),
        index=genes,
        columns=[f"S{j:02d}" for j in range(n_samples)],
    )
    return LinearModelFit(
        t=t,
        df_residual=df_residual,
        df_total=np.full(n_genes, df_total),
        residuals=residuals,
    )


def generate_mixed_fit(
    n_genes: int = 500,
    n_samples: int = 24,
    n_up: int = 15,
    shift: float = 2.5,
    df_residual: float = 1e6,
    seed: int = 7,
) -> MixedModelFit:
    """Mixed model fit with z-statistics and constant per-gene df."""
    rng = np.random.default_rng(seed)
    genes = gene_names(n_genes)
    coefficients = ["Disease", "Sex"]
    z_std = pd.DataFrame(
        rng.normal(0, 1, size=(n_genes, 2)), index=genes, columns=coefficients,
    )
    z_std.iloc[:n_up, 0] += shift
    df_res = pd.DataFrame(
        np.full((n_genes, 2), df_residual), index=genes, columns=coefficients,
    )
    residuals = pd.DataFrame(rng.normal(0, 1, size=(n_genes, n_samples)), index=genes)
    return MixedModelFit(z_std=z_std, df_residual=df_res, residuals=residuals)


@pytest.fixture
def linear_fit():
    """1000-gene least squares fit; GENE_00000..GENE_00019 are up for 'Group'."""
    return generate_linear_fit()


@pytest.fixture
def mixed_fit():
    """500-gene mixed model fit; first 15 genes are up for 'Disease'."""
    return generate_mixed_fit()


@pytest.fixture
def correlated_fit():
    """
    Least squares fit whose residuals carry a shared factor in genes 0-29,
    so the estimated inter-gene correlation of that block is high.
    """
    rng = np.random.default_rng(123)
    fit = generate_linear_fit(n_genes=300, n_samples=30, seed=123)
    residuals = fit.residuals.to_numpy().copy()
    factor = rng.normal(0, 1, size=residuals.shape[1])
    residuals[:30] = 0.5 * residuals[:30] + factor
    return LinearModelFit(
        t=fit.t,
        df_residual=fit.df_residual,
        df_total=fit.df_total,
        residuals=pd.DataFrame(residuals, index=fit.residuals.index),
    )


class RecordingProgress:
    """ProgressCallback that records every update."""

    def __init__(self):
        self.calls = []

    def advance(self, units_done, units_total):
        self.calls.append((float(units_done), float(units_total)))
