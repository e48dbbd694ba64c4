"""
Per-gene model fit results consumed by the gene set test.

The fit itself is produced elsewhere (an ordinary least squares or linear
mixed model run over every gene). zenith only needs a handful of things
from it:

- per-gene test statistics for each coefficient
  (t-statistics for least squares, standardized z-statistics for mixed models)
- residual degrees of freedom (scalar for least squares, genes x
  coefficients for mixed models) and, for least squares, the total
  degrees of freedom of the moderated t-statistics
- the residual matrix (genes x samples), used only when the inter-gene
  correlation is estimated from data
- unique gene identifiers, one per row

The two model families are represented by two dataclasses sharing a small
base. ``extract_statistics`` is the single place that branches on the
family; everything downstream sees a ``CoefficientStatistics``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Union

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from ..exceptions import PreconditionViolation

logger = logging.getLogger(__name__)


class ModelFamily(Enum):
    """Model family that produced the per-gene statistics."""

    LEAST_SQUARES = "ls"   # lmFit-style fit, moderated t-statistics
    MIXED = "lmer"         # linear mixed model, standardized z-statistics


class _ModelFitBase:
    """Shared accessors for LinearModelFit and MixedModelFit."""

    method: str
    residuals: pd.DataFrame | None

    def _statistic_table(self) -> pd.DataFrame:  # pragma: no cover
        raise NotImplementedError

    @property
    def gene_ids(self) -> pd.Index:
        """Gene identifiers, one per row of the fit."""
        return self._statistic_table().index

    @property
    def coefficients(self) -> list[str]:
        """Names of the fitted coefficients."""
        return [str(c) for c in self._statistic_table().columns]

    @property
    def n_genes(self) -> int:
        return len(self._statistic_table())

    @property
    def family(self) -> ModelFamily:
        """Model family parsed from the ``method`` tag.

        Raises:
            PreconditionViolation: If the tag is neither 'ls' nor 'lmer'.
        """
        try:
            return ModelFamily(self.method)
        except ValueError:
            raise PreconditionViolation(
                f"Model method must be either 'ls' or 'lmer', got '{self.method}'"
            ) from None

    def residuals_for_genes(self) -> pd.DataFrame:
        """Residual matrix restricted to, and ordered by, the fit's genes.

        Residuals are carried alongside the fit but are not subset together
        with it, so they may hold extra rows or a different ordering.

        Raises:
            PreconditionViolation: If residuals are absent or lack some genes.
        """
        if self.residuals is None:
            raise PreconditionViolation(
                "fit must carry residuals (fit the model with residuals retained)"
            )
        missing = self.gene_ids.difference(self.residuals.index)
        if len(missing) > 0:
            raise PreconditionViolation(
                f"residuals are missing {len(missing)} gene(s) present in the fit, "
                f"e.g. {list(missing[:3])}"
            )
        return self.residuals.loc[self.gene_ids]


@dataclass(frozen=True, eq=False)
class LinearModelFit(_ModelFitBase):
    """Least squares fit with (moderated) t-statistics per gene.

    Attributes:
        t: t-statistics, genes x coefficients, indexed by gene identifier.
        df_residual: Residual degrees of freedom. Scalar or per-gene vector;
            the first element is used.
        df_total: Total degrees of freedom of the moderated t-statistics
            (residual + prior df). Scalar or per-gene vector; the first
            element is used.
        residuals: Residual matrix, genes x samples, indexed by gene.
        method: Family tag, 'ls'.
    """

    t: pd.DataFrame
    df_residual: float | NDArray[np.float64]
    df_total: float | NDArray[np.float64]
    residuals: pd.DataFrame | None = None
    method: str = ModelFamily.LEAST_SQUARES.value

    def _statistic_table(self) -> pd.DataFrame:
        return self.t


@dataclass(frozen=True, eq=False)
class MixedModelFit(_ModelFitBase):
    """Linear mixed model fit with standardized z-statistics per gene.

    Attributes:
        z_std: Standardized z-statistics, genes x coefficients.
        df_residual: Per-gene, per-coefficient residual degrees of freedom
            (Satterthwaite or Kenward-Roger), genes x coefficients.
        residuals: Residual matrix, genes x samples, indexed by gene.
        method: Family tag, 'lmer'.
    """

    z_std: pd.DataFrame
    df_residual: pd.DataFrame
    residuals: pd.DataFrame | None = None
    method: str = ModelFamily.MIXED.value

    def _statistic_table(self) -> pd.DataFrame:
        return self.z_std


ModelFit = Union[LinearModelFit, MixedModelFit]


@dataclass(frozen=True, eq=False)
class CoefficientStatistics:
    """Per-gene statistics for one coefficient, ready for set testing.

    Attributes:
        coef: Coefficient name.
        statistics: Per-gene statistic vector (length G), in fit row order.
        df: Working degrees of freedom for the set-level t tests,
            already capped at G - 2.
        family: Model family the statistics came from.
    """

    coef: str
    statistics: NDArray[np.float64]
    df: float
    family: ModelFamily

    @property
    def n_genes(self) -> int:
        return len(self.statistics)


def _first(value: float | Sequence[float] | NDArray[np.float64]) -> float:
    return float(np.ravel(np.asarray(value, dtype=np.float64))[0])


def check_fit(fit: object) -> None:
    """Validate the parts of a fit every analysis depends on.

    Raises:
        PreconditionViolation: If ``fit`` is not a LinearModelFit or
            MixedModelFit, has no residuals, or its gene identifiers are
            missing, null or duplicated, or there are fewer than three genes.
    """
    if not isinstance(fit, (LinearModelFit, MixedModelFit)):
        raise PreconditionViolation(
            f"fit must be a LinearModelFit or MixedModelFit, got {type(fit).__name__}"
        )
    if fit.residuals is None:
        raise PreconditionViolation(
            "fit must carry residuals (fit the model with residuals retained)"
        )
    gene_ids = fit.gene_ids
    if len(gene_ids) == 0 or isinstance(gene_ids, pd.RangeIndex):
        raise PreconditionViolation(
            "fit has no gene identifiers. Each feature must have a unique name"
        )
    if gene_ids.hasnans or not gene_ids.is_unique:
        raise PreconditionViolation(
            "fit gene identifiers must be unique and non-null"
        )
    if len(gene_ids) < 3:
        raise PreconditionViolation(
            f"fit has {len(gene_ids)} genes; a competitive test needs at least 3"
        )


def check_coefficient(fit: ModelFit, coef: str | Sequence[str]) -> str:
    """Return ``coef`` as a single coefficient name present in the fit.

    A one-element sequence is unwrapped.

    Raises:
        PreconditionViolation: If more than one coefficient is given or the
            coefficient is not among ``fit.coefficients``.
    """
    if not isinstance(coef, str):
        coefs = list(coef)
        if len(coefs) != 1:
            raise PreconditionViolation(
                "zenith tests one coefficient at a time; use zenith_gsa for several"
            )
        coef = coefs[0]
    if coef not in fit.coefficients:
        raise PreconditionViolation(
            f"coef '{coef}' not found among fit coefficients {fit.coefficients}"
        )
    return coef


def extract_statistics(
    fit: ModelFit,
    coef: str,
    use_ranks: bool = False,
) -> CoefficientStatistics:
    """
    Pull the per-gene statistic vector and working df for one coefficient.

    Least squares: t-statistics are converted to z-scores with Hill's
    approximation at ``df_total`` unless ``use_ranks`` is set (ranks are
    invariant to the monotone transform). Working df is
    ``min(df_residual, G - 2)``.

    Mixed model: standardized z-statistics are used as-is. Working df is
    ``min(mean(df_residual[coef]), G - 2)``.

    Args:
        fit: Validated model fit.
        coef: Coefficient name, already checked with ``check_coefficient``.
        use_ranks: Whether the rank-based test will be used.

    Returns:
        CoefficientStatistics for ``coef``.

    Raises:
        PreconditionViolation: If the method tag is unknown or does not
            match the fit class.
    """
    from ..stats.zscore import zscore_t

    family = fit.family
    n_genes = fit.n_genes

    if family is ModelFamily.LEAST_SQUARES and isinstance(fit, LinearModelFit):
        stat = fit.t[coef].to_numpy(dtype=np.float64)
        if not use_ranks:
            stat = zscore_t(stat, df=_first(fit.df_total), approx=True, method="hill")
        df = min(_first(fit.df_residual), n_genes - 2)
    elif family is ModelFamily.MIXED and isinstance(fit, MixedModelFit):
        stat = fit.z_std[coef].to_numpy(dtype=np.float64)
        df = min(float(np.mean(fit.df_residual[coef].to_numpy(dtype=np.float64))), n_genes - 2)
    else:
        raise PreconditionViolation(
            f"method '{fit.method}' does not match {type(fit).__name__}"
        )

    logger.debug(
        "Extracted %d statistics for coef %s (%s), working df=%.2f",
        n_genes, coef, family.value, df,
    )
    return CoefficientStatistics(coef=coef, statistics=stat, df=float(df), family=family)


__all__ = [
    "ModelFamily",
    "LinearModelFit",
    "MixedModelFit",
    "ModelFit",
    "CoefficientStatistics",
    "check_fit",
    "check_coefficient",
    "extract_statistics",
]
