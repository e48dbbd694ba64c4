"""
Gene set analysis over a gene set database and several coefficients.

Maps gene set member identifiers onto the fit, drops sets that are too
small, runs ``zenith`` once per coefficient and stacks the results with
a ``coef`` label. Each coefficient has its own FDR scope.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

import pandas as pd

from ..core.fit import ModelFit, check_coefficient, check_fit
from ..core.gene_sets import filter_by_size, ids_to_indices
from ..exceptions import PreconditionViolation
from ..progress import ProgressCallback
from .core import RESULT_COLUMNS, zenith

logger = logging.getLogger(__name__)


def zenith_gsa(
    fit: ModelFit,
    gene_sets: Mapping[str, Iterable[str]],
    coefs: str | Iterable[str],
    use_ranks: bool = False,
    n_genes_min: int = 10,
    inter_gene_cor: float | None = 0.01,
    progressbar: bool | ProgressCallback = True,
    allow_neg_cor: bool = False,
    square_corr: bool = False,
    n_jobs: int = 1,
) -> pd.DataFrame:
    """
    Run the zenith gene set test for each coefficient.

    Args:
        fit: LinearModelFit or MixedModelFit with residuals.
        gene_sets: Mapping of gene set name to member gene identifiers.
            Identifiers not in the fit are ignored.
        coefs: One coefficient name or several.
        use_ranks: Rank-based test instead of parametric.
        n_genes_min: Minimum number of fit genes a set must contain.
        inter_gene_cor: Fixed inter-gene correlation, or None to estimate.
        progressbar: True for a tqdm progress bar, False for silence, or a
            ProgressCallback.
        allow_neg_cor: Allow negative correlation to reduce the variance.
        square_corr: When estimating, average squared correlations.
        n_jobs: joblib workers for the per-set loop.

    Returns:
        DataFrame with columns coef, Geneset, NGenes, Correlation, delta,
        se, p.less, p.greater, PValue, Direction, FDR. Rows are grouped by
        coefficient in the order given, each group sorted by PValue.

    Raises:
        PreconditionViolation: If the fit is invalid, no coefficients are
            given, a coefficient is unknown, or no gene set has at least ``n_genes_min`` genes.

    Example:
        >>> res = zenith_gsa(fit, {"HALLMARK_APOPTOSIS": [...], ...}, ["Age", "Sex"])
        >>> res.groupby("coef").head(3)
    """
    check_fit(fit)

    coef_list = [coefs] if isinstance(coefs, str) else list(coefs)
    if len(coef_list) == 0:
        raise PreconditionViolation("at least one coefficient is required")
    coef_list = [check_coefficient(fit, coef) for coef in coef_list]

    index = ids_to_indices(gene_sets, fit.gene_ids)
    index = filter_by_size(index, n_genes_min)
    if len(index) == 0:
        raise PreconditionViolation(
            f"No gene sets have at least {n_genes_min} genes present in the fit"
        )

    logger.info(
        "Running zenith on %d gene set(s) x %d coefficient(s)",
        len(index), len(coef_list),
    )

    frames = []
    for coef in coef_list:
        res = zenith(
            fit,
            coef,
            index,
            use_ranks=use_ranks,
            allow_neg_cor=allow_neg_cor,
            progressbar=progressbar,
            inter_gene_cor=inter_gene_cor,
            square_corr=square_corr,
            n_jobs=n_jobs,
        )
        res = res.rename_axis("Geneset").reset_index()
        res.insert(0, "coef", coef)
        frames.append(res)

    return pd.concat(frames, ignore_index=True)[["coef", "Geneset"] + RESULT_COLUMNS]


__all__ = ["zenith_gsa"]
