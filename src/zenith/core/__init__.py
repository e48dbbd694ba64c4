"""Fit results and gene set resolution."""

from .fit import (
    CoefficientStatistics,
    LinearModelFit,
    MixedModelFit,
    ModelFamily,
    ModelFit,
    check_coefficient,
    check_fit,
    extract_statistics,
)
from .gene_sets import (
    filter_by_size,
    ids_to_indices,
    normalize_index,
    resolve_gene_set,
)

__all__ = [
    "CoefficientStatistics",
    "LinearModelFit",
    "MixedModelFit",
    "ModelFamily",
    "ModelFit",
    "check_coefficient",
    "check_fit",
    "extract_statistics",
    "filter_by_size",
    "ids_to_indices",
    "normalize_index",
    "resolve_gene_set",
]
