"""
zenith - Competitive gene set testing for linear (mixed) model fits

Tests whether genes in a set have more extreme differential expression
statistics than genes outside it, correcting for inter-gene correlation
within the set. Works with per-gene results from ordinary least squares
or linear mixed model fits.
"""

__version__ = "0.1.0"

from zenith.core.fit import LinearModelFit, MixedModelFit, ModelFamily
from zenith.core.gene_sets import ids_to_indices
from zenith.config import ZenithConfig
from zenith.exceptions import PreconditionViolation, ZenithError
from zenith.stats.core import zenith
from zenith.stats.gsa import zenith_gsa

__all__ = [
    "LinearModelFit",
    "MixedModelFit",
    "ModelFamily",
    "ids_to_indices",
    "ZenithConfig",
    "PreconditionViolation",
    "ZenithError",
    "zenith",
    "zenith_gsa",
]
