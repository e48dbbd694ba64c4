"""
Exception types raised by zenith.

Only precondition failures are raised. Identifiers that cannot be matched
against the fit are dropped quietly, and degenerate gene-set sizes are
reported with ``warnings.warn`` and NaN statistics.
"""

from __future__ import annotations


class ZenithError(Exception):
    """Base class for all zenith errors."""


class PreconditionViolation(ZenithError, ValueError):
    """Input violates a precondition of the gene set test.

    Raised for a fit of the wrong type, missing residuals, an unknown or
    repeated coefficient, missing or duplicated gene identifiers, an empty
    gene-set collection, an unrecognized model family, or when no gene
    set survives size filtering. The whole analysis is aborted; no
    partial result is returned.
    """


__all__ = ["ZenithError", "PreconditionViolation"]
