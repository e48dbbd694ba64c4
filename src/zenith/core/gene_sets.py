"""
Gene set normalization and resolution against fit rows.

A gene set may be given as

- integer row positions (0-based) into the fit,
- a boolean mask with one entry per fit row, or
- gene identifier strings, matched against ``fit.gene_ids``.

Identifiers absent from the fit are dropped silently (logged at DEBUG);
this can shrink a set, possibly below the minimum size used by
``zenith_gsa``.

``ids_to_indices``, used by ``zenith_gsa``, reads every member as an
identifier, including integers, so integer gene identifiers are matched by
value rather than taken as positions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from ..exceptions import PreconditionViolation

logger = logging.getLogger(__name__)

GeneSetIndex = dict[str, NDArray[np.intp]]


def _is_listlike(obj: Any) -> bool:
    return isinstance(obj, Iterable) and not isinstance(obj, (str, bytes))


def normalize_index(index: Any) -> dict[str, Any]:
    """
    Normalize the gene set argument to a name -> members mapping.

    - A mapping is copied as-is.
    - A list/tuple whose elements are themselves collections is treated as
      several unnamed sets, named ``set1``, ``set2``, ...
    - Anything else (a single array, Index, list of ids, a single id) is
      one set named ``set1``.

    Raises:
        PreconditionViolation: If no gene sets are given.
    """
    if isinstance(index, Mapping):
        sets = {str(name): members for name, members in index.items()}
    elif isinstance(index, (list, tuple)) and len(index) > 0 and all(
        _is_listlike(s) for s in index
    ):
        sets = {f"set{i + 1}": members for i, members in enumerate(index)}
    elif isinstance(index, (list, tuple)) and len(index) == 0:
        sets = {}
    elif _is_listlike(index):
        sets = {"set1": index}
    else:
        sets = {"set1": [index]}

    if len(sets) == 0:
        raise PreconditionViolation("index is empty: at least one gene set is required")
    return sets


def match_identifiers(members: Any, gene_ids: pd.Index) -> NDArray[np.intp]:
    """
    Row positions of the fit genes whose identifiers appear in ``members``.

    Members are always read as identifiers, never as positions, so integer
    identifiers (e.g. Entrez IDs) match by value. Unmatched members are
    dropped (logged at DEBUG). Positions are returned in fit order.
    """
    if isinstance(members, (str, bytes)):
        members = [members]
    wanted = pd.Index(list(members)).unique()
    positions = np.flatnonzero(gene_ids.isin(wanted)).astype(np.intp)
    n_missing = len(wanted) - len(positions)
    if n_missing > 0:
        logger.debug("%d of %d gene identifiers not found in fit", n_missing, len(wanted))
    return positions


def resolve_gene_set(members: Any, gene_ids: pd.Index) -> NDArray[np.intp]:
    """
    Resolve one gene set to row positions in fit order.

    Args:
        members: Row positions, a boolean mask over all rows, or gene
            identifier strings.
        gene_ids: Fit gene identifiers.

    Returns:
        Row positions. Identifier strings resolve to the matching rows in
        fit order; positions are returned in the order given.

    Raises:
        PreconditionViolation: If a boolean mask has the wrong length or
            a position lies outside the fit.
    """
    if isinstance(members, (str, bytes)):
        members = [members]
    values = np.asarray(list(members) if not isinstance(members, np.ndarray) else members)
    n_genes = len(gene_ids)

    if values.size == 0:
        return np.array([], dtype=np.intp)

    if values.dtype == bool:
        if values.size != n_genes:
            raise PreconditionViolation(
                f"boolean gene set mask has length {values.size}, fit has {n_genes} genes"
            )
        return np.flatnonzero(values).astype(np.intp)

    if values.dtype.kind in "OUS":
        return match_identifiers(values.astype(str), gene_ids)

    positions = values.astype(np.intp)
    if positions.min() < 0 or positions.max() >= n_genes:
        raise PreconditionViolation(
            f"gene set positions must lie in [0, {n_genes}), got "
            f"[{positions.min()}, {positions.max()}]"
        )
    return positions


def ids_to_indices(
    gene_sets: Mapping[str, Iterable[str]],
    gene_ids: Iterable[str],
    remove_empty: bool = True,
) -> GeneSetIndex:
    """
    Map each gene set's identifiers to row positions of the fit.

    Args:
        gene_sets: Mapping of set name to member identifiers.
        gene_ids: Fit gene identifiers.
        remove_empty: Drop sets with no matching genes.

    Returns:
        Dict of set name -> row positions (fit order).
    """
    gene_ids = pd.Index(gene_ids)
    index: GeneSetIndex = {}
    for name, members in gene_sets.items():
        positions = match_identifiers(members, gene_ids)
        if remove_empty and positions.size == 0:
            continue
        index[str(name)] = positions

    n_removed = len(gene_sets) - len(index)
    if n_removed > 0:
        logger.debug("%d gene set(s) had no genes in the fit", n_removed)
    return index


def filter_by_size(index: Mapping[str, NDArray[np.intp]], n_genes_min: int) -> GeneSetIndex:
    """Keep gene sets with at least ``n_genes_min`` resolved genes."""
    kept = {name: pos for name, pos in index.items() if len(pos) >= n_genes_min}
    n_dropped = len(index) - len(kept)
    if n_dropped > 0:
        logger.info(
            "Dropped %d of %d gene sets with fewer than %d genes",
            n_dropped, len(index), n_genes_min,
        )
    return kept


__all__ = [
    "GeneSetIndex",
    "normalize_index",
    "match_identifiers",
    "resolve_gene_set",
    "ids_to_indices",
    "filter_by_size",
]
