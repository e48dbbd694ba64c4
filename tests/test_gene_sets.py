"""Tests for gene set normalization, resolution and size filtering."""

import logging

import numpy as np
import pandas as pd
import pytest

from conftest import gene_names
from zenith.core.gene_sets import (
    filter_by_size,
    ids_to_indices,
    normalize_index,
    resolve_gene_set,
)
from zenith.exceptions import PreconditionViolation


@pytest.fixture
def genes():
    return gene_names(50)


class TestNormalizeIndex:

    def test_mapping_kept(self):
        sets = normalize_index({"a": [1, 2], "b": [3]})
        assert list(sets) == ["a", "b"]

    def test_single_set_named_set1(self):
        sets = normalize_index(np.arange(5))
        assert list(sets) == ["set1"]
        np.testing.assert_array_equal(sets["set1"], np.arange(5))

    def test_flat_list_is_one_set(self):
        sets = normalize_index([0, 1, 2])
        assert list(sets) == ["set1"]

    def test_list_of_sets_named_in_order(self):
        sets = normalize_index([[0, 1], np.array([2, 3]), ["GENE_00004"]])
        assert list(sets) == ["set1", "set2", "set3"]

    def test_scalar_is_one_gene_set(self):
        assert normalize_index("GENE_00001") == {"set1": ["GENE_00001"]}

    def test_empty_index_rejected(self):
        with pytest.raises(PreconditionViolation, match="empty"):
            normalize_index([])
        with pytest.raises(PreconditionViolation, match="empty"):
            normalize_index({})


class TestResolveGeneSet:

    def test_positions_returned_as_given(self, genes):
        np.testing.assert_array_equal(resolve_gene_set([4, 0, 9], genes), [4, 0, 9])

    def test_out_of_range_position(self, genes):
        with pytest.raises(PreconditionViolation, match=r"\[0, 50\)"):
            resolve_gene_set([0, 50], genes)
        with pytest.raises(PreconditionViolation):
            resolve_gene_set([-1], genes)

    def test_boolean_mask(self, genes):
        mask = np.zeros(50, dtype=bool)
        mask[[3, 7, 11]] = True
        np.testing.assert_array_equal(resolve_gene_set(mask, genes), [3, 7, 11])

    def test_boolean_mask_wrong_length(self, genes):
        with pytest.raises(PreconditionViolation, match="length 10"):
            resolve_gene_set(np.ones(10, dtype=bool), genes)

    def test_identifiers_in_fit_order(self, genes):
        pos = resolve_gene_set(["GENE_00020", "GENE_00002", "NOT_A_GENE"], genes)
        np.testing.assert_array_equal(pos, [2, 20])

    def test_duplicate_identifiers_counted_once(self, genes):
        pos = resolve_gene_set(["GENE_00002", "GENE_00002"], genes)
        np.testing.assert_array_equal(pos, [2])

    def test_single_identifier_string(self):
        gene_ids = pd.Index(["GENE_1", "G", "E"])
        np.testing.assert_array_equal(resolve_gene_set("GENE_1", gene_ids), [0])

    def test_empty_set(self, genes):
        assert resolve_gene_set([], genes).size == 0


class TestIdsToIndices:

    def test_maps_and_drops_unmatched(self, genes):
        gene_sets = {
            "A": ["GENE_00001", "GENE_00003", "MISSING"],
            "B": ["MISSING_1", "MISSING_2"],
        }
        index = ids_to_indices(gene_sets, genes)
        assert list(index) == ["A"]
        np.testing.assert_array_equal(index["A"], [1, 3])

    def test_keep_empty(self, genes):
        index = ids_to_indices({"B": ["MISSING"]}, genes, remove_empty=False)
        assert index["B"].size == 0

    def test_integer_identifiers_match_by_value(self):
        gene_ids = pd.Index(np.arange(1000, 1100))
        index = ids_to_indices({"s": [1000, 1001, 1002, 99999]}, gene_ids)
        np.testing.assert_array_equal(index["s"], [0, 1, 2])

    def test_small_integer_identifiers_are_not_positions(self):
        # row 0 holds identifier 100, row 99 holds identifier 1
        gene_ids = pd.Index(np.arange(100, 0, -1))
        index = ids_to_indices({"s": [1, 2, 3]}, gene_ids)
        np.testing.assert_array_equal(index["s"], [97, 98, 99])

    def test_single_identifier_string(self):
        gene_ids = pd.Index(["GENE_1", "G", "E"])
        index = ids_to_indices({"s": "GENE_1"}, gene_ids)
        np.testing.assert_array_equal(index["s"], [0])

    def test_accepts_plain_list_of_ids(self):
        index = ids_to_indices({"A": ("x", "z")}, ["x", "y", "z"])
        np.testing.assert_array_equal(index["A"], [0, 2])


class TestFilterBySize:

    def test_threshold_inclusive(self, caplog):
        index = {
            "small": np.arange(9),
            "exact": np.arange(10),
            "large": np.arange(30),
        }
        with caplog.at_level(logging.INFO, logger="zenith.core.gene_sets"):
            kept = filter_by_size(index, 10)
        assert list(kept) == ["exact", "large"]
        assert "Dropped 1 of 3" in caplog.text

    def test_nothing_dropped(self):
        index = {"a": np.arange(3)}
        assert list(filter_by_size(index, 1)) == ["a"]
