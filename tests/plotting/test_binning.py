"""Unit tests for histogram binning (explicit width and automatic bin count)."""

import numpy as np
import pytest

from ionviz.plotting.algorithms.binning import histogram_counts, histogram_edges


def test_bin_width_edges_are_multiples_spanning_range():
    values = np.array([0.053, 0.1, 0.2199, 0.31, 0.587])
    edges = histogram_edges(values, bin_width=0.01)
    assert edges[0] <= values.min()
    assert edges[-1] >= values.max()
    k = edges / 0.01
    np.testing.assert_allclose(k, np.round(k), atol=1e-6)
    np.testing.assert_allclose(np.diff(edges), 0.01, atol=1e-9)


def test_bin_width_value_on_edge_is_covered():
    edges = histogram_edges([0.1, 0.3], bin_width=0.1)
    assert edges[0] <= 0.1
    assert edges[-1] >= 0.3
    assert len(edges) == 3


def test_bin_width_single_value_gets_one_bin():
    edges = histogram_edges([0.5, 0.5], bin_width=0.25)
    assert len(edges) >= 2
    assert edges[0] <= 0.5 <= edges[-1]


def test_automatic_bins_default_thirty():
    values = np.linspace(0.0, 1.0, 50)
    edges = histogram_edges(values)
    assert len(edges) == 31
    assert edges[0] == 0.0
    assert edges[-1] == 1.0


def test_non_finite_values_are_ignored():
    edges = histogram_edges([np.nan, 1.0, np.inf, 2.0], bins=4)
    assert edges[0] == 1.0
    assert edges[-1] == 2.0


def test_no_values_gives_empty_edges_and_counts():
    edges = histogram_edges([np.nan])
    assert edges.size == 0
    counts, edges = histogram_counts([], bins=5)
    assert counts.size == 0


def test_invalid_parameters_raise():
    with pytest.raises(ValueError):
        histogram_edges([1.0, 2.0], bin_width=0)
    with pytest.raises(ValueError):
        histogram_edges([1.0, 2.0], bins=0)


def test_counts_sum_to_number_of_finite_values():
    rng = np.random.default_rng(0)
    values = np.concatenate([rng.uniform(0.05, 0.6, 40), [np.nan, np.nan]])
    counts, edges = histogram_counts(values, bin_width=0.01)
    assert counts.sum() == 40
    assert len(counts) == len(edges) - 1


def test_counts_with_shared_edges():
    edges = np.array([0.0, 1.0, 2.0])
    counts, out_edges = histogram_counts([0.5, 1.5, 2.0], edges=edges)
    assert list(counts) == [1, 2]
    assert out_edges is edges
