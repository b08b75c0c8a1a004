"""Tests for polynomial feature mapping and normalization."""

from __future__ import annotations

import numpy as np
import pytest
from sklearn.preprocessing import PolynomialFeatures, StandardScaler

from regression.config import FeatureConfig, PipelineOrder
from regression.errors import DimensionMismatch, EmptyInput, InvalidDegree, NotFittedError
from regression.preprocessing import FeatureTransformer, compute_stats, exponents, map_features


class TestExponents:
    def test_two_features_degree_two(self):
        expected = [[1, 0], [0, 1], [2, 0], [1, 1], [0, 2]]
        np.testing.assert_array_equal(exponents(2, 2), expected)

    def test_row_count(self):
        # C(n + d, d) - 1 monomials without the constant term
        assert len(exponents(3, 3)) == 19
        assert len(exponents(2, 4)) == 14

    def test_degree_one_is_identity_table(self):
        np.testing.assert_array_equal(exponents(4, 1), np.eye(4, dtype=int))

    def test_rows_sum_to_at_most_degree(self):
        table = exponents(3, 4)
        assert table.sum(axis=1).min() == 1
        assert table.sum(axis=1).max() == 4
        assert len({tuple(r) for r in table}) == len(table)

    def test_invalid_degree(self):
        with pytest.raises(InvalidDegree):
            exponents(2, 0)

    def test_no_features(self):
        with pytest.raises(EmptyInput):
            exponents(0, 2)


class TestMapFeatures:
    def test_known_values(self):
        np.testing.assert_allclose(map_features(np.array([[2.0, 3.0]]), 2), [[2, 3, 4, 6, 9]])

    def test_single_instance_vector(self):
        np.testing.assert_allclose(map_features(np.array([2.0, 3.0]), 2), [2, 3, 4, 6, 9])

    def test_degree_one_returns_copy(self):
        X = np.array([[1.0, 2.0], [3.0, 4.0]])
        out = map_features(X, 1)
        np.testing.assert_array_equal(out, X)
        out[0, 0] = 99.0
        assert X[0, 0] == 1.0

    @pytest.mark.parametrize("n_features,degree", [(1, 4), (2, 3), (3, 2), (3, 4)])
    def test_matches_sklearn(self, rng, n_features, degree):
        X = rng.normal(size=(10, n_features))
        expected = PolynomialFeatures(degree=degree, include_bias=False).fit_transform(X)
        np.testing.assert_allclose(map_features(X, degree), expected)

    def test_invalid_degree(self):
        with pytest.raises(InvalidDegree):
            map_features(np.ones((2, 2)), 0)


class TestNormalization:
    def test_matches_standard_scaler(self, rng):
        X = rng.normal(loc=5.0, scale=3.0, size=(20, 3))
        t = FeatureTransformer(degree=1)
        t.fit(X)
        np.testing.assert_allclose(t.normalize(X), StandardScaler().fit_transform(X))

    def test_round_trip(self, rng):
        X = rng.uniform(-10, 10, size=(15, 2))
        t = FeatureTransformer(degree=1).fit(X)
        np.testing.assert_allclose(t.denormalize(t.normalize(X)), X)

    def test_constant_column(self):
        X = np.array([[1.0, 7.0], [2.0, 7.0], [3.0, 7.0]])
        stats = compute_stats(X)
        assert stats.std[1] == 1.0
        t = FeatureTransformer(degree=1).fit(X)
        np.testing.assert_array_equal(t.normalize(X)[:, 1], 0.0)

    def test_min_max_recorded(self):
        stats = compute_stats(np.array([[1.0, -2.0], [4.0, 0.5]]))
        np.testing.assert_array_equal(stats.min, [1.0, -2.0])
        np.testing.assert_array_equal(stats.max, [4.0, 0.5])

    def test_normalize_vector(self):
        t = FeatureTransformer(degree=1).fit(np.array([[0.0, 0.0], [2.0, 4.0]]))
        np.testing.assert_allclose(t.normalize(np.array([1.0, 2.0])), [0.0, 0.0])

    def test_dimension_mismatch(self):
        t = FeatureTransformer(degree=1).fit(np.ones((3, 2)))
        with pytest.raises(DimensionMismatch):
            t.normalize(np.ones((3, 3)))
        with pytest.raises(DimensionMismatch):
            t.denormalize(np.ones(5))

    def test_empty_input(self):
        t = FeatureTransformer(degree=1).fit(np.ones((3, 2)))
        with pytest.raises(EmptyInput):
            t.normalize(np.empty((0, 2)))
        with pytest.raises(EmptyInput):
            compute_stats(np.empty((0, 2)))

    def test_not_fitted(self):
        with pytest.raises(NotFittedError):
            FeatureTransformer(degree=2).transform(np.ones((2, 2)))


class TestFeatureTransformer:
    def test_expand_then_normalize(self, rng):
        X = rng.normal(size=(25, 2))
        t = FeatureTransformer(degree=3, order=PipelineOrder.EXPAND_THEN_NORMALIZE)
        out = t.fit_transform(X)
        assert out.shape == (25, 9)
        np.testing.assert_allclose(out.mean(axis=0), 0.0, atol=1e-12)
        np.testing.assert_allclose(out.std(axis=0), 1.0)
        assert t.stats.n_features == 9

    def test_normalize_then_expand(self, rng):
        X = rng.normal(loc=3.0, size=(25, 2))
        t = FeatureTransformer(degree=2, order="normalize_then_expand")
        out = t.fit_transform(X)
        Z = StandardScaler().fit_transform(X)
        np.testing.assert_allclose(out, map_features(Z, 2))
        assert t.stats.n_features == 2

    def test_transform_replays_training_stats(self, rng):
        X_train = rng.normal(size=(30, 2))
        X_test = rng.normal(loc=10.0, size=(5, 2))
        t = FeatureTransformer(degree=2).fit(X_train)
        expected = (map_features(X_test, 2) - t.stats.mean) / t.stats.std
        np.testing.assert_allclose(t.transform(X_test), expected)

    def test_transform_rejects_wrong_width(self, rng):
        t = FeatureTransformer(degree=2).fit(rng.normal(size=(10, 2)))
        with pytest.raises(DimensionMismatch):
            t.transform(np.ones((4, 3)))

    def test_feature_names(self):
        t = FeatureTransformer(degree=2).fit(np.ones((2, 2)))
        assert t.feature_names() == ["x0", "x1", "x0^2", "x0 x1", "x1^2"]
        assert t.feature_names(["a", "b"])[3] == "a b"
        assert t.n_features_out == 5

    def test_from_config(self):
        t = FeatureTransformer.from_config(FeatureConfig(degree=3, order="normalize_then_expand"))
        assert t.degree == 3
        assert t.order is PipelineOrder.NORMALIZE_THEN_EXPAND

    def test_invalid_degree(self):
        with pytest.raises(InvalidDegree):
            FeatureTransformer(degree=0)
