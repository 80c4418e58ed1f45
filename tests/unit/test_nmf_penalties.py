import pytest
import numpy as np

from fastnmf.nmf_penalties import (
    combined_gradient,
    correlation_gradient,
    orthogonality_l1_gradient,
    orthogonality_l2_gradient,
    orthogonality_mask,
    spatial_tv_gradient,
    standardize,
    temporal_tv_gradient,
)


def numerical_gradient(penalty, f, h=1e-6):
    grad = np.zeros_like(f)
    for index in np.ndindex(*f.shape):
        step = np.zeros_like(f)
        step[index] = h
        grad[index] = (penalty(f + step) - penalty(f - step)) / (2 * h)
    return grad


def correlation_penalty(f):
    return 0.25 * np.sum((np.corrcoef(f) - np.eye(f.shape[0])) ** 2)


def test_standardize():
    f = np.array([[1.0, 2.0, 3.0], [2.0, 2.0, 2.0]])
    z, std = standardize(f)
    np.testing.assert_allclose(std, [np.sqrt(2 / 3), 0])
    np.testing.assert_allclose(z[0], [-np.sqrt(1.5), 0, np.sqrt(1.5)])
    np.testing.assert_equal(z[1], np.zeros(3))


@pytest.mark.parametrize("shape, seed", [((3, 8), 0), ((4, 12), 1), ((2, 5), 2)])
def test_correlation_gradient_matches_finite_differences(shape, seed):
    f = np.random.RandomState(seed).uniform(size=shape) + 0.1
    np.testing.assert_allclose(
        correlation_gradient(f), numerical_gradient(correlation_penalty, f), rtol=1e-4, atol=1e-8
    )


def test_correlation_gradient_constant_row():
    f = np.random.RandomState(3).uniform(size=(3, 6))
    f[1, :] = 0.5
    grad = correlation_gradient(f)
    assert np.all(np.isfinite(grad))
    np.testing.assert_equal(grad[1], np.zeros(6))


def test_correlation_gradient_uncorrelated_rows():
    f = np.array([[1.0, 0.0, 1.0, 0.0], [1.0, 1.0, 0.0, 0.0]])
    np.testing.assert_allclose(correlation_gradient(f), np.zeros_like(f), atol=1e-12)


def test_temporal_tv_gradient():
    f = np.random.RandomState(4).uniform(size=(3, 7))
    padded = np.hstack([f[:, 1:2], f, f[:, -2:-1]])
    expected = 2 * padded[:, 1:-1] - padded[:, :-2] - padded[:, 2:]
    np.testing.assert_allclose(temporal_tv_gradient(f), expected)


def test_temporal_tv_gradient_flat_and_short_rows():
    np.testing.assert_allclose(temporal_tv_gradient(np.full((2, 5), 3.0)), np.zeros((2, 5)), atol=1e-12)
    np.testing.assert_equal(temporal_tv_gradient(np.ones((2, 1))), np.zeros((2, 1)))


def test_spatial_tv_gradient():
    f = np.zeros((2, 25))
    f[0, 12] = 1.0
    f[1, :] = 2.0
    grad = spatial_tv_gradient(f, (5, 5))
    image = np.reshape(grad[0], (5, 5))
    assert image[2, 2] == pytest.approx(4)
    for i, j in [(1, 2), (3, 2), (2, 1), (2, 3)]:
        assert image[i, j] == pytest.approx(-1)
    assert np.sum(np.abs(image)) == pytest.approx(8)
    np.testing.assert_allclose(grad[1], np.zeros(25), atol=1e-12)


def test_orthogonality_mask():
    np.testing.assert_equal(orthogonality_mask(3), np.array([[0, 0, 0], [0, 0, 1], [0, 1, 0]]))


def test_orthogonality_gradients_match_finite_differences():
    f = np.random.RandomState(5).uniform(size=(4, 6))
    mask = orthogonality_mask(4)
    np.testing.assert_allclose(
        orthogonality_l1_gradient(f, mask),
        numerical_gradient(lambda x: 0.5 * np.sum(mask * (x @ x.T)), f),
        rtol=1e-5,
        atol=1e-8,
    )
    np.testing.assert_allclose(
        orthogonality_l2_gradient(f, mask),
        numerical_gradient(lambda x: 0.25 * np.sum((mask * (x @ x.T)) ** 2), f),
        rtol=1e-5,
        atol=1e-8,
    )


def test_orthogonality_gradients_leave_background_alone():
    f = np.random.RandomState(6).uniform(size=(3, 4))
    mask = orthogonality_mask(3)
    np.testing.assert_equal(orthogonality_l1_gradient(f, mask)[0], np.zeros(4))
    np.testing.assert_equal(orthogonality_l2_gradient(f, mask)[0], np.zeros(4))


def test_combined_gradient_skips_zero_weights():
    def fails(f):
        raise AssertionError("a zero weighted term must not be evaluated")

    f = np.ones((2, 3))
    grad = combined_gradient(f, [(0, fails), (2.0, np.ones_like), (0.5, lambda x: x * 4)])
    np.testing.assert_allclose(grad, np.full((2, 3), 4.0))
