import pytest
import numpy as np

from fastnmf import FastNMF, LogReporter, NMFOptions, factorize
from fastnmf.nmf_base import normalize_data, objective

BLOCKS = np.array([[2.0, 2.0, 0.0, 0.0], [2.0, 2.0, 0.0, 0.0], [0.0, 0.0, 1.0, 1.0], [0.0, 0.0, 1.0, 1.0]])


def assert_non_increasing(values, tol=1e-12):
    values = np.asarray(values)
    assert np.all(np.diff(values) <= tol * np.maximum(1, values[:-1]))


def test_block_matrix_pca():
    reporter = LogReporter(every=10)
    s, t = factorize(BLOCKS, NMFOptions(rank=2, max_iter=50, random_state=0), callback=reporter)
    y, _ = normalize_data(BLOCKS)
    assert len(reporter.history) == 50
    assert_non_increasing(reporter.history)
    assert np.all(s >= 0) and np.all(t >= 0)
    assert np.linalg.norm(y - s @ t) < 0.3
    np.testing.assert_allclose(np.linalg.norm(t, axis=1), np.ones(2))


def test_block_matrix_from_given_t():
    t0 = np.array([[1.0, 1.0, 0.5, 0.5], [0.5, 0.5, 1.0, 1.0]])
    y, _ = normalize_data(BLOCKS)
    values = []
    s, t = factorize(
        BLOCKS, NMFOptions(rank=2, max_iter=50), t_init=t0, callback=lambda i, s_, t_, value: values.append(value)
    )
    assert np.all(s >= 0) and np.all(t >= 0)
    assert values[-1] < values[0]
    assert np.linalg.norm(y - s @ t) < 0.3


def test_random_low_rank():
    rng = np.random.RandomState(0)
    m = rng.uniform(size=(30, 3)) @ rng.uniform(size=(3, 20))
    values = []
    s, t = factorize(
        m, NMFOptions(rank=3, max_iter=100, random_state=0), callback=lambda i, s_, t_, value: values.append(value)
    )
    y, _ = normalize_data(m)
    assert np.all(s >= 0) and np.all(t >= 0)
    assert values[-1] < values[0]
    assert np.linalg.norm(y - s @ t) / np.linalg.norm(y) < 0.2


def test_final_rebalancing_keeps_product():
    rng = np.random.RandomState(1)
    m = rng.uniform(size=(10, 8))
    values = []
    s, t = factorize(
        m, NMFOptions(rank=2, max_iter=5, random_state=0), callback=lambda i, s_, t_, value: values.append(value)
    )
    y, _ = normalize_data(m)
    assert objective(y, s, t) == pytest.approx(values[-1])
    np.testing.assert_allclose(np.linalg.norm(t, axis=1), np.ones(2))


def test_temporal_tv_smooths_step():
    step = np.concatenate([np.ones(10), 3 * np.ones(10)])
    profile = np.array([1.0, 2.0, 3.0, 2.0, 1.0])
    m = np.outer(profile, step)
    t0 = np.ones((1, 20)) / np.sqrt(20)
    s0 = np.reshape(profile, (5, 1))

    _, t_plain = factorize(m, NMFOptions(rank=1, max_iter=200), t_init=t0, s_init=s0)
    _, t_smooth = factorize(m, NMFOptions(rank=1, max_iter=200, temporal_tv=0.1), t_init=t0, s_init=s0)

    assert np.all(t_smooth >= 0)
    jumps_plain = np.diff(t_plain[0])
    jumps_smooth = np.diff(t_smooth[0])
    assert np.sum(jumps_smooth ** 2) < np.sum(jumps_plain ** 2)
    assert np.max(np.abs(jumps_smooth)) < np.max(np.abs(jumps_plain))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"use_std": True},
        {"pointwise": True},
        {"ini_method": "rand"},
        {"correlation_l2": 0.05, "orthogonality_l1": 0.05, "orthogonality_l2": 0.05},
        {"spatial_tv": 0.05, "image_shape": (4, 5), "temporal_tv": 0.05, "spatial_l1": 1e-3, "temporal_l1": 1e-3},
        {"active": np.arange(20) % 4 != 0},
    ],
)
def test_options_run(kwargs):
    rng = np.random.RandomState(2)
    m = rng.uniform(size=(20, 3)) @ rng.uniform(size=(3, 12))
    s, t = factorize(m, NMFOptions(rank=3, max_iter=30, random_state=0, **kwargs))
    assert s.shape == (20, 3)
    assert t.shape == (3, 12)
    assert np.all(np.isfinite(s)) and np.all(np.isfinite(t))
    assert np.all(s >= 0) and np.all(t >= 0)


def test_input_not_modified():
    m = BLOCKS.copy()
    t0 = np.array([[1.0, 1.0, 0.5, 0.5], [0.5, 0.5, 1.0, 1.0]])
    t0_copy = t0.copy()
    factorize(m, NMFOptions(rank=2, max_iter=3, orthogonality_l1=0.1), t_init=t0)
    np.testing.assert_equal(m, BLOCKS)
    np.testing.assert_equal(t0, t0_copy)


def test_fast_nmf_estimator():
    seen = []
    model = FastNMF(n_components=2, max_iter=30, random_state=0)
    estimator = model.fit_transform(BLOCKS, callback=lambda i, s, t, value: seen.append(i))
    assert estimator.s.shape == (4, 2)
    assert estimator.t.shape == (2, 4)
    assert seen == list(range(1, 31))
    assert len(estimator.errors) == 30
    assert estimator.diff == pytest.approx(estimator.errors[-1])
    assert estimator.scale == pytest.approx(4.0)
    np.testing.assert_allclose(estimator.reconstruct(), BLOCKS, atol=1e-4)
    with pytest.raises(ValueError):
        estimator.update(w=None)


def test_fast_nmf_default_rank_and_no_tracking():
    estimator = FastNMF(max_iter=5, random_state=0).fit_transform(np.random.RandomState(3).uniform(size=(6, 4)))
    assert estimator.s.shape == (6, 4)
    assert estimator.errors == []
    assert estimator.options.rank == 4
