"""Initial factors and constrained least squares
"""

# Author: fastnmf developers

# License: MIT
# Oct 19, '26
from typing import Tuple

import numpy as np
from scipy.ndimage import gaussian_filter1d
from scipy.optimize import nnls
from sklearn.utils.extmath import randomized_svd
import logging

logger = logging.getLogger(__name__)

RAND_SMOOTHING = 2.0


def initialize(y, rank, options) -> Tuple[np.ndarray, np.ndarray]:
    """First guess of the temporal and spatial factors

    Parameters
    ----------
    y: Normalized data, shape (n_rows, n_cols)
    rank: Number of components
    options: `fastnmf.options.NMFOptions`, ini_method selects the method:\n
        * 'pca': leading singular vectors made non-negative (NNDSVD)\n
        * 'rand': smoothed random traces, S being the positive part of y @ T.T\n

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]: t0 of shape (rank, n_cols), s0 of shape (n_rows, rank)

    Reference
    ---------
    C. Boutsidis, E. Gallopoulos (2008) SVD based initialization: A head start for nonnegative matrix factorization
    Pattern Recognition Pattern Recognition Volume 41, Issue 4, April 2008, Pages 1350-1362
    """
    if options.ini_method == "pca":
        return pca_init(y, rank, options.random_state)
    if options.ini_method == "rand":
        return rand_init(y, rank, options.random_state)
    raise ValueError(f"Unknown initialization method '{options.ini_method}'")


def pca_init(y, rank, random_state=None) -> Tuple[np.ndarray, np.ndarray]:
    n, p = y.shape
    n_svd = min(rank, n, p)
    u, d, v = randomized_svd(y, n_components=n_svd, n_iter="auto", random_state=random_state)
    d = np.sqrt(d)
    mt = u * d
    mw = v.T * d

    s0 = np.ones((n, rank))
    t0 = np.ones((rank, p))
    for k in range(0, n_svd):
        u1 = np.maximum(mt[:, k], 0)
        u2 = np.maximum(-mt[:, k], 0)
        v1 = np.maximum(mw[:, k], 0)
        v2 = np.maximum(-mw[:, k], 0)
        # keep the signed part carrying the most energy
        if np.linalg.norm(u1) * np.linalg.norm(v1) >= np.linalg.norm(u2) * np.linalg.norm(v2):
            s0[:, k] = u1
            t0[k, :] = v1
        else:
            s0[:, k] = u2
            t0[k, :] = v2

    if n_svd < rank:
        logger.info(f"Rank {rank} exceeds the size of the data, {rank - n_svd} components initialized to ones")
    return t0, s0


def rand_init(y, rank, random_state=None) -> Tuple[np.ndarray, np.ndarray]:
    rng = np.random.RandomState(random_state)
    t0 = gaussian_filter1d(rng.uniform(size=(rank, y.shape[1])), RAND_SMOOTHING, axis=1, mode="nearest")
    t0 /= np.linalg.norm(t0, axis=1, keepdims=True)
    s0 = np.maximum(y @ t0.T, 0)
    return t0, s0


def solve_nonneg_least_squares(a, b, options) -> np.ndarray:
    """Non-negative least squares with an optional L1 penalty, column by column

    Solves min ||a @ x - b||^2 + options.spatial_l1 * sum(x) subject to x >= 0. The L1 term is folded into the data
    by shifting b along c, the least squares solution of a.T @ c = spatial_l1 / 2 (exact when a has full column
    rank).

    Parameters
    ----------
    a: array-like, shape (n_obs, n_components)
    b: array-like, shape (n_obs, n_targets)
    options: `fastnmf.options.NMFOptions`

    Returns
    -------
    x: array-like, shape (n_components, n_targets)
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if options.spatial_l1:
        c = np.linalg.lstsq(a.T, np.full(a.shape[1], options.spatial_l1 / 2), rcond=None)[0]
        b = b - np.reshape(c, (-1, 1))

    nnls_estimate = [nnls(a, b[:, col])[0] for col in range(b.shape[1])]
    return np.array(nnls_estimate, dtype=float).reshape(b.shape[1], a.shape[1]).T
