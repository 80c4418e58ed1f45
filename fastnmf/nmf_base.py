"""Alternating optimizer of the non-negative matrix factorization
"""

# Author: fastnmf developers

# License: MIT
# Oct 19, '26
from typing import Callable, Optional, Tuple

import numpy as np
import logging

from .nmf_core import rebalance, s_update, t_update
from .nmf_init import initialize, solve_nonneg_least_squares
from .nmf_utils import StatusBoxTqdm
from .options import NMFOptions

logger = logging.getLogger(__name__)


def data_scale(y, use_std=False) -> float:
    """Square root of the summed row variances if use_std, else spectral norm"""
    if use_std:
        return float(np.sqrt(np.sum(np.var(y, axis=1))))
    return float(np.linalg.norm(y, 2))


def normalize_data(y, use_std=False) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """Scale the data once before the factorization

    Parameters
    ----------
    y: Data, shape (n_rows, n_cols)
    use_std: if True, divide by the square root of the summed row variances, else by the spectral norm

    Returns
    -------
    Tuple[np.ndarray, Optional[np.ndarray]]\n
       * y: normalized copy of the data\n
       * row_sums: row sums of the normalized data if use_std, else None\n
    """
    y = np.array(y, dtype=float)
    scale = data_scale(y, use_std)
    if scale > 0:
        y /= scale
    else:
        logger.warning("Data matrix has zero norm, it is left unscaled")
    if use_std:
        return y, np.sum(y, axis=1)
    return y, None


def objective(y, s, t, use_std=False) -> float:
    """Data term of the objective: squared norm of the residual, or its summed row variance if use_std"""
    residual = y - s @ t
    if use_std:
        return float(np.sum(np.var(residual, axis=1)))
    return float(np.sum(residual ** 2))


def initial_factors(y, options, t_init=None, s_init=None) -> Tuple[np.ndarray, np.ndarray]:
    """Initial (t0, s0), computed or checked against the shape of y"""
    n, p = y.shape
    if t_init is None:
        return initialize(y, options.rank, options)

    t0 = np.array(t_init, dtype=float)
    if t0.shape != (options.rank, p):
        raise ValueError(f"Initial T must have shape {(options.rank, p)}, got {t0.shape}")
    if s_init is None:
        s0 = solve_nonneg_least_squares(t0.T, y.T, options).T
    else:
        s0 = np.array(s_init, dtype=float)
        if s0.shape != (n, options.rank):
            raise ValueError(f"Initial S must have shape {(n, options.rank)}, got {s0.shape}")
    if (t0 < 0).any() or (s0 < 0).any():
        raise ValueError("Initial factors must be non-negative")
    return t0, s0


def factorize(
    y,
    options: Optional[NMFOptions] = None,
    t_init=None,
    s_init=None,
    callback: Optional[Callable] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Non-negative matrix factorization y ~ S @ T by alternating projected gradient descent with exact line search

    Parameters
    ----------
    y: array-like, shape (n_rows, n_cols)
        Non-negative data, e.g. a movie with one row per pixel and one column per frame. Not modified.
    options: `fastnmf.options.NMFOptions`, default: None
        Settings of the run. None means default settings. Not modified, cross-validation works on a copy.
    t_init: array-like, shape (rank, n_cols), default: None
        Initial temporal factor. If None, both factors are initialized according to options.ini_method.
    s_init: array-like, shape (n_rows, rank), default: None
        Initial spatial factor, only used with t_init. If None, it is the non-negative least squares fit to t_init.
    callback: callable, default: None
        Called after each iteration as callback(iteration, s, t, value), value being the objective on the
        normalized data. The objective is also computed, and logged at the end, if options.diagnostic is set.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]\n
       * s: spatial factor, shape (n_rows, rank)\n
       * t: temporal factor, shape (rank, n_cols), rows have unit norm\n

    Example
    -------
    >>> from fastnmf import factorize, NMFOptions
    >>> movie = ...  # pixels x frames
    >>> s, t = factorize(movie, NMFOptions(rank=10, temporal_tv=0.1))
    """
    if options is None:
        options = NMFOptions()
    y = np.asarray(y)
    if y.ndim != 2:
        raise ValueError(f"Data must be a 2D array, got {y.ndim} dimensions")
    n, p = y.shape
    options.check(n, p)

    y, row_sums = normalize_data(y, options.use_std)
    t0, s0 = initial_factors(y, options, t_init, s_init)

    if options.orthogonality:
        # orthogonality penalties assume unit norm spatial components
        rebalance(s0.T, t0.T)

    if options.xval is not None:
        from .nmf_xval import xval

        if options.display:
            logger.info(f"Options before cross-validation: {vars(options)}")
        options = xval(y, options)
        if options.display:
            logger.info(f"Options after cross-validation: {vars(options)}")

    s, t = s0, t0
    diagnostic = options.diagnostic or callback is not None
    errors = []
    my_status_box = StatusBoxTqdm(total=options.max_iter, verbose=options.display)
    my_status_box.update_status(status="Factorizing...")
    for iteration in range(1, options.max_iter + 1):
        s, t = s_update(y, s, t, options)
        s, t = t_update(y, t, s, options, row_sums)
        if diagnostic:
            value = objective(y, s, t, options.use_std)
            errors.append(value)
            if callback is not None:
                callback(iteration, s, t, value)
        my_status_box.update_bar()
    my_status_box.close()

    if options.diagnostic and len(errors) > 0:
        logger.info(f"Objective after {len(errors)} iterations: {errors[-1]:.6g} (start {errors[0]:.6g})")
    elif options.display:
        logger.info(f"Iterations completed: {options.max_iter}")

    rebalance(t, s)
    return s, t
