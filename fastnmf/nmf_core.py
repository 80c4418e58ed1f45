"""Non-negative matrix factorization core functions

Both factors are updated by the same projected gradient step with exact line search. The factor being updated is
handled in (n_components, n_samples) orientation: T itself for the temporal update, S.T for the spatial update.
"""

# Author: fastnmf developers

# License: MIT
# Oct 19, '26
from typing import Callable, List, Tuple

import numpy as np
import logging

from .nmf_penalties import (
    correlation_gradient,
    temporal_tv_gradient,
    spatial_tv_gradient,
    orthogonality_mask,
    orthogonality_l1_gradient,
    orthogonality_l2_gradient,
    combined_gradient,
)

logger = logging.getLogger(__name__)


class QuadraticForm:
    """Second order term of the least squares objective with the partner factor held fixed

    Calling the form on x returns gram @ x, corrected for the row means of x when n_samples is given (variance
    objective). The same instance serves the gradient and the curvature of the line search.

    Attributes
    ----------
    gram: array-like, shape (n_components, n_components)
    cross: array-like, shape (n_components, n_samples)
        Linear term, the gradient of the objective being -cross + form(x)
    n_samples: integer or None
        Row length of x if the row means must be removed
    """
    def __init__(self, gram, cross, n_samples=None):
        self.gram = gram
        self.cross = cross
        self.n_samples = n_samples

    def __call__(self, x):
        if self.n_samples is None:
            return self.gram @ x
        return self.gram @ x - (self.gram @ np.sum(x, axis=1, keepdims=True)) / self.n_samples


def temporal_form(y, s, active, use_std=False, row_sums=None) -> QuadraticForm:
    """Quadratic form of the update of T, restricted to the active rows of y and s

    Parameters
    ----------
    y: Normalized data, shape (n_rows, n_cols)
    s: Spatial factor, shape (n_rows, n_components)
    active: Boolean mask of the rows taking part in the fit
    use_std: Variance objective
    row_sums: Row sums of y, computed if not given (variance objective only)
    """
    s_active = s[active, :]
    gram = s_active.T @ s_active
    cross = s_active.T @ y[active, :]
    if not use_std:
        return QuadraticForm(gram, cross)
    n_cols = y.shape[1]
    if row_sums is None:
        row_sums = np.sum(y, axis=1)
    cross = cross - np.reshape(s_active.T @ row_sums[active], (-1, 1)) / n_cols
    return QuadraticForm(gram, cross, n_samples=n_cols)


def spatial_form(y, t, use_std=False) -> QuadraticForm:
    """Quadratic form of the update of S.T

    With the variance objective the rows of t are centered, which removes the row means of the residual exactly.
    """
    if use_std:
        t = t - np.mean(t, axis=1, keepdims=True)
    return QuadraticForm(t @ t.T, t @ y.T)


def rebalance(f, partner):
    """Scale each row of f to unit norm and the matching column of partner by the norm

    partner @ f is unchanged. Rows with zero norm are left as they are. Both arrays are modified in place.
    """
    for k in range(f.shape[0]):
        scale = np.linalg.norm(f[k, :])
        if scale > 0:
            f[k, :] /= scale
            partner[:, k] *= scale
    return f, partner


def line_search(df, form, pointwise=False):
    """Exact step size along -df for the quadratic objective

    Returns one step per column of df if pointwise, else a single step. Steps coming from zero or ill-defined
    denominators are set to 0, so the corresponding entries are not moved.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        if pointwise:
            alpha = np.sum(df ** 2, axis=0) / np.sum(df * form(df), axis=0)
        else:
            alpha = np.atleast_1d(np.sum(df ** 2) / np.sum(df * form(df)))
    alpha[~np.isfinite(alpha)] = 0
    return alpha


def block_update(
    f,
    partner,
    build_form: Callable[[np.ndarray], QuadraticForm],
    l1=0,
    terms: List[Tuple[float, Callable[[np.ndarray], np.ndarray]]] = (),
    normalize=False,
    pointwise=False,
) -> Tuple[np.ndarray, np.ndarray]:
    """Projected gradient step with exact line search on one factor

    Parameters
    ----------
    f: Factor to update, shape (n_components, n_samples)
    partner: Fixed factor, shape (n_other, n_components)
    build_form: Builds the quadratic form of the data term from the partner factor
    l1: Weight of the L1 penalty on f
    terms: (weight, gradient function) pairs of the other penalties on f
    normalize: Scale the rows of f to unit norm before the step, compensating in partner
    pointwise: One step size per column of f instead of one for the whole factor

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]\n
       * f: updated factor, non-negative\n
       * partner: partner factor, modified only by the normalization\n
    """
    f = np.array(f, dtype=float)
    partner = np.array(partner, dtype=float)
    f[np.isnan(f)] = 0
    partner[np.isnan(partner)] = 0

    if normalize:
        rebalance(f, partner)

    form = build_form(partner)
    df = -form.cross + form(f) + l1 + combined_gradient(f, terms)

    # Only directions that keep the entries on the non-negative side, or move them off the boundary
    passive = np.maximum(f > 0, df < 0)
    df = passive * df

    alpha = line_search(df, form, pointwise)
    if not np.isnan(alpha).any():
        f = f - alpha * df

    f[f < 0] = 0
    return f, partner


def t_update(y, t, s, options, row_sums=None) -> Tuple[np.ndarray, np.ndarray]:
    """Update the temporal factor

    Parameters
    ----------
    y: Normalized data, shape (n_rows, n_cols)
    t: Temporal factor, shape (n_components, n_cols)
    s: Spatial factor, shape (n_rows, n_components)
    options: `fastnmf.options.NMFOptions`
    row_sums: Row sums of y (variance objective only)

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]: s, t
    """
    active = options.active_rows(y.shape[0])
    terms = [
        (options.correlation_l2, correlation_gradient),
        (options.temporal_tv, temporal_tv_gradient),
    ]
    t, s = block_update(
        t,
        s,
        lambda partner: temporal_form(y, partner, active, options.use_std, row_sums),
        l1=options.temporal_l1,
        terms=terms,
        normalize=options.correlation_l2 > 0,
        pointwise=options.pointwise,
    )
    return s, t


def s_update(y, s, t, options) -> Tuple[np.ndarray, np.ndarray]:
    """Update the spatial factor, see `fastnmf.nmf_core.t_update` for the parameters

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]: s, t
    """
    terms = [(options.spatial_tv, lambda f: spatial_tv_gradient(f, options.image_shape))]
    if options.orthogonality:
        mask = orthogonality_mask(s.shape[1])
        terms += [
            (options.orthogonality_l1, lambda f: orthogonality_l1_gradient(f, mask)),
            (options.orthogonality_l2, lambda f: orthogonality_l2_gradient(f, mask)),
        ]
    st, tt = block_update(
        s.T,
        t.T,
        lambda partner: spatial_form(y, partner.T, options.use_std),
        l1=options.spatial_l1,
        terms=terms,
        normalize=options.orthogonality,
        pointwise=options.pointwise,
    )
    return st.T, tt.T
