"""Gradients of the regularization penalties

All functions take a factor in (n_components, n_samples) orientation, that is T itself or the transpose of S, and
return an array of the same shape.
"""

# Author: fastnmf developers

# License: MIT
# Oct 19, '26
import logging

import numpy as np
from scipy.ndimage import convolve, convolve1d

logger = logging.getLogger(__name__)

SECOND_DIFFERENCE = np.array([-1.0, 2.0, -1.0])
LAPLACE = np.array([[0.0, -1.0, 0.0], [-1.0, 4.0, -1.0], [0.0, -1.0, 0.0]])


def standardize(f):
    """Row z-scores of f (population standard deviation)

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]\n
       * z: z-scores, rows of f with zero standard deviation give rows of zeros\n
       * std: standard deviation of each row\n
    """
    centered = f - np.mean(f, axis=1, keepdims=True)
    std = np.std(f, axis=1)
    z = np.zeros_like(centered)
    nonzero = std > 0
    z[nonzero] = centered[nonzero] / std[nonzero, None]
    return z, std


def correlation_gradient(f):
    """Gradient of 1/4 * ||corrcoef(f) - I||^2

    The gradient is first taken with respect to the z-scores, g = z @ z.T @ z / L^2, then brought back through the
    standardization: for row i, (g_i - mean(g_i) - (g_i . z_i) z_i / L) / std_i.
    A constant row can not be correlated with anything, its gradient is zero.

    Parameters
    ----------
    f: array-like, shape (n_components, n_samples)

    Returns
    -------
    Gradient, shape (n_components, n_samples)
    """
    n_samples = f.shape[1]
    z, std = standardize(f)
    g = (z @ z.T) @ z / n_samples ** 2
    g = g - np.mean(g, axis=1, keepdims=True) - np.sum(g * z, axis=1, keepdims=True) * z / n_samples
    grad = np.zeros_like(g)
    nonzero = std > 0
    grad[nonzero] = g[nonzero] / std[nonzero, None]
    return grad


def temporal_tv_gradient(f):
    """Discrete second difference of each row, the row being mirrored by one sample at both ends

    Approximates the gradient of 1/2 * sum((f[:, j + 1] - f[:, j])^2).
    """
    if f.shape[1] < 2:
        return np.zeros_like(f)
    return convolve1d(f, SECOND_DIFFERENCE, axis=1, mode="mirror")


def spatial_tv_gradient(f, image_shape):
    """5-points Laplacian of each row of f seen as an image of shape image_shape (C order)"""
    grad = np.empty_like(f)
    for k in range(f.shape[0]):
        image = np.reshape(f[k, :], image_shape)
        grad[k, :] = np.reshape(convolve(image, LAPLACE, mode="mirror"), -1)
    return grad


def orthogonality_mask(rank):
    """Off-diagonal mask of the orthogonality penalties. Component 0 (background) is left out."""
    mask = np.ones((rank, rank)) - np.eye(rank)
    mask[:, 0] = 0
    mask[0, :] = 0
    return mask


def orthogonality_l1_gradient(f, mask):
    """Gradient of 1/2 * sum(mask * f @ f.T) for f >= 0"""
    return mask @ f


def orthogonality_l2_gradient(f, mask):
    """Gradient of 1/4 * ||mask * (f @ f.T)||^2"""
    return (mask * (f @ f.T)) @ f


def combined_gradient(f, terms):
    """Sum of the weighted penalty gradients

    Parameters
    ----------
    f: array-like, shape (n_components, n_samples)
    terms: list of (weight, function) pairs, function(f) returning a gradient. Terms with a zero weight are not
        evaluated at all.

    Returns
    -------
    Combined gradient, shape (n_components, n_samples)
    """
    grad = np.zeros_like(f)
    for weight, term in terms:
        if weight:
            grad += weight * term(f)
    return grad
