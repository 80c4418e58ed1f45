""" Class accessing the non-negative matrix factorization functions
"""

# Author: fastnmf developers

# License: MIT
# Oct 19, '26
import numpy as np
import logging

from .estimator import Estimator
from .nmf_base import data_scale, factorize, normalize_data, objective
from .nmf_xval import xval
from .options import NMFOptions

logger = logging.getLogger(__name__)


class FastNMF:
    """Non-negative matrix factorization by alternating projected gradient descent with exact line search"""
    def __init__(self, n_components=None, max_iter=600, random_state=None, verbose=0, **nmf_kwargs):
        """Initialize NMF model

        Parameters
        ----------
        n_components: integer
            Number of components, if n_components is not set: n_components = min(n_samples, n_features)
        max_iter: integer, default: 600
            Number of alternating iterations.
        random_state: int or None
            Seed of the random initialization and of the cross-validation folds.
        verbose: integer, default: 0
            The verbosity level (0/1). At 1 a progress bar is shown and the objective is tracked.
        nmf_kwargs: dict
            Any other `fastnmf.options.NMFOptions` setting: regularization weights, use_std, pointwise, ini_method,
            image_shape, active, xval.

        Returns
        -------
        NMF model

        Example
        -------
        >>> from fastnmf import FastNMF
        >>> my_model = FastNMF(n_components=4, temporal_tv=0.1)
        """
        self.n_components = n_components
        self.max_iter = max_iter
        self.random_state = random_state
        self.verbose = verbose
        self.options = NMFOptions(max_iter=max_iter, random_state=random_state, **nmf_kwargs)

    def fit_transform(self, m, w=None, h=None, callback=None) -> Estimator:
        """Compute the factorization m ~ W @ H, W (spatial) and H (temporal) being non-negative

        Parameters
        ----------
        m: array-like, shape (n_samples, n_features)
            Constant matrix.
        w: array-like, shape (n_samples, n_components)
            prior W, only used together with h
        h: array-like, shape (n_components, n_features)
            prior H
        callback: callable
            Observer called as callback(iteration, w, h, objective) after each iteration

        Returns
        -------
        `fastnmf.estimator.Estimator`

        Example
        -------
        >>> from fastnmf import FastNMF
        >>> my_model = FastNMF(n_components=4)
        >>> mm = ...  # matrix to be factorized
        >>> est = my_model.fit_transform(mm)
        """
        m = np.asarray(m, dtype=float)
        if self.n_components is None:
            nc = min(m.shape)
        else:
            nc = self.n_components
        options = self.options.copy().update(rank=nc, diagnostic=self.options.diagnostic or self.verbose > 0,
                                              display=self.options.display or self.verbose > 0)

        options.check(*m.shape)
        y, _ = normalize_data(m, options.use_std)
        if options.xval is not None:
            # the estimator keeps the tuned options
            options = xval(y, options)

        errors = []

        def track(iteration, s, t, value):
            errors.append(value)
            if callback is not None:
                callback(iteration, s, t, value)

        if h is None:
            w = None
        if not (options.diagnostic or callback is not None):
            track = None
        s, t = factorize(m, options, t_init=h, s_init=w, callback=track)
        logger.debug(f"Rank {nc}, {len(errors)} iterations")

        return Estimator(
            s=s,
            t=t,
            diff=objective(y, s, t, options.use_std),
            scale=data_scale(m, options.use_std),
            errors=errors,
            options=options,
        )
