import logging

import numpy as np

logger = logging.getLogger(__name__)


class Estimator:
    """
    Estimator object. Created by `fastnmf.nmf.FastNMF.fit_transform`.

    Attributes
    -------
    s: array-like, shape (n_rows, n_components)
        Spatial components, one per column.
    t: array-like, shape (n_components, n_cols)
        Temporal components, one per row, with unit norm.
    diff: float
        Objective achieved on the normalized data (squared norm of the residual, or summed row variance of the
        residual if the variance objective was used).
    scale: float
        Factor the data was divided by before the factorization. s @ t * scale approximates the data.
    errors: list
        Objective after each iteration. Empty unless diagnostics were requested.
    options: `fastnmf.options.NMFOptions`
        Settings the model was fitted with.
    """
    def __init__(self, s, t, diff, scale=1.0, errors=None, options=None):
        self.s = s
        self.t = t
        self.diff = diff
        self.scale = scale
        self.errors = [] if errors is None else errors
        self.options = options

    def reconstruct(self, normalized=False):
        """Approximation of the data, on the scale of the input unless normalized is True"""
        approx = self.s @ self.t
        if normalized:
            return approx
        return approx * self.scale

    def update(self, **kwargs):
        """Updates this estimator's attributes according to given keyword arguments. Only attributes already defined
        in the estimator can be updated this way."""
        for item in kwargs:
            if not hasattr(self, item):
                raise ValueError(f"Can not update attribute '{item}'")
            setattr(self, item, kwargs.get(item))
