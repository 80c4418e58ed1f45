"""Settings of a factorization run
"""

# Author: fastnmf developers

# License: MIT
# Oct 19, '26
import copy
import logging

import numpy as np

logger = logging.getLogger(__name__)

INI_METHODS = ("pca", "rand")
WEIGHTS = (
    "spatial_l1",
    "temporal_l1",
    "correlation_l2",
    "orthogonality_l1",
    "orthogonality_l2",
    "spatial_tv",
    "temporal_tv",
)


def check_image_shape(image_shape, n_rows):
    """Raise ValueError if the spatial total variation can not be computed on images of this shape"""
    if image_shape is None:
        raise ValueError("The option spatial_tv needs additional information: the size of the image (image_shape)")
    if len(image_shape) != 2 or int(np.prod(image_shape)) != n_rows:
        raise ValueError(f"image_shape {tuple(image_shape)} does not match the {n_rows} rows of the data")


class XvalOptions:
    """Settings of the cross-validation performed before the alternating iterations

    Attributes
    ----------
    params: dict
        Maps the name of a `fastnmf.options.NMFOptions` weight to the candidate values to try. The grid is the
        cartesian product of all candidate lists.
    n_folds: integer, default: 5
        Number of row folds. Each fold is held out once through the active mask.
    max_iter: integer, default: 50
        Number of alternating iterations of each trial factorization.
    random_state: int or None
        Seed of the fold assignment.
    """
    def __init__(self, params, n_folds=5, max_iter=50, random_state=None):
        self.params = dict(params)
        self.n_folds = n_folds
        self.max_iter = max_iter
        self.random_state = random_state

    def check(self, n_rows, image_shape=None):
        if len(self.params) == 0:
            raise ValueError("Cross-validation needs at least one parameter to tune")
        for name, values in self.params.items():
            if name not in WEIGHTS:
                raise ValueError(f"Can not cross-validate '{name}', tunable parameters are {', '.join(WEIGHTS)}")
            if len(values) == 0:
                raise ValueError(f"No candidate value given for '{name}'")
            if min(values) < 0:
                raise ValueError(f"Candidate values of '{name}' must be non-negative")
        if max(self.params.get("spatial_tv", [0])) > 0:
            check_image_shape(image_shape, n_rows)
        if self.n_folds < 2 or self.n_folds > n_rows:
            raise ValueError(f"n_folds must be between 2 and the number of rows ({n_rows}), got {self.n_folds}")


class NMFOptions:
    """
    Settings of `fastnmf.nmf_base.factorize`. Defaults are set here, and `fastnmf.options.NMFOptions.check` is called
    by the optimizer before any computation, so configuration errors surface before the first iteration.

    Attributes
    -------
    rank: integer, default: 30
        Number of components.
    spatial_l1: float, default: 0
        Weight of the L1 penalty on S.
    temporal_l1: float, default: 0
        Weight of the L1 penalty on T.
    correlation_l2: float, default: 0
        Weight of the L2 penalty on corrcoef(T) - I.
    orthogonality_l1: float, default: 0
        Weight of the L1 penalty on the off-diagonal part of S'S. The first component is excluded (background).
    orthogonality_l2: float, default: 0
        Weight of the L2 penalty on the off-diagonal part of S'S. The first component is excluded (background).
    spatial_tv: float, default: 0
        Weight of the total variation penalty on the components of S, seen as images of shape `image_shape`.
    temporal_tv: float, default: 0
        Weight of the total variation penalty on the components of T.
    max_iter: integer, default: 600
        Number of alternating iterations.
    active: boolean array-like, shape (n_rows), default: None
        Rows of the data taking part in the update of T. None means all rows.
    use_std: boolean, default: False
        Minimize the summed row variance of the residual instead of its squared norm.
    pointwise: boolean, default: False
        Compute one step size per pixel (S) and per frame (T) instead of one per factor.
    ini_method: 'pca' | 'rand', default: 'pca'
        Initialization of T when no initial factor is given.
    image_shape: tuple (height, width), default: None
        Shape of one spatial component, rows of Y being pixels in C order. Required if spatial_tv > 0.
    diagnostic: boolean, default: False
        Evaluate the objective at each iteration and hand it to the callback.
    display: boolean, default: False
        Show a progress bar and log progress messages.
    xval: `fastnmf.options.XvalOptions`, default: None
        If set, weights are tuned by cross-validation before the iterations start.
    random_state: int or None, default: None
        Seed of the random initialization.
    """
    def __init__(self, **kwargs):
        self.rank = 30
        self.spatial_l1 = 0
        self.temporal_l1 = 0
        self.correlation_l2 = 0
        self.orthogonality_l1 = 0
        self.orthogonality_l2 = 0
        self.spatial_tv = 0
        self.temporal_tv = 0
        self.max_iter = 600
        self.active = None
        self.use_std = False
        self.pointwise = False
        self.ini_method = "pca"
        self.image_shape = None
        self.diagnostic = False
        self.display = False
        self.xval = None
        self.random_state = None
        self.update(**kwargs)

    def update(self, **kwargs):
        """Updates these options according to given keyword arguments. Only options already defined can be updated
        this way."""
        for item in kwargs:
            if item not in vars(self):
                raise ValueError(f"Unknown option '{item}'")
            setattr(self, item, kwargs.get(item))
        return self

    def copy(self):
        return copy.deepcopy(self)

    @property
    def orthogonality(self):
        return self.orthogonality_l1 + self.orthogonality_l2 > 0

    def active_rows(self, n_rows):
        """Boolean mask of the active rows"""
        if self.active is None:
            return np.ones(n_rows, dtype=bool)
        return np.asarray(self.active, dtype=bool)

    def check(self, n_rows, n_cols):
        """Raise ValueError if these options can not be used on a (n_rows, n_cols) matrix"""
        if isinstance(self.rank, bool) or not isinstance(self.rank, (int, np.integer)) or self.rank < 1:
            raise ValueError(f"rank must be a positive integer, got {self.rank}")
        if isinstance(self.max_iter, bool) or not isinstance(self.max_iter, (int, np.integer)) or self.max_iter < 0:
            raise ValueError(f"max_iter must be a non-negative integer, got {self.max_iter}")
        for name in WEIGHTS:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.ini_method not in INI_METHODS:
            raise ValueError(f"ini_method must be one of {', '.join(INI_METHODS)}, got '{self.ini_method}'")
        if self.spatial_tv:
            check_image_shape(self.image_shape, n_rows)
        if self.active is not None:
            active = np.asarray(self.active)
            if active.shape != (n_rows,):
                raise ValueError(f"active must be a boolean vector of length {n_rows}, got shape {active.shape}")
            if not active.astype(bool).any():
                raise ValueError("At least one row must be active")
        if self.xval is not None:
            self.xval.check(n_rows, self.image_shape)
        logger.debug(f"Options checked for a {n_rows} x {n_cols} matrix")
