"""Cross-validation of the regularization weights

Rows of the data are split in folds. Each fold is held out in turn through the active mask: T is then learnt from
the other rows only, while S is still fitted on every row, so the residual of the held-out rows measures how well
the temporal components generalize.
"""

# Author: fastnmf developers

# License: MIT
# Oct 19, '26
import itertools
import logging

import numpy as np
import pandas as pd

from .nmf_base import factorize, objective
from .options import NMFOptions

logger = logging.getLogger(__name__)


def make_folds(n_rows, n_folds, random_state=None):
    """Fold index of each row, folds differing in size by one row at most"""
    rng = np.random.RandomState(random_state)
    folds = np.arange(n_rows) % n_folds
    rng.shuffle(folds)
    return folds


def xval_scores(y, options: NMFOptions) -> pd.DataFrame:
    """Held-out error of every candidate setting

    Parameters
    ----------
    y: array-like, shape (n_rows, n_cols)
        Normalized data
    options: `fastnmf.options.NMFOptions`
        options.xval holds the grid, see `fastnmf.options.XvalOptions`

    Returns
    -------
    pd.DataFrame, one row per candidate setting: the candidate values, then mean_error and std_error over folds
    """
    y = np.asarray(y, dtype=float)
    xval_options = options.xval
    names = list(xval_options.params)
    folds = make_folds(y.shape[0], xval_options.n_folds, xval_options.random_state)
    active = options.active_rows(y.shape[0])

    records = []
    for values in itertools.product(*[xval_options.params[name] for name in names]):
        trial = options.copy().update(xval=None, display=False, diagnostic=False, max_iter=xval_options.max_iter)
        trial.update(**dict(zip(names, values)))
        errors = []
        for fold in range(xval_options.n_folds):
            held_out = folds == fold
            trial.update(active=active & ~held_out)
            if not trial.active.any():
                continue
            s, t = factorize(y, trial)
            test_rows = held_out & active
            errors.append(objective(y[test_rows], s[test_rows], t, trial.use_std))
        record = dict(zip(names, values))
        record.update(mean_error=np.mean(errors), std_error=np.std(errors))
        records.append(record)
        logger.debug(f"Cross-validation {record}")

    return pd.DataFrame.from_records(records, columns=names + ["mean_error", "std_error"])


def xval(y, options: NMFOptions) -> NMFOptions:
    """Tune the weights listed in options.xval

    Returns
    -------
    `fastnmf.options.NMFOptions`: copy of options with the best candidate setting and xval cleared
    """
    scores = xval_scores(y, options)
    best = scores.loc[scores["mean_error"].idxmin()]
    tuned = options.copy().update(xval=None)
    for name in options.xval.params:
        value = best[name]
        tuned.update(**{name: value.item() if hasattr(value, "item") else value})
    logger.info(f"Cross-validation scores:\n{scores.to_string(index=False)}")
    return tuned
