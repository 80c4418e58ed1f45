"""Non-negative matrix factorization utility functions

"""

# Author: fastnmf developers

# License: MIT
# Oct 19, '26

from tqdm import tqdm
import logging
import numpy as np

logger = logging.getLogger(__name__)


class StatusBoxTqdm:
    """Progress bar over the alternating iterations, silent unless verbose"""
    def __init__(self, total=100, verbose=False):
        self.verbose = verbose
        if self.verbose:
            self.pbar = tqdm(total=total)

    def update_bar(self, step=1):
        if self.verbose:
            self.pbar.update(n=step)

    def update_status(self, status=""):
        if self.verbose:
            self.pbar.set_description(status, refresh=False)
            self.pbar.refresh()

    def close(self):
        if self.verbose:
            self.pbar.clear()
            self.pbar.close()


class LogReporter:
    """Diagnostic observer logging the objective every `every` iterations

    Instances are callables with the signature expected by `fastnmf.nmf_base.factorize`:
    reporter(iteration, s, t, value). The values seen are kept in `history`.
    """
    def __init__(self, every=10, level=logging.INFO):
        self.every = every
        self.level = level
        self.history = []

    def __call__(self, iteration, s, t, value):
        self.history.append(value)
        if iteration % self.every == 0:
            logger.log(self.level, f"Iteration {iteration}: objective {value:.6g}, "
                                   f"{int(np.sum(s > 0))} non-zero in S, {int(np.sum(t > 0))} non-zero in T")
