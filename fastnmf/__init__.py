"""
Non-negative Matrix Factorization by alternating projected gradient descent with exact line search\n
Author: fastnmf developers\n
License: MIT\n
"""

from .nmf import FastNMF
from .nmf_base import factorize
from .nmf_utils import LogReporter
from .options import NMFOptions, XvalOptions

from ._version import __version__
