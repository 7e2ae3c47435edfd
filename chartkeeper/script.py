"""Functions available to chart scripts."""

from .backends import random_token, user_credential
from .loader import chart
from .manifest import K8sOptions

__all__ = [
    "chart",
    "user_credential",
    "random_token",
    "K8sOptions",
]
