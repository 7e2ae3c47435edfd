"""
.. include:: ../README.md
"""

__all__ = [
    "chart",
    "jewel",
    "loader",
    "orchestrator",
    "values",
    "vault",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
