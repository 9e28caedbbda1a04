"""CLI module for sbomqs.

Provides the ``score``, ``scvs``, ``list`` and ``generate`` commands.
"""

from .main import build_filter, cli, main, score_paths

__all__ = [
    "cli",
    "main",
    "build_filter",
    "score_paths",
]
