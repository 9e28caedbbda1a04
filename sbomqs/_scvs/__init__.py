"""SCVS maturity level scoring.

Every feature passes or fails; levels L1-L3 each require a subset of the
features and pass when all of their required features pass.
"""

from .scorer import LEVELS, SCVS_FEATURES, ScvsFeature, ScvsResult, ScvsScores, score_scvs

__all__ = [
    "LEVELS",
    "SCVS_FEATURES",
    "ScvsFeature",
    "ScvsResult",
    "ScvsScores",
    "score_scvs",
]
