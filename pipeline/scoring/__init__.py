"""pipeline.scoring

Pure scoring: the match engine (per sample) and the aggregator (per run).
"""

from .aggregate import aggregate
from .matching import best_candidate, inconclusive, match, reported

__all__ = ["aggregate", "best_candidate", "inconclusive", "match", "reported"]
