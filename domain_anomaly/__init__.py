"""
domain_anomaly — domain-aware anomaly scoring for sparse binary patterns.

    from domain_anomaly import MultiDomainAnomalyScorer, PredictionResult
"""

from domain_anomaly.config import AnomalyConfig
from domain_anomaly.core import AnomalyContext, Domain, PredictionResult, TransitionRecord
from domain_anomaly.domains import DomainStore
from domain_anomaly.history import AnomalyHistory
from domain_anomaly.scorer import MultiDomainAnomalyScorer

__version__ = "0.1.0"

__all__ = [
    "AnomalyConfig",
    "AnomalyContext",
    "AnomalyHistory",
    "Domain",
    "DomainStore",
    "MultiDomainAnomalyScorer",
    "PredictionResult",
    "TransitionRecord",
]
