"""
Core data structures.
Each domain carries the metadata the similarity and lifecycle models need.
"""

import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Sequence

Pattern = tuple  # tuple[bool, ...]

DEFAULT_HISTORY_SIZE = 20


def as_pattern(bits: Sequence) -> Pattern:
    """Copy any sequence of truthy/falsy values into an immutable pattern."""
    return tuple(bool(b) for b in bits)


def _new_domain_id() -> str:
    return f"domain_{uuid.uuid4().hex}"


@dataclass
class Domain:
    """An online-learned cluster of similar patterns."""

    id: str = field(default_factory=_new_domain_id)
    patterns: deque = field(default_factory=lambda: deque(maxlen=DEFAULT_HISTORY_SIZE))
    centroid: list[float] = field(default_factory=list)   # per-bit activation frequency

    last_seen: float = field(default_factory=time.time)
    strength: float = 0.5                # 0-1, confidence / recency of the cluster
    query_count: int = 1                 # reinforcements so far (diagnostic)

    def recent(self, n: int) -> list[Pattern]:
        """The ``n`` most recently stored patterns, oldest first."""
        if n <= 0:
            return []
        return list(self.patterns)[-n:]

    def recompute_centroid(self):
        """Per-position mean of set bits across the stored history."""
        n = len(self.patterns)
        if n == 0:
            self.centroid = []
            return
        width = len(self.patterns[0])
        counts = [0] * width
        for pattern in self.patterns:
            for i, bit in enumerate(pattern[:width]):
                if bit:
                    counts[i] += 1
        self.centroid = [c / n for c in counts]

    def profile(self) -> dict:
        return {
            "id": self.id,
            "strength": self.strength,
            "queryCount": self.query_count,
            "lastSeen": self.last_seen,
        }


@dataclass
class TransitionRecord:
    """A change of the active-domain set between two consecutive observations."""

    from_domains: tuple
    to_domains: tuple
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "from": list(self.from_domains),
            "to": list(self.to_domains),
            "timestamp": self.timestamp,
        }


@dataclass
class PredictionResult:
    """What the upstream sequence model tells us about the current step."""

    prediction_accuracy: float
    predictions: Sequence = ()

    @property
    def has_active_predictions(self) -> bool:
        return any(self.predictions)

    @classmethod
    def from_dict(cls, d: dict) -> "PredictionResult":
        accuracy = d.get("prediction_accuracy", d.get("predictionAccuracy", 0.0))
        return cls(
            prediction_accuracy=float(accuracy),
            predictions=as_pattern(d.get("predictions", ())),
        )

    @classmethod
    def coerce(cls, value) -> "PredictionResult":
        """Accept a PredictionResult, a dict, or any object exposing the fields."""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            return cls.from_dict(value)
        return cls(
            prediction_accuracy=float(value.prediction_accuracy),
            predictions=value.predictions,
        )


@dataclass
class AnomalyContext:
    """Full breakdown of one scoring decision."""

    raw_anomaly: float
    final_anomaly: float
    domain_anomaly: float = 0.0
    transition_anomaly: float = 0.0
    novelty_anomaly: float = 0.0
    active_domains: list[str] = field(default_factory=list)
    is_transition: bool = False
    is_novel: bool = False
    fallback: bool = False              # total prediction failure, state untouched
    created_domain: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "rawAnomaly": self.raw_anomaly,
            "domainAnomaly": self.domain_anomaly,
            "transitionAnomaly": self.transition_anomaly,
            "noveltyAnomaly": self.novelty_anomaly,
            "finalAnomaly": self.final_anomaly,
            "activeDomains": list(self.active_domains),
            "isTransition": self.is_transition,
            "isNovel": self.is_novel,
            "fallback": self.fallback,
            "createdDomain": self.created_domain,
        }
