"""
Scorer Configuration — Tunable Parameters

Every threshold, weight and capacity used by the multi-domain anomaly
scorer, extracted into a single config dataclass. Supports presets for the
agent archetypes the scorer was tuned against.

Only ``domain_decay_rate`` is expected to change between deployments; the
remaining fields are exposed so experiments can sweep them.
"""

from dataclasses import dataclass, fields, replace as _replace


@dataclass
class AnomalyConfig:
    """All tunable parameters for the multi-domain anomaly scorer."""

    # === Domain lifecycle ===
    # Multiplicative per-observation decay for domains that were not matched
    domain_decay_rate: float = 0.95
    # Strength assigned to a freshly created domain
    initial_strength: float = 0.5
    # Multiplicative strength boost on reinforcement (clamped to 1.0)
    reinforcement_factor: float = 1.1
    # Soft cap on the number of domains kept in the store
    max_domains: int = 20
    # Patterns remembered per domain (FIFO)
    domain_history_size: int = 20
    # Only domains weaker than this are eligible for eviction
    eviction_strength: float = 0.3

    # === Similarity (centroid cosine + recent-history Jaccard) ===
    centroid_weight: float = 0.6
    history_weight: float = 0.4
    # How many of a domain's most recent patterns the Jaccard term looks at
    recent_patterns: int = 5

    # === Routing ===
    # Similarity above this makes a domain active
    active_threshold: float = 0.25
    # A new domain is only created when every similarity is below this
    creation_threshold: float = 0.25
    # Best-match similarity above this reduces the domain anomaly
    strong_match_threshold: float = 0.4
    # Maximum fractional reduction for a perfect match
    match_reduction: float = 0.5

    # === Anomaly estimates ===
    exit_transition_anomaly: float = 0.7     # leaving all known domains
    switch_transition_anomaly: float = 0.4   # known set -> different known set
    entry_transition_anomaly: float = 0.2    # empty history -> first domain
    novelty_anomaly: float = 0.8
    novelty_raw_threshold: float = 0.5
    transition_weight: float = 0.6
    domain_weight: float = 0.4

    # === Total prediction failure fallback ===
    fallback_anomaly: float = 0.85
    fallback_similar_anomaly: float = 0.7
    fallback_dissimilar_anomaly: float = 0.95
    fallback_similar_threshold: float = 0.5
    fallback_dissimilar_threshold: float = 0.2

    # === Semantic correction ===
    semantic_high_threshold: float = 0.7
    semantic_low_threshold: float = 0.3
    semantic_reduction: float = 0.5
    semantic_boost: float = 1.3

    # === Temporal smoothing / history ===
    anomaly_window_size: int = 20
    transition_history_size: int = 50
    # Weights for (current, previous, two-ago); needs len(weights) entries
    smoothing_weights: tuple = (0.5, 0.3, 0.2)

    def __post_init__(self):
        if not 0.0 < self.domain_decay_rate < 1.0:
            raise ValueError(
                f"domain_decay_rate must be in (0, 1), got {self.domain_decay_rate}")
        if self.reinforcement_factor < 1.0:
            raise ValueError(
                f"reinforcement_factor must be >= 1, got {self.reinforcement_factor}")

        for name in ("max_domains", "domain_history_size", "recent_patterns",
                     "anomaly_window_size", "transition_history_size"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive int, got {value!r}")

        for f in fields(self):
            if f.name.endswith("_threshold") or f.name.endswith("_anomaly") \
                    or f.name in ("initial_strength", "eviction_strength"):
                value = getattr(self, f.name)
                if not 0.0 <= value <= 1.0:
                    raise ValueError(f"{f.name} must be in [0, 1], got {value}")

        self.smoothing_weights = tuple(self.smoothing_weights)
        if len(self.smoothing_weights) < 1:
            raise ValueError("smoothing_weights must not be empty")

    def replace(self, **changes) -> "AnomalyConfig":
        """Return a validated copy with ``changes`` applied."""
        return _replace(self, **changes)

    @classmethod
    def default(cls) -> "AnomalyConfig":
        """Reference defaults (same as no-arg constructor)."""
        return cls()

    @classmethod
    def balanced(cls) -> "AnomalyConfig":
        """Preset for topic-change detection that still respects domain
        relationships. Slow decay keeps old domains around."""
        return cls(domain_decay_rate=0.98)

    @classmethod
    def aggressive(cls) -> "AnomalyConfig":
        """Preset that holds on to domains almost indefinitely.

        Useful for long conversations that revisit the same few topics.
        """
        return cls(domain_decay_rate=0.995)

    @classmethod
    def memory_efficient(cls) -> "AnomalyConfig":
        """Preset with slow decay, for long streams over few topics."""
        return cls(domain_decay_rate=0.98)

    @classmethod
    def topic_sensitive(cls) -> "AnomalyConfig":
        """Preset for spotting topic switches quickly.

        Fast decay means unused domains become evictable within a handful
        of observations.
        """
        return cls(domain_decay_rate=0.90)

    @classmethod
    def preset(cls, name: str) -> "AnomalyConfig":
        """Look up a preset by name (``"default"``, ``"balanced"``, ...)."""
        factory = PRESETS.get(name)
        if factory is None:
            raise ValueError(
                f"Unknown preset {name!r}; expected one of {sorted(PRESETS)}")
        return factory()


PRESETS = {
    "default": AnomalyConfig.default,
    "balanced": AnomalyConfig.balanced,
    "aggressive": AnomalyConfig.aggressive,
    "memory_efficient": AnomalyConfig.memory_efficient,
    "topic_sensitive": AnomalyConfig.topic_sensitive,
}
