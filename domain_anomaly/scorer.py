"""
Multi-Domain Anomaly Scorer — Public API

A raw prediction-error score (1 − accuracy) conflates three very different
situations:

    1. drifting inside a topic the model already knows
    2. switching between two known topics
    3. something genuinely new

The scorer keeps a small set of online-learned pattern clusters ("domains")
and uses them to tell these cases apart before blending the estimates into
a single score in [0, 1].

Architecture:
    MultiDomainAnomalyScorer (this class)
    ├── similarity.py (centroid cosine + recent-history Jaccard ranking)
    ├── domains.py (reinforcement, decay, eviction)
    ├── history.py (rolling window, transition log, temporal smoothing)
    └── config.py (thresholds, weights, presets)

Usage:
    from domain_anomaly import MultiDomainAnomalyScorer, PredictionResult

    scorer = MultiDomainAnomalyScorer(domain_decay_rate=0.95)
    result = PredictionResult(prediction_accuracy=0.7, predictions=predicted_bits)
    anomaly = scorer.score(active_bits, result, semantic_similarity=0.4)
    scorer.stats()

One instance per independent stream. Calls mutate shared state and must not
overlap; the scorer is not thread-safe.
"""

import logging
from typing import Optional, Sequence

from domain_anomaly.config import AnomalyConfig
from domain_anomaly.core import AnomalyContext, PredictionResult, as_pattern
from domain_anomaly.domains import DomainStore
from domain_anomaly.history import AnomalyHistory
from domain_anomaly.similarity import rank_domains

logger = logging.getLogger(__name__)


class MultiDomainAnomalyScorer:
    """
    Domain-aware anomaly scoring over a stream of binary patterns.

    State: the domain store, the previous call's active-domain set, the
    rolling window of final scores and the transition log.
    """

    def __init__(self, config: Optional[AnomalyConfig] = None, **overrides):
        """
        Args:
            config: Full configuration (defaults to ``AnomalyConfig()``).
            **overrides: Individual config fields, e.g. ``domain_decay_rate=0.9``.
                Applied on top of ``config``.
        """
        config = config or AnomalyConfig()
        if overrides:
            config = config.replace(**overrides)
        self.config = config
        self.store = DomainStore(config)
        self._history = AnomalyHistory(
            window_size=config.anomaly_window_size,
            transition_size=config.transition_history_size,
            weights=config.smoothing_weights,
        )
        self._current_domains: tuple = ()

    def score(self, pattern: Sequence, prediction,
              semantic_similarity: Optional[float] = None,
              active_threshold: Optional[float] = None,
              now: Optional[float] = None) -> float:
        """
        Score one observation. Returns the final anomaly in [0, 1].

        Args:
            pattern: Active bits of the current observation.
            prediction: PredictionResult (or dict / object with
                ``prediction_accuracy`` and ``predictions``) from the
                upstream sequence model.
            semantic_similarity: Optional externally computed similarity
                in [0, 1] between this observation and recent context.
            active_threshold: Similarity above which a domain counts as
                active (defaults to ``config.active_threshold``).
            now: Timestamp override, mostly for tests.
        """
        return self.analyze(pattern, prediction, semantic_similarity,
                            active_threshold, now).final_anomaly

    def analyze(self, pattern: Sequence, prediction,
                semantic_similarity: Optional[float] = None,
                active_threshold: Optional[float] = None,
                now: Optional[float] = None) -> AnomalyContext:
        """Same as ``score`` but returns the full breakdown."""
        cfg = self.config
        prediction = PredictionResult.coerce(prediction)
        raw_anomaly = 1.0 - prediction.prediction_accuracy

        # Degenerate upstream signal: nothing was predicted at all.
        # Fall back to a fixed novelty score and leave every bit of state alone.
        if not prediction.has_active_predictions:
            return self._fallback(raw_anomaly, semantic_similarity)

        pattern = as_pattern(pattern)
        threshold = cfg.active_threshold if active_threshold is None else active_threshold

        matches = rank_domains(pattern, self.store.all(),
                               centroid_weight=cfg.centroid_weight,
                               history_weight=cfg.history_weight,
                               recent=cfg.recent_patterns)
        active = [domain_id for domain_id, sim in matches if sim > threshold]

        previous = self._current_domains
        is_transition = set(active) != set(previous)

        domain_anomaly = raw_anomaly
        if matches and matches[0][1] > cfg.strong_match_threshold:
            domain_anomaly *= 1 - matches[0][1] * cfg.match_reduction

        transition_anomaly = 0.0
        if is_transition:
            if not active:
                transition_anomaly = cfg.exit_transition_anomaly
            elif previous:
                transition_anomaly = cfg.switch_transition_anomaly
            else:
                transition_anomaly = cfg.entry_transition_anomaly

        is_novel = not active and raw_anomaly > cfg.novelty_raw_threshold
        novelty_anomaly = cfg.novelty_anomaly if is_novel else 0.0

        if is_novel:
            final = max(novelty_anomaly, raw_anomaly)
        elif is_transition:
            final = (cfg.transition_weight * transition_anomaly
                     + cfg.domain_weight * domain_anomaly)
        else:
            final = self._history.temporal_smooth(domain_anomaly)

        final = self._apply_semantic(final, semantic_similarity, is_novel)
        final = max(0.0, min(1.0, final))

        created = self._update_domains(pattern, active, matches, now)
        self._current_domains = tuple(active)

        if is_transition:
            self._history.record_transition(previous, active, now=now)
            logger.debug("transition %s -> %s", list(previous), active)

        self._history.record(final)

        return AnomalyContext(
            raw_anomaly=raw_anomaly,
            final_anomaly=final,
            domain_anomaly=domain_anomaly,
            transition_anomaly=transition_anomaly,
            novelty_anomaly=novelty_anomaly,
            active_domains=active,
            is_transition=is_transition,
            is_novel=is_novel,
            created_domain=created,
        )

    def _fallback(self, raw_anomaly: float,
                  semantic_similarity: Optional[float]) -> AnomalyContext:
        cfg = self.config
        anomaly = cfg.fallback_anomaly
        if semantic_similarity is not None:
            if semantic_similarity > cfg.fallback_similar_threshold:
                anomaly = cfg.fallback_similar_anomaly
            elif semantic_similarity < cfg.fallback_dissimilar_threshold:
                anomaly = cfg.fallback_dissimilar_anomaly

        logger.debug("no active predictions, fallback anomaly %.2f", anomaly)
        return AnomalyContext(raw_anomaly=raw_anomaly, final_anomaly=anomaly,
                              fallback=True)

    def _apply_semantic(self, anomaly: float, semantic_similarity: Optional[float],
                        is_novel: bool) -> float:
        if semantic_similarity is None:
            return anomaly

        cfg = self.config
        if semantic_similarity > cfg.semantic_high_threshold:
            excess = semantic_similarity - cfg.semantic_high_threshold
            return anomaly * (1 - excess * cfg.semantic_reduction)
        if semantic_similarity < cfg.semantic_low_threshold and not is_novel:
            return min(1.0, anomaly * cfg.semantic_boost)
        return anomaly

    def _update_domains(self, pattern, active: list[str],
                        matches: list[tuple[str, float]],
                        now: Optional[float]) -> Optional[str]:
        """Reinforce active domains, maybe create one, decay the rest.

        Returns the id of a newly created domain, if any.
        """
        for domain_id in active:
            self.store.reinforce(domain_id, pattern, now=now)

        touched = set(active)
        created = None
        if not active and all(sim < self.config.creation_threshold for _, sim in matches):
            created = self.store.create(pattern, now=now).id
            touched.add(created)

        self.store.decay(exclude=touched)
        return created

    def transitions(self) -> list[dict]:
        """Recorded active-domain transitions, oldest first."""
        return [t.to_dict() for t in self._history.transitions()]

    def stats(self) -> dict:
        """Read-only snapshot of the scorer's state."""
        return {
            "domainCount": len(self.store),
            "activeDomains": list(self._current_domains),
            "transitionCount": self._history.transition_count,
            "averageAnomaly": self._history.average(),
            "domainProfiles": self.store.profiles(),
        }

    def reset(self):
        """Forget all domains, transitions and recent scores."""
        self.store.clear()
        self._history.clear()
        self._current_domains = ()


if __name__ == "__main__":
    """Demo: two alternating topics followed by a burst of novel input."""
    import random

    random.seed(7)
    width = 256

    def sdr(bits: set) -> list[bool]:
        return [i in bits for i in range(width)]

    def jitter(bits: set, n: int = 2) -> set:
        bits = set(bits)
        for _ in range(n):
            bits.discard(random.choice(sorted(bits)))
            bits.add(random.randrange(width))
        return bits

    topic_a = set(random.sample(range(width), 12))
    topic_b = set(random.sample(range(width), 12))
    predicted = sdr(set(range(12)))

    scorer = MultiDomainAnomalyScorer()

    print("=== Multi-Domain Anomaly Demo ===\n")
    script = ["A"] * 6 + ["B"] * 6 + ["A"] * 4 + ["new"] * 3
    for step, label in enumerate(script):
        if label == "A":
            bits, accuracy = jitter(topic_a), 0.6
        elif label == "B":
            bits, accuracy = jitter(topic_b), 0.5
        else:
            bits, accuracy = set(random.sample(range(width), 12)), 0.1

        ctx = scorer.analyze(sdr(bits), PredictionResult(accuracy, predicted))
        flags = []
        if ctx.is_transition:
            flags.append("transition")
        if ctx.is_novel:
            flags.append("novel")
        print(f"  step {step:2d} [{label:>3s}] raw={ctx.raw_anomaly:.2f} "
              f"final={ctx.final_anomaly:.2f} active={len(ctx.active_domains)} "
              f"{' '.join(flags)}")

    stats = scorer.stats()
    print(f"\n  {stats['domainCount']} domains, {stats['transitionCount']} transitions, "
          f"avg anomaly {stats['averageAnomaly']:.3f}")
