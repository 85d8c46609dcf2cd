"""
Domain Store — Reinforcement, Decay and Eviction

Domains behave like memory traces: every observation routed to a domain
reinforces it multiplicatively,

    strength ← min(1, strength × 1.1)

and every observation that does *not* touch it decays it,

    strength ← strength × decay_rate

So a domain that stops being visited loses confidence geometrically and
eventually becomes a candidate for eviction. The store is soft-capped: when
a new domain pushes it over capacity, the oldest (smallest last_seen) domain
among those weaker than the eviction threshold is dropped. If every domain
is still strong, nothing is evicted and the store temporarily grows past
its cap.
"""

import logging
import time
from collections import deque
from typing import Iterable, Optional, Sequence

from domain_anomaly.config import AnomalyConfig
from domain_anomaly.core import Domain, as_pattern

logger = logging.getLogger(__name__)


class DomainStore:
    """In-memory store for all learned domains, keyed by domain id."""

    def __init__(self, config: Optional[AnomalyConfig] = None):
        self.config = config or AnomalyConfig()
        self.domains: dict[str, Domain] = {}

    def __len__(self) -> int:
        return len(self.domains)

    def __contains__(self, domain_id: str) -> bool:
        return domain_id in self.domains

    def all(self) -> list[Domain]:
        return list(self.domains.values())

    def clear(self):
        self.domains.clear()

    def create(self, pattern: Sequence, now: Optional[float] = None) -> Domain:
        """
        Start a new domain seeded with a single pattern.

        The centroid is the pattern itself cast to 0/1. Insertion may trigger
        an eviction if the store is now over capacity.
        """
        now = now if now is not None else time.time()
        pattern = as_pattern(pattern)

        domain = Domain(
            patterns=deque([pattern], maxlen=self.config.domain_history_size),
            centroid=[1.0 if bit else 0.0 for bit in pattern],
            last_seen=now,
            strength=self.config.initial_strength,
            query_count=1,
        )
        self.domains[domain.id] = domain
        logger.debug("created %s (%d domains)", domain.id, len(self.domains))

        if len(self.domains) > self.config.max_domains:
            self.evict()

        return domain

    def reinforce(self, domain_id: str, pattern: Sequence,
                  now: Optional[float] = None) -> Optional[Domain]:
        """Add a pattern to a domain's history and strengthen it."""
        domain = self.domains.get(domain_id)
        if domain is None:
            return None

        domain.patterns.append(as_pattern(pattern))
        domain.last_seen = now if now is not None else time.time()
        domain.query_count += 1
        domain.strength = min(1.0, domain.strength * self.config.reinforcement_factor)
        domain.recompute_centroid()
        return domain

    def decay(self, exclude: Iterable[str] = ()) -> int:
        """
        Multiply the strength of every domain not in ``exclude`` by the
        configured decay rate.

        Returns:
            Number of domains decayed
        """
        keep = set(exclude)
        n_decayed = 0
        for domain_id, domain in self.domains.items():
            if domain_id in keep:
                continue
            domain.strength *= self.config.domain_decay_rate
            n_decayed += 1
        return n_decayed

    def evict(self) -> Optional[str]:
        """
        Drop the least recently seen weak domain.

        Only domains with strength below ``eviction_strength`` qualify.
        Returns the evicted id, or None when no domain qualifies.
        """
        victim = None
        oldest = float("inf")
        for domain_id, domain in self.domains.items():
            if domain.strength < self.config.eviction_strength and domain.last_seen < oldest:
                oldest = domain.last_seen
                victim = domain_id

        if victim is None:
            logger.debug("store over capacity (%d) but no weak domain to evict",
                         len(self.domains))
            return None

        del self.domains[victim]
        logger.debug("evicted %s (last seen %.3f)", victim, oldest)
        return victim

    def profiles(self) -> list[dict]:
        return [d.profile() for d in self.domains.values()]
