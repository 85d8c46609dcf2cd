"""
Anomaly History — Rolling Scores and Domain Transitions

Keeps a sliding window of recent final anomaly scores and a bounded log of
active-domain transitions. The window feeds temporal smoothing and the
running average reported by ``stats()``; the transition log is diagnostic.

Smoothing favours the current estimate but damps single-step spikes with the
two immediately preceding *final* scores:

    smoothed = 0.5·x + 0.3·w[-1] + 0.2·w[-2]

It only kicks in once at least three scores are in the window.
"""

import time
from collections import deque
from typing import Iterable, Optional

from domain_anomaly.core import TransitionRecord


class AnomalyHistory:
    """Bounded window of final scores plus a bounded transition log."""

    def __init__(self, window_size: int = 20, transition_size: int = 50,
                 weights: tuple = (0.5, 0.3, 0.2)):
        self.window_size = window_size
        self.weights = tuple(weights)
        self._scores: deque = deque(maxlen=window_size)
        self._transitions: deque = deque(maxlen=transition_size)

    def __len__(self) -> int:
        return len(self._scores)

    @property
    def scores(self) -> list[float]:
        return list(self._scores)

    @property
    def transition_count(self) -> int:
        return len(self._transitions)

    def record(self, score: float):
        self._scores.append(score)

    def record_transition(self, from_domains: Iterable[str], to_domains: Iterable[str],
                          now: Optional[float] = None) -> TransitionRecord:
        record = TransitionRecord(
            from_domains=tuple(from_domains),
            to_domains=tuple(to_domains),
            timestamp=now if now is not None else time.time(),
        )
        self._transitions.append(record)
        return record

    def transitions(self) -> list[TransitionRecord]:
        return list(self._transitions)

    def temporal_smooth(self, value: float) -> float:
        """
        Blend ``value`` with the most recent window entries.

        Must be called before ``value`` itself is recorded.
        """
        if len(self._scores) < 3:
            return value

        smoothed = value * self.weights[0]
        for i in range(1, min(len(self.weights), len(self._scores) + 1)):
            smoothed += self._scores[-i] * self.weights[i]
        return smoothed

    def average(self) -> float:
        """Mean of the rolling window (0.0 when empty)."""
        if not self._scores:
            return 0.0
        return sum(self._scores) / len(self._scores)

    def clear(self):
        self._scores.clear()
        self._transitions.clear()
