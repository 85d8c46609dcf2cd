"""
Domain Similarity — Centroid Cosine + Recent-History Jaccard

Each stored domain is scored against the incoming pattern with two signals:

    sim(p, D) = w_c · cos(p, centroid_D) + w_h · max_k J(p, h_k)

Where:
    centroid_D = per-bit activation frequency over D's stored history
    h_k        = the k most recent patterns stored in D (k = 5)
    w_c, w_h   = 0.6, 0.4

The cosine term captures the long-run shape of the domain. The Jaccard term
rewards exact or near-exact repeats of something seen a moment ago, even
after the centroid has drifted away from it.

Malformed input degrades quietly: mismatched lengths, empty unions and
zero-norm vectors all give a similarity of 0.
"""

import math
from typing import Iterable, Sequence

from domain_anomaly.core import Domain


def cosine_similarity(pattern: Sequence, centroid: Sequence[float]) -> float:
    """
    Cosine between a boolean pattern (true → 1.0) and a real-valued centroid.

    Returns 0.0 on length mismatch or when either vector is all-zero.
    """
    if len(pattern) != len(centroid):
        return 0.0

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for bit, c in zip(pattern, centroid):
        a = 1.0 if bit else 0.0
        dot += a * c
        norm_a += a
        norm_b += c * c

    denominator = math.sqrt(norm_a) * math.sqrt(norm_b)
    if denominator == 0:
        return 0.0
    return dot / denominator


def jaccard_similarity(a: Sequence, b: Sequence) -> float:
    """|a ∧ b| / |a ∨ b|. Returns 0.0 for an empty union or length mismatch."""
    if len(a) != len(b):
        return 0.0

    intersection = 0
    union = 0
    for x, y in zip(a, b):
        if x or y:
            union += 1
            if x and y:
                intersection += 1

    return intersection / union if union else 0.0


def domain_similarity(pattern: Sequence, domain: Domain,
                      centroid_weight: float = 0.6,
                      history_weight: float = 0.4,
                      recent: int = 5) -> float:
    """Combined similarity of ``pattern`` to one domain."""
    centroid_sim = cosine_similarity(pattern, domain.centroid)

    best_recent = 0.0
    for stored in domain.recent(recent):
        best_recent = max(best_recent, jaccard_similarity(pattern, stored))

    return centroid_weight * centroid_sim + history_weight * best_recent


def rank_domains(pattern: Sequence, domains: Iterable[Domain],
                 centroid_weight: float = 0.6,
                 history_weight: float = 0.4,
                 recent: int = 5) -> list[tuple[str, float]]:
    """
    Score every domain and sort by similarity, best first.

    Ties keep the order in which ``domains`` was iterated.

    Returns:
        List of (domain_id, similarity)
    """
    matches = [
        (d.id, domain_similarity(pattern, d, centroid_weight, history_weight, recent))
        for d in domains
    ]
    matches.sort(key=lambda m: m[1], reverse=True)
    return matches
