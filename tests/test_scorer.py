"""
Tests for the multi-domain anomaly scorer.

Each test exercises one routing rule or lifecycle guarantee: fallback on
total prediction failure, domain creation, reinforcement, decay, eviction,
transition detection, smoothing and semantic correction.
"""

import random

import pytest

from domain_anomaly import AnomalyConfig, MultiDomainAnomalyScorer, PredictionResult

WIDTH = 64


def bits(*on):
    return [i in on for i in range(WIDTH)]


def pred(accuracy):
    """A prediction result with at least one active predicted bit."""
    return PredictionResult(prediction_accuracy=accuracy, predictions=bits(0))


NO_PREDICTIONS = PredictionResult(prediction_accuracy=0.0, predictions=[False] * WIDTH)

P1 = bits(*range(0, 8))
P2 = bits(*range(32, 40))


def profile(scorer, domain_id):
    for p in scorer.stats()["domainProfiles"]:
        if p["id"] == domain_id:
            return p
    return None


# ── Total prediction failure ──

def test_fallback_scores():
    scorer = MultiDomainAnomalyScorer()
    assert scorer.score(P1, NO_PREDICTIONS) == 0.85
    assert scorer.score(P1, NO_PREDICTIONS, semantic_similarity=0.6) == 0.7
    assert scorer.score(P1, NO_PREDICTIONS, semantic_similarity=0.1) == 0.95
    assert scorer.score(P1, NO_PREDICTIONS, semantic_similarity=0.3) == 0.85


def test_fallback_leaves_state_untouched():
    """
    Total prediction failure skips every state update: no domain is created,
    reinforced or decayed, and nothing is added to the window or the
    transition log. Deliberate asymmetry with the normal path.
    """
    scorer = MultiDomainAnomalyScorer()
    scorer.score(P1, pred(0.8))
    scorer.score(P1, pred(0.8))
    before = scorer.stats()

    ctx = scorer.analyze(P2, NO_PREDICTIONS)
    scorer.score(P2, NO_PREDICTIONS, semantic_similarity=0.1)

    assert ctx.fallback
    assert scorer.stats() == before

    # The previous active set survived, so P1 again is not a transition
    assert not scorer.analyze(P1, pred(0.8)).is_transition


# ── Domain lifecycle ──

def test_first_observation_creates_one_domain():
    scorer = MultiDomainAnomalyScorer()
    ctx = scorer.analyze(P1, pred(0.8))

    stats = scorer.stats()
    assert stats["domainCount"] == 1
    [p] = stats["domainProfiles"]
    assert p["id"] == ctx.created_domain
    assert p["strength"] == 0.5
    assert p["queryCount"] == 1
    # Nothing to compare against yet: no transition, no smoothing
    assert not ctx.is_transition
    assert ctx.final_anomaly == pytest.approx(0.2)


def test_reinforcement_is_monotonic_up_to_one():
    scorer = MultiDomainAnomalyScorer(domain_decay_rate=0.95)
    domain_id = scorer.analyze(P1, pred(0.8)).created_domain

    strengths = [profile(scorer, domain_id)["strength"]]
    for _ in range(15):
        scorer.score(P1, pred(0.8))
        strengths.append(profile(scorer, domain_id)["strength"])

    assert scorer.stats()["domainCount"] == 1
    for before, after in zip(strengths, strengths[1:]):
        assert after >= before
        if before < 1.0:
            assert after > before
    assert strengths[-1] == 1.0
    assert profile(scorer, domain_id)["queryCount"] == 16


def test_decay_only_when_inactive():
    scorer = MultiDomainAnomalyScorer(domain_decay_rate=0.9)
    d1 = scorer.analyze(P1, pred(0.8)).created_domain
    d2 = scorer.analyze(P2, pred(0.8)).created_domain

    assert profile(scorer, d1)["strength"] == pytest.approx(0.5 * 0.9)
    assert profile(scorer, d2)["strength"] == 0.5  # created this call, not decayed

    scorer.score(P2, pred(0.8))
    assert profile(scorer, d2)["strength"] == pytest.approx(0.55)
    assert profile(scorer, d1)["strength"] == pytest.approx(0.5 * 0.9 * 0.9)


def test_eviction_caps_domain_count():
    """
    25 mutually disjoint patterns each create a domain. Early domains are
    never revisited, decay below 0.3 and are evicted oldest-first.
    """
    scorer = MultiDomainAnomalyScorer(domain_decay_rate=0.95)
    width = 100
    created = []
    for i in range(25):
        pattern = [4 * i <= b < 4 * i + 4 for b in range(width)]
        ctx = scorer.analyze(pattern, pred(0.8), now=float(i))
        created.append(ctx.created_domain)
        if i >= 20:
            assert scorer.stats()["domainCount"] <= 20

    assert all(created)
    stats = scorer.stats()
    assert stats["domainCount"] == 20
    remaining = {p["id"] for p in stats["domainProfiles"]}
    assert remaining == set(created[5:])


def test_partial_match_does_not_create_domain():
    """A pattern that is not active but not clearly new either is left alone."""
    scorer = MultiDomainAnomalyScorer()
    scorer.score(P1, pred(0.8))

    ctx = scorer.analyze(P1, pred(0.8), active_threshold=1.0)
    assert ctx.active_domains == []
    assert ctx.created_domain is None
    assert scorer.stats()["domainCount"] == 1


def test_mismatched_pattern_length_is_no_match():
    scorer = MultiDomainAnomalyScorer()
    scorer.score(P1, pred(0.8))
    ctx = scorer.analyze([True, False, True], pred(0.8))
    assert ctx.active_domains == []
    assert ctx.created_domain is not None
    assert scorer.stats()["domainCount"] == 2


# ── Transitions ──

def test_transition_detection():
    scorer = MultiDomainAnomalyScorer()

    scorer.score(P1, pred(0.8))                     # {} -> {}: creates D1
    assert scorer.stats()["transitionCount"] == 0

    ctx = scorer.analyze(P1, pred(0.8))             # {} -> {D1}
    assert ctx.is_transition
    assert ctx.transition_anomaly == 0.2
    assert scorer.stats()["transitionCount"] == 1

    ctx = scorer.analyze(P1, pred(0.8))             # {D1} -> {D1}
    assert not ctx.is_transition
    assert scorer.stats()["transitionCount"] == 1

    ctx = scorer.analyze(P2, pred(0.8))             # {D1} -> {}
    assert ctx.is_transition
    assert ctx.transition_anomaly == 0.7
    assert scorer.stats()["transitionCount"] == 2

    [first, second] = scorer.transitions()
    assert first["from"] == [] and len(first["to"]) == 1
    assert second["from"] == first["to"] and second["to"] == []


def test_switch_between_known_domains():
    scorer = MultiDomainAnomalyScorer()
    scorer.score(P1, pred(0.8))
    scorer.score(P1, pred(0.8))
    scorer.score(P2, pred(0.8))
    scorer.score(P2, pred(0.8))                     # active {D2}

    ctx = scorer.analyze(P1, pred(0.8))             # {D2} -> {D1}
    assert ctx.is_transition
    assert ctx.transition_anomaly == 0.4
    assert ctx.final_anomaly == pytest.approx(0.6 * 0.4 + 0.4 * ctx.domain_anomaly)


# ── Scoring ──

def test_end_to_end_scenario():
    """
    A domain created in a call is exempt from that call's decay (DESIGN.md
    decision 2), so D1 goes 0.5 -> 0.55 -> 0.55 * 0.95, not 0.5 * 0.95.
    """
    scorer = MultiDomainAnomalyScorer(domain_decay_rate=0.95)

    # P1 creates D1
    ctx = scorer.analyze(P1, pred(0.8))
    d1 = ctx.created_domain
    assert profile(scorer, d1)["strength"] == 0.5

    # P1 again: entering D1, similarity 1.0 halves the raw anomaly
    ctx = scorer.analyze(P1, pred(0.8))
    assert ctx.active_domains == [d1]
    assert ctx.domain_anomaly == pytest.approx(0.1)
    assert ctx.final_anomaly == pytest.approx(0.6 * 0.2 + 0.4 * 0.1)
    assert profile(scorer, d1)["strength"] == pytest.approx(0.55)
    assert profile(scorer, d1)["queryCount"] == 2

    # P2 shares no bits with D1 and is badly predicted: leaving D1 for
    # unknown territory with raw anomaly 0.9 is novel, novelty wins the blend
    ctx = scorer.analyze(P2, pred(0.1))
    assert ctx.active_domains == []
    assert ctx.is_transition and ctx.is_novel
    assert ctx.transition_anomaly == 0.7
    assert ctx.final_anomaly == pytest.approx(0.9)
    d2 = ctx.created_domain
    assert d2 is not None and d2 != d1
    assert profile(scorer, d1)["strength"] == pytest.approx(0.55 * 0.95)
    assert profile(scorer, d2)["strength"] == 0.5

    stats = scorer.stats()
    assert stats["domainCount"] == 2
    assert stats["transitionCount"] == 2
    assert stats["averageAnomaly"] == pytest.approx((0.2 + 0.16 + 0.9) / 3)


def test_exit_transition_blend_when_not_novel():
    scorer = MultiDomainAnomalyScorer()
    scorer.score(P1, pred(0.8))
    scorer.score(P1, pred(0.8))

    ctx = scorer.analyze(P2, pred(0.6))             # raw 0.4: not novel
    assert not ctx.is_novel
    assert ctx.final_anomaly == pytest.approx(0.6 * 0.7 + 0.4 * 0.4)


def test_within_domain_smoothing():
    scorer = MultiDomainAnomalyScorer()
    finals = [scorer.score(P1, pred(0.8)) for _ in range(4)]

    assert finals[0] == pytest.approx(0.2)          # creation
    assert finals[1] == pytest.approx(0.16)         # entry transition
    assert finals[2] == pytest.approx(0.1)          # window too short to smooth
    assert finals[3] == pytest.approx(0.5 * 0.1 + 0.3 * 0.1 + 0.2 * 0.16)


def test_semantic_correction():
    high = MultiDomainAnomalyScorer()
    assert high.score(P1, pred(0.8), semantic_similarity=0.9) == \
        pytest.approx(0.2 * (1 - 0.2 * 0.5))

    low = MultiDomainAnomalyScorer()
    assert low.score(P1, pred(0.8), semantic_similarity=0.1) == pytest.approx(0.26)

    neutral = MultiDomainAnomalyScorer()
    assert neutral.score(P1, pred(0.8), semantic_similarity=0.5) == pytest.approx(0.2)


def test_low_semantic_similarity_does_not_boost_novel():
    scorer = MultiDomainAnomalyScorer()
    ctx = scorer.analyze(P1, pred(0.1), semantic_similarity=0.1)
    assert ctx.is_novel
    assert ctx.final_anomaly == pytest.approx(0.9)


def test_score_is_bounded():
    rng = random.Random(1234)
    scorer = MultiDomainAnomalyScorer(domain_decay_rate=0.9)
    topics = [set(rng.sample(range(WIDTH), 6)) for _ in range(4)]

    for _ in range(300):
        if rng.random() < 0.7:
            on = set(rng.choice(topics))
            on.discard(rng.choice(sorted(on)))
            on.add(rng.randrange(WIDTH))
        else:
            on = set(rng.sample(range(WIDTH), 6))
        predictions = bits(*rng.sample(range(WIDTH), rng.choice([0, 3])))
        semantic = rng.choice([None, rng.random()])
        s = scorer.score(bits(*on), PredictionResult(rng.random(), predictions),
                         semantic_similarity=semantic)
        assert 0.0 <= s <= 1.0

    stats = scorer.stats()
    assert 0.0 <= stats["averageAnomaly"] <= 1.0
    assert stats["transitionCount"] <= 50


def test_accepts_prediction_dicts():
    scorer = MultiDomainAnomalyScorer()
    s = scorer.score(P1, {"predictionAccuracy": 0.8, "predictions": bits(3)})
    assert s == pytest.approx(0.2)
    assert scorer.score(P1, {"prediction_accuracy": 0.5, "predictions": []}) == 0.85


# ── Queries ──

def test_stats_is_idempotent():
    scorer = MultiDomainAnomalyScorer()
    for p in (P1, P1, P2, P1):
        scorer.score(p, pred(0.7))
    assert scorer.stats() == scorer.stats()


def test_reset_clears_everything():
    scorer = MultiDomainAnomalyScorer()
    for p in (P1, P1, P2):
        scorer.score(p, pred(0.7))
    scorer.reset()

    stats = scorer.stats()
    assert stats["domainCount"] == 0
    assert stats["activeDomains"] == []
    assert stats["transitionCount"] == 0
    assert stats["averageAnomaly"] == 0.0
    assert scorer.transitions() == []

    # Behaves like a fresh scorer afterwards
    assert scorer.analyze(P1, pred(0.8)).created_domain is not None


def test_independent_scorers_do_not_share_state():
    a = MultiDomainAnomalyScorer()
    b = MultiDomainAnomalyScorer()
    a.score(P1, pred(0.8))
    assert b.stats()["domainCount"] == 0


if __name__ == "__main__":
    import sys
    sys.exit(pytest.main([__file__, "-v"]))
