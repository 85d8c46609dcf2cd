"""
Domain Anomaly — Basic Usage Example

Shows: score a stream, inspect the breakdown, check stats, reset.
"""

from domain_anomaly import AnomalyConfig, MultiDomainAnomalyScorer, PredictionResult

WIDTH = 128


def sdr(*ranges):
    on = set()
    for r in ranges:
        on.update(r)
    return [i in on for i in range(WIDTH)]


weather = sdr(range(0, 10))
weather_drift = sdr(range(1, 11))
finance = sdr(range(60, 70))
gibberish = sdr(range(100, 110))
predicted = sdr(range(0, 5))

# One scorer per independent stream
scorer = MultiDomainAnomalyScorer(AnomalyConfig.balanced())

stream = [
    ("weather", weather, 0.7),
    ("weather", weather, 0.8),
    ("weather (drift)", weather_drift, 0.6),
    ("finance", finance, 0.5),
    ("finance", finance, 0.7),
    ("weather", weather, 0.6),
    ("gibberish", gibberish, 0.05),
]

print("--- Scoring stream ---")
for label, pattern, accuracy in stream:
    ctx = scorer.analyze(pattern, PredictionResult(accuracy, predicted))
    tags = []
    if ctx.is_transition:
        tags.append("transition")
    if ctx.is_novel:
        tags.append("novel")
    if ctx.created_domain:
        tags.append("new domain")
    print(f"  {label:<16s} raw={ctx.raw_anomaly:.2f} -> {ctx.final_anomaly:.2f}  {', '.join(tags)}")

# Upstream model predicted nothing at all: fixed fallback score, no state change
fallback = scorer.score(weather, PredictionResult(0.0, [False] * WIDTH), semantic_similarity=0.1)
print(f"\n  no predictions      -> {fallback:.2f}")

stats = scorer.stats()
print(f"\nStats: {stats['domainCount']} domains, {stats['transitionCount']} transitions, "
      f"avg anomaly {stats['averageAnomaly']:.3f}")
for p in stats["domainProfiles"]:
    print(f"  {p['id'][:15]}…  strength={p['strength']:.3f}  queries={p['queryCount']}")

scorer.reset()
print("\nReset. Domains:", scorer.stats()["domainCount"])
