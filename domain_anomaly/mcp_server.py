"""
Domain Anomaly MCP Server — Expose the multi-domain anomaly scorer as MCP tools.

Usage:
    python3 -m domain_anomaly.mcp_server

One scorer is kept per named stream, so independent streams never share
domains. Configure via env vars:
    DOMAIN_ANOMALY_PRESET      default | balanced | aggressive | memory_efficient | topic_sensitive
    DOMAIN_ANOMALY_DECAY_RATE  overrides the preset's domain decay rate

Add to an MCP client config:
    {
      "mcpServers": {
        "domain-anomaly": {
          "command": "python3",
          "args": ["-m", "domain_anomaly.mcp_server"],
          "env": {"DOMAIN_ANOMALY_PRESET": "balanced"}
        }
      }
    }
"""

import os

from mcp.server.fastmcp import FastMCP

from domain_anomaly.config import AnomalyConfig
from domain_anomaly.core import PredictionResult
from domain_anomaly.scorer import MultiDomainAnomalyScorer

mcp = FastMCP("domain-anomaly")

_scorers: dict[str, MultiDomainAnomalyScorer] = {}


def _load_config() -> AnomalyConfig:
    config = AnomalyConfig.preset(os.environ.get("DOMAIN_ANOMALY_PRESET", "default"))
    decay = os.environ.get("DOMAIN_ANOMALY_DECAY_RATE")
    if decay:
        config = config.replace(domain_decay_rate=float(decay))
    return config


def _get_scorer(stream: str) -> MultiDomainAnomalyScorer:
    scorer = _scorers.get(stream)
    if scorer is None:
        scorer = MultiDomainAnomalyScorer(_load_config())
        _scorers[stream] = scorer
    return scorer


@mcp.tool(name="domain_anomaly.score", description="Score one binary pattern against the learned domains")
def score_pattern(
    pattern: list[bool],
    prediction_accuracy: float,
    predictions: list[bool],
    semantic_similarity: float | None = None,
    stream: str = "default",
) -> dict:
    """Score an observation. Returns the final anomaly plus its breakdown."""
    scorer = _get_scorer(stream)
    ctx = scorer.analyze(
        pattern,
        PredictionResult(prediction_accuracy=prediction_accuracy, predictions=predictions),
        semantic_similarity=semantic_similarity,
    )
    return {
        "stream": stream,
        "anomaly": ctx.final_anomaly,
        "context": ctx.to_dict(),
    }


@mcp.tool(name="domain_anomaly.stats", description="Get scorer statistics for a stream")
def scorer_stats(stream: str = "default") -> dict:
    """Return domain count, active domains, transitions and average anomaly."""
    return _get_scorer(stream).stats()


@mcp.tool(name="domain_anomaly.transitions", description="List recent domain transitions for a stream")
def scorer_transitions(stream: str = "default", limit: int = 50) -> list[dict]:
    """Most recent ``limit`` transitions, oldest first."""
    if limit <= 0:
        return []
    return _get_scorer(stream).transitions()[-limit:]


@mcp.tool(name="domain_anomaly.reset", description="Clear all learned domains for a stream")
def reset_scorer(stream: str = "default") -> dict:
    """Reset a stream's scorer back to an empty state."""
    scorer = _get_scorer(stream)
    before = len(scorer.store)
    scorer.reset()
    return {
        "stream": stream,
        "cleared_domains": before,
    }


if __name__ == "__main__":
    mcp.run()
