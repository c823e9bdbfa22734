# services/metric_estimator.py
"""
AI-assisted metric estimation.

Asks an OpenAI-compatible chat model to infer an artist's engagement
metrics (the MetricSet the Comparable engine consumes) from the artist's
name. The model output is checked for JSON shape only.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Dict, Tuple

import openai

from config.llm_env import LlmEnv, load_llm_env
from services.config_loader import coerce_metrics
from services.errors import InvalidInput, UpstreamFailure

logger = logging.getLogger(__name__)

ESTIMATED_DIMENSIONS: Tuple[str, ...] = ("search_index", "platform_a", "platform_b")

SYSTEM_PROMPT = dedent("""
You are a cautious data analyst for the live-music market in mainland China.
Your single job: estimate an artist's current public engagement metrics.

Metrics:
- search_index: average daily Baidu search index for the artist's name
- platform_a: NetEase Cloud Music followers, in units of 10,000
- platform_b: Xiaohongshu followers, in units of 10,000

Ground rules:
- Use what you know about the artist's popularity in China; prefer conservative values.
- All values are non-negative numbers; never return ranges or text in numeric fields.
- Always return strict JSON:
  {"search_index": number, "platform_a": number, "platform_b": number, "notes": "..."}
""").strip()


@dataclass(frozen=True)
class MetricEstimate:
    artist_name: str
    metrics: Dict[str, float]
    notes: str
    model: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "artistName": self.artist_name,
            "artistData": dict(self.metrics),
            "notes": self.notes,
            "model": self.model,
        }


def _get_openai_client(env: LlmEnv) -> openai.OpenAI:
    """
    Lazy-init at call time; missing credentials never break imports.
    """
    if not env.api_key:
        raise UpstreamFailure(
            "OPENAI_API_KEY is not set. Configure it to use AI metric estimation.",
            status_code=400,
        )
    return openai.OpenAI(
        api_key=env.api_key,
        base_url=env.base_url,
        timeout=env.timeout_seconds,
        max_retries=0,
    )


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text.lower().startswith("json"):
            text = text[4:].strip()
    return text


def parse_metric_payload(content: Any) -> Tuple[Dict[str, float], str]:
    """
    Parses the model's JSON reply into (metrics, notes).
    """
    if not isinstance(content, str) or not content.strip():
        raise UpstreamFailure("Estimation service returned an empty response")

    try:
        data = json.loads(_strip_fences(content))
    except json.JSONDecodeError as e:
        raise UpstreamFailure(f"Estimation service returned invalid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise UpstreamFailure("Estimation service returned JSON that is not an object")

    missing = [dim for dim in ESTIMATED_DIMENSIONS if data.get(dim) is None]
    if missing:
        raise UpstreamFailure(f"Estimation service response is missing: {', '.join(missing)}")

    try:
        metrics = coerce_metrics({dim: data[dim] for dim in ESTIMATED_DIMENSIONS}, "estimate")
    except InvalidInput as e:
        raise UpstreamFailure(f"Estimation service returned unusable values: {e.message}") from e

    return metrics, str(data.get("notes") or "")


def estimate_artist_metrics(artist_name: str, env: LlmEnv | None = None) -> MetricEstimate:
    name = (artist_name or "").strip()
    if not name:
        raise InvalidInput("artistName is required")

    env = env or load_llm_env()
    client = _get_openai_client(env)

    try:
        response = client.chat.completions.create(
            model=env.model,
            response_format={"type": "json_object"},
            temperature=0.2,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f'Artist: "{name}"'},
            ],
        )
    except openai.OpenAIError as e:
        logger.error("Metric estimation request failed for %r: %s", name, e)
        raise UpstreamFailure(f"Estimation service request failed: {e}") from e

    content = response.choices[0].message.content if response.choices else None
    try:
        metrics, notes = parse_metric_payload(content)
    except UpstreamFailure as e:
        logger.warning("Metric estimation response rejected for %r: %s", name, e.message)
        raise

    logger.info("Metric estimation ok artist=%r model=%s", name, env.model)
    return MetricEstimate(artist_name=name, metrics=metrics, notes=notes, model=env.model)
