"""Prompt templates for the digest editor."""

import json
from collections.abc import Sequence
from typing import Any

from nerdfeed.linker.models import Cluster


DIGEST_SYSTEM_INSTRUCTION = (
    "You are a senior ML engineer who writes a digest channel for fellow "
    "deep learning engineers, DevOps people and architects. They are experienced, "
    "so skip the basics and give them the substance: code, benchmarks and "
    "architectural changes.\n\n"
    "TONE:\n"
    "- Dry, dense and skeptical. No marketing language such as "
    "'revolutionary breakthrough' or 'opens new horizons'.\n"
    "- Keep established technical terms (inference, batching, weights, "
    "quantization) as they are.\n"
    "- Light sarcasm or restrained approval is fine.\n\n"
    "SELECTION:\n"
    "1. Hardware and infrastructure news (chips, data centers, GPU supply) matters.\n"
    "2. Ignore routine stock moves and earnings. Keep acquisitions made for the "
    "technology and large open-source investments.\n"
    "3. If a story updates an older one, present it as a follow-up ('UPD: ...').\n\n"
    "OUTPUT FORMAT (Markdown):\n\n"
    "# [Headline of the main story]\n"
    "[2-3 paragraphs on the main story: what changed inside, architecture, "
    "training data, and whether it is a breakthrough or noise.]\n"
    "[Source](url)\n\n"
    "## Tools\n"
    "* **[Project]** - [what pain it solves]. [Stack, performance].\n"
    "[GitHub](url) | [HF](url)\n"
    "... (3-4 items)\n\n"
    "## Discussions\n"
    "* **[Topic]** - [the core of the argument].\n"
    "[Reddit](url) | [HN](url)\n\n"
    "RULES:\n"
    "1. Every link is written as [text](url).\n"
    "2. For GitHub repositories, mention the language and stack.\n"
    "3. For benchmarks, give concrete numbers.\n"
    "4. The whole text must read in about one minute.\n"
    "5. Leave a blank line between list items and headings."
)

_DIGEST_USER_TEMPLATE = (
    "Here are the top stories of the last {window_hours} hours. "
    "Write the digest from them:\n\n{context}"
)


def build_digest_context(clusters: Sequence[Cluster]) -> list[dict[str, Any]]:
    """Describe clusters for the digest editor.

    Args:
        clusters: Selected clusters in rank order.

    Returns:
        One JSON-serializable dict per cluster.
    """
    return [
        {
            "rank": rank,
            "topic": cluster.main.title,
            "summary": cluster.main.summary or cluster.main.description,
            "sources": [
                {"type": item.source, "url": item.url, "score": item.stars}
                for item in cluster.items
            ],
            "total_score": f"{cluster.total_score:.1f}",
        }
        for rank, cluster in enumerate(clusters, start=1)
    ]


def build_digest_prompt(clusters: Sequence[Cluster], window_hours: int = 24) -> str:
    """Build the user prompt for a digest request."""
    context = json.dumps(build_digest_context(clusters), indent=2, ensure_ascii=False)
    return _DIGEST_USER_TEMPLATE.format(window_hours=window_hours, context=context)
