"""Topical category taxonomy for digest diversity."""

from enum import Enum

from nerdfeed.store.models import Item


class Category(str, Enum):
    """Topical category of a story."""

    SYSTEMS = "systems"
    VISION = "vision"
    AUDIO = "audio"
    LANGUAGE = "language"
    GENERAL = "general"


# Checked in order; the first category with a keyword hit wins.
CATEGORY_KEYWORDS: tuple[tuple[Category, tuple[str, ...]], ...] = (
    (
        Category.SYSTEMS,
        (
            "inference",
            "cuda",
            "quantization",
            "gguf",
            "rust",
            "cpp",
            "engine",
            "optimization",
        ),
    ),
    (
        Category.VISION,
        ("image", "video", "diffusion", "vision", "segmentation", "detection"),
    ),
    (
        Category.AUDIO,
        ("audio", "speech", "voice", "tts", "stt", "music"),
    ),
    (
        Category.LANGUAGE,
        ("llm", "gpt", "text", "language", "rag", "agent", "chat"),
    ),
)


def categorize_text(text: str) -> Category:
    """Classify free text by keyword substring presence.

    Args:
        text: Text to classify (case-insensitive).

    Returns:
        First matching category in priority order, else GENERAL.
    """
    lowered = text.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return Category.GENERAL


def categorize_item(item: Item) -> Category:
    """Classify an item from its title, description and summary."""
    return categorize_text(f"{item.title} {item.description} {item.summary or ''}")
