"""Constants for the ranker module."""

import re


# Raw-JSON keys that may carry a discussion count
COMMENT_COUNT_KEYS: tuple[str, ...] = ("descendants", "comments", "num_comments")

# "<n> comments" phrase in free text
COMMENT_COUNT_PATTERN = re.compile(r"(\d[\d,]*)\s+comments?\b", re.IGNORECASE)

# Cosine similarity above which two items describe the same story
DEFAULT_SIMILARITY_THRESHOLD: float = 0.85

# Final score scale factor
SCORE_SCALE: float = 100.0
