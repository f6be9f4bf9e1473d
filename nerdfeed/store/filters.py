"""Admission filter applied to items read from the store."""

from nerdfeed.store.models import Item


BANNED_TERMS: tuple[str, ...] = (
    "nft",
    "crypto",
    "telegram",
    "clicker",
    "solana",
    "stealer",
    "bitcoin",
    "blockchain",
    "web3",
    "politics",
    "election",
    "trump",
    "biden",
    "senate",
    "congress",
    "lawsuit",
    "court",
    "hiring",
    "job",
    "career",
    "sport",
    "football",
    "basketball",
    "recipe",
    "cooking",
)


def is_valid_item(item: Item) -> bool:
    """Check whether an item may appear in the feed.

    Rejects items without an author handle, items whose title or
    description contains a banned term, and prediction-market spam.

    Args:
        item: Item to check.

    Returns:
        True if the item is admitted.
    """
    if not item.author.strip():
        return False

    title = item.title.lower()
    description = item.description.lower()

    for term in BANNED_TERMS:
        if term in title or term in description:
            return False

    return not ("stake" in title and "predict" in title)
