"""Unit tests for the item admission filter."""

import pytest

from nerdfeed.store.filters import is_valid_item
from nerdfeed.store.models import Item


def _make_item(
    author: str = "alice",
    title: str = "Fast attention kernels",
    description: str = "Fused kernels for long context",
) -> Item:
    """Create a test item."""
    return Item(
        id="1",
        source="github",
        author=author,
        title=title,
        description=description,
    )


class TestIsValidItem:
    """Tests for is_valid_item."""

    def test_regular_item_admitted(self) -> None:
        """An ordinary ML item passes."""
        assert is_valid_item(_make_item())

    def test_blank_author_rejected(self) -> None:
        """Items without an author handle are dropped."""
        assert not is_valid_item(_make_item(author="  "))

    @pytest.mark.parametrize(
        ("title", "description"),
        [
            ("New NFT marketplace", ""),
            ("Agent framework", "Built on the Solana chain"),
            ("Election forecasting", ""),
        ],
    )
    def test_banned_terms_rejected(self, title: str, description: str) -> None:
        """Banned terms in title or description reject the item."""
        assert not is_valid_item(_make_item(title=title, description=description))

    def test_prediction_market_spam_rejected(self) -> None:
        """Titles mentioning both stake and predict are dropped."""
        assert not is_valid_item(_make_item(title="Stake now and predict the winner"))

    def test_stake_alone_admitted(self) -> None:
        """Stake without predict is not spam by itself."""
        assert is_valid_item(_make_item(title="Stakeholder-aware planning agents"))
