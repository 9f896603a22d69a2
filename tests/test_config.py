"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from storefront.infrastructure.config import Settings


class TestSettings:
    """Tests for Settings."""

    @pytest.mark.parametrize(
        "field",
        ["recency_half_life_days", "history_half_life_days", "history_recent_items"],
    )
    @pytest.mark.parametrize("value", [0, -1])
    def test_decay_settings_must_be_positive(self, field: str, value: int) -> None:
        """Zero or negative half-lives and window sizes are rejected at startup."""
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_defaults_are_valid(self) -> None:
        """Defaults pass validation."""
        config = Settings()
        assert config.recency_half_life_days == 30.0
        assert config.history_half_life_days == 14.0
        assert config.history_recent_items == 5
