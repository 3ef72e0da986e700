"""Unit tests for usage types and pure helpers."""

from datetime import datetime, timezone

import pytest

from aiportal.domains.usage.types import (
    LengthClass,
    LimitField,
    ServiceType,
    UsageSnapshot,
    count_words,
    day_window,
    estimate_cost,
    is_length_metered,
    month_window,
)


class TestEstimateCost:
    @pytest.mark.parametrize(
        "length,expected",
        [
            (LengthClass.SHORT, 150),
            (LengthClass.MEDIUM, 400),
            (LengthClass.LONG, 500),
            (None, 400),
        ],
    )
    def test_mapping(self, length, expected):
        assert estimate_cost(length) == expected

    def test_only_text_words_are_estimated(self):
        assert is_length_metered(ServiceType.AI_TEXT_WRITER, LimitField.WORDS_PER_DAY)
        assert not is_length_metered(ServiceType.AI_TEXT_WRITER, LimitField.REQUESTS_PER_DAY)
        assert not is_length_metered(ServiceType.AI_IMAGE_GENERATOR, LimitField.IMAGES_PER_DAY)


class TestWindows:
    def test_day_is_midnight_aligned(self):
        start, end = day_window(datetime(2024, 6, 15, 23, 59, tzinfo=timezone.utc))

        assert start == datetime(2024, 6, 15, tzinfo=timezone.utc)
        assert end == datetime(2024, 6, 16, tzinfo=timezone.utc)

    def test_day_converts_to_utc(self):
        from datetime import timedelta

        tz = timezone(timedelta(hours=-5))
        start, _ = day_window(datetime(2024, 6, 15, 22, 0, tzinfo=tz))

        assert start == datetime(2024, 6, 16, tzinfo=timezone.utc)

    def test_month_rolls_over_year(self):
        start, end = month_window(datetime(2024, 12, 31, tzinfo=timezone.utc))

        assert start == datetime(2024, 12, 1, tzinfo=timezone.utc)
        assert end == datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestUsageSnapshot:
    def test_remaining_never_negative(self):
        assert UsageSnapshot(used=600, limit=500).remaining == 0

    def test_thresholds(self):
        assert UsageSnapshot(used=399, limit=500).is_warning is False
        assert UsageSnapshot(used=400, limit=500).is_warning is True
        assert UsageSnapshot(used=475, limit=500).is_critical is True

    def test_zero_limit_counts_as_exhausted(self):
        assert UsageSnapshot(used=0, limit=0).percentage == 100


def test_count_words_splits_on_whitespace():
    assert count_words("  one\ttwo\n three  ") == 3
    assert count_words("   ") == 0
