"""Tests for pm_common.id_generator and pm_common.datetime_utils."""

from datetime import UTC, datetime

import pytest

from src.pm_common.datetime_utils import to_iso, utc_now
from src.pm_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_unique_and_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=3)
        ids = [int(gen.next_id()) for _ in range(2000)]
        assert len(set(ids)) == 2000
        assert ids == sorted(ids)

    def test_fits_order_id_column(self) -> None:
        assert len(generate_id()) <= 26

    def test_machine_id_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)


class TestDatetimeUtils:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo == UTC

    def test_to_iso(self) -> None:
        assert to_iso(None) is None
        assert to_iso(datetime(2026, 2, 8, 18, 30, tzinfo=UTC)) == "2026-02-08T18:30:00+00:00"
