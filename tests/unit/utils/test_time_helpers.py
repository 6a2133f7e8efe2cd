from __future__ import annotations

from datetime import datetime, timedelta, timezone

from helpers.cache_utils import reset_kce_caches
from kce.core.utils.time import filename_timestamp, format_timestamp, parse_iso8601, utc_timestamp


def test_utc_timestamp_uses_z_suffix_and_microseconds():
    stamp = utc_timestamp()
    assert stamp.endswith("Z")
    assert "." in stamp
    assert parse_iso8601(stamp).tzinfo == timezone.utc


def test_format_converts_to_utc():
    local = datetime(2024, 1, 2, 5, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(local) == "2024-01-02T03:00:00.000000Z"


def test_parse_handles_naive_and_offset_values():
    assert parse_iso8601("2024-01-02T03:04:05").tzinfo == timezone.utc
    assert parse_iso8601("2024-01-02T05:04:05+02:00").hour == 3


def test_strip_microseconds_from_config(monkeypatch):
    monkeypatch.setenv("KCE_time__iso8601__strip_microseconds", "true")
    monkeypatch.setenv("KCE_time__iso8601__timespec", "seconds")
    reset_kce_caches()
    stamp = utc_timestamp()
    assert "." not in stamp
    assert stamp.endswith("Z")


def test_filename_timestamp_has_no_colons():
    moment = datetime(2024, 1, 2, 5, 6, 7, 891, tzinfo=timezone(timedelta(hours=2)))
    assert filename_timestamp(moment) == "2024-01-02T03-06-07Z"
