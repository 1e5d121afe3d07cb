"""HH:mm <-> minutes conversions used by every scheduling pass."""
from pitchplan.utils.time_utils import (
    DEFAULT_PITCH_START_MINUTES,
    minutes_to_time,
    optional_minutes,
    parse_time_to_minutes,
)


def test_parse_time_to_minutes_basic():
    assert parse_time_to_minutes("10:00") == 600
    assert parse_time_to_minutes("09:05") == 545
    assert parse_time_to_minutes("9:05") == 545


def test_parse_time_to_minutes_missing_or_malformed_uses_fallback():
    """None, '' and junk fall back (default 10:00) instead of raising."""
    assert parse_time_to_minutes(None) == DEFAULT_PITCH_START_MINUTES
    assert parse_time_to_minutes("") == DEFAULT_PITCH_START_MINUTES
    assert parse_time_to_minutes("noon") == DEFAULT_PITCH_START_MINUTES
    assert parse_time_to_minutes("ab:cd", fallback=480) == 480


def test_minutes_to_time_zero_pads():
    assert minutes_to_time(0) == "00:00"
    assert minutes_to_time(545) == "09:05"
    assert minutes_to_time(650) == "10:50"


def test_optional_minutes_distinguishes_absent():
    assert optional_minutes("10:25") == 625
    assert optional_minutes(None) is None
    assert optional_minutes("bad") is None
