"""Tests for size and duration parsing"""

import pytest

from compose_deploy.constants import GiB, KiB, MiB
from compose_deploy.utils.units import parse_duration, parse_memory


@pytest.mark.parametrize("value,expected", [
    ("512M", 512 * MiB),
    ("512mb", 512 * MiB),
    ("1g", GiB),
    ("1.5k", 1536),
    ("100", 100),
    ("100b", 100),
    (2048, 2048),
    (" 2 GB ", 2 * GiB),
])
def test_parse_memory(value, expected):
    assert parse_memory(value) == expected


@pytest.mark.parametrize("value", ["abc", "10x", "", True, "-1m"])
def test_parse_memory_invalid(value):
    with pytest.raises(ValueError):
        parse_memory(value)


@pytest.mark.parametrize("value,expected", [
    ("30s", 30.0),
    ("1m30s", 90.0),
    ("500ms", 0.5),
    ("1h", 3600.0),
    ("1.5s", 1.5),
    (10, 10.0),
])
def test_parse_duration(value, expected):
    assert parse_duration(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", ["", "10", "5 s", "abc", "1m30", False])
def test_parse_duration_invalid(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_kib_constant():
    assert parse_memory("1k") == KiB
