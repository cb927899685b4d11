"""Register override argument tests (r<N>=<value>)."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from regmachine.overrides import OverrideError, parse_override, parse_overrides

MAX = 2 ** 64 - 1


class TestParseOverride:
    def test_unsigned(self):
        assert parse_override("r3=5") == (3, 5)
        assert parse_override("r0=18446744073709551615") == (0, MAX)

    def test_signed_is_reinterpreted(self):
        assert parse_override("r3=-1") == (3, MAX)
        assert parse_override("r1=-9223372036854775808") == (1, 2 ** 63)

    def test_upper_case_r(self):
        assert parse_override("R7=1") == (7, 1)

    @pytest.mark.parametrize("arg", [
        "r3",
        "3=5",
        "x3=5",
        "r=5",
        "r3=",
        "r3=abc",
        "r3=0x10",
        "r3=18446744073709551616",
        "r3=-9223372036854775809",
        "r-1=5",
    ])
    def test_malformed(self, arg):
        with pytest.raises(OverrideError, match="Unable to parse arg"):
            parse_override(arg)

    def test_register_out_of_range(self):
        with pytest.raises(OverrideError, match="r8 does not exist"):
            parse_override("r8=1")


class TestParseOverrides:
    def test_empty(self):
        assert parse_overrides([]) == {}

    def test_later_value_wins(self):
        assert parse_overrides(["r0=1", "r1=2", "r0=3"]) == {0: 3, 1: 2}

    def test_first_bad_argument_raises(self):
        with pytest.raises(OverrideError):
            parse_overrides(["r0=1", "bogus"])
