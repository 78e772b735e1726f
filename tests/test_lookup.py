from __future__ import annotations

import pytest

from typekeyed import ABSENT, Absent, Present


def test_absent_is_a_falsy_singleton() -> None:
    assert Absent() is ABSENT
    assert not ABSENT
    assert ABSENT.is_present is False
    assert ABSENT.value_or("fallback") == "fallback"
    assert repr(ABSENT) == "ABSENT"
    with pytest.raises(KeyError):
        ABSENT.unwrap()


def test_present_is_truthy_even_for_falsy_values() -> None:
    for value in (None, 0, "", []):
        found = Present(value)
        assert found
        assert found.is_present is True
        assert found.unwrap() is value
        assert found.value_or("fallback") is value


def test_present_equality() -> None:
    assert Present(1) == Present(1)
    assert Present(1) != Present(2)
    assert Present(1) != ABSENT
