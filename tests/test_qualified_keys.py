from __future__ import annotations

import pytest

from typekeyed import ABSENT, QualifiedKey, TypeKeyedRegistry, TypeToken, key


def test_discriminated_entries_are_independent() -> None:
    reg = TypeKeyedRegistry()
    nickname = key(str, "nickname")
    title = key(str, "title")

    reg.put(nickname, "bob")
    reg.put(title, "Dr")

    reg.put(nickname, "bobby")
    assert reg.get(title).unwrap() == "Dr"

    reg.remove(title)
    assert reg.get(nickname).unwrap() == "bobby"
    assert reg.get(title) is ABSENT


def test_unqualified_slot_is_distinct_from_qualified() -> None:
    reg = TypeKeyedRegistry()
    reg.put(str, "default")
    reg.put(key(str, "alt"), "alt")

    assert reg.get(str).unwrap() == "default"
    assert reg.get(key(str, "alt")).unwrap() == "alt"
    assert len(reg) == 2


def test_from_any_coerces_tokens_and_types() -> None:
    tok = TypeToken.of(int)

    assert QualifiedKey.from_any(int) == QualifiedKey(tok)
    assert QualifiedKey.from_any(tok, "x") == QualifiedKey(tok, "x")
    assert tok.qualified("x") == QualifiedKey(tok, "x")

    qk = QualifiedKey(tok, "x")
    assert QualifiedKey.from_any(qk) is qk
    assert QualifiedKey.from_any(qk, "x") is qk
    with pytest.raises(ValueError):
        QualifiedKey.from_any(qk, "y")


def test_discriminator_must_be_hashable() -> None:
    with pytest.raises(TypeError):
        QualifiedKey(TypeToken.of(int), ["not", "hashable"])


def test_token_field_must_be_a_token() -> None:
    with pytest.raises(TypeError):
        QualifiedKey(int)  # type: ignore[arg-type]


def test_non_string_discriminators() -> None:
    reg = TypeKeyedRegistry()
    reg.put(key(float, ("sensor", 1)), 0.5)
    reg.put(key(float, ("sensor", 2)), 0.75)

    assert reg.get(key(float, ("sensor", 2))).unwrap() == 0.75
    assert sorted(reg.discriminators(float)) == [("sensor", 1), ("sensor", 2)]
    assert reg.discriminators(int) == []


def test_keys_can_be_filtered_by_token() -> None:
    reg = TypeKeyedRegistry()
    reg.put(key(str, "a"), "1")
    reg.put(key(str, "b"), "2")
    reg.put(int, 3)

    str_keys = set(reg.keys(str))
    assert str_keys == {key(str, "a"), key(str, "b")}
    assert set(reg.keys(bytes)) == set()


def test_key_str() -> None:
    assert str(key(int)) == "int"
    assert str(key(int, "count")) == "int['count']"


def test_qualified_carries_the_token() -> None:
    tok = TypeToken.of(list[int])
    qk = tok.qualified("scores")

    assert isinstance(qk, QualifiedKey)
    assert qk.token is tok
    assert qk.discriminator == "scores"
