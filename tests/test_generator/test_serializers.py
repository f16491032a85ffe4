"""Tests for oagraph.generator.serializers."""

from __future__ import annotations

import pytest

from oagraph.generator.serializers import effective_style, serializer_key


class TestEffectiveStyle:
    @pytest.mark.parametrize(
        ("location", "expected"),
        [
            ("query", ("form", True)),
            ("cookie", ("form", True)),
            ("header", ("simple", False)),
            ("path", ("simple", False)),
        ],
    )
    def test_location_defaults(self, location: str, expected: tuple[str, bool]) -> None:
        assert effective_style(location, None, None) == expected

    def test_explode_defaults_follow_style(self) -> None:
        assert effective_style("query", "pipeDelimited", None) == ("pipeDelimited", False)
        assert effective_style("path", "form", None) == ("form", True)

    def test_explicit_values_win(self) -> None:
        assert effective_style("query", "form", False) == ("form", False)


class TestSerializerKey:
    @pytest.mark.parametrize(
        ("style", "explode", "key"),
        [
            ("simple", False, "s"),
            ("simple", True, "se"),
            ("label", False, "l"),
            ("label", True, "le"),
            ("matrix", False, "m"),
            ("matrix", True, "me"),
            ("form", False, "f"),
            ("form", True, "fe"),
            ("spaceDelimited", False, "sd"),
            ("pipeDelimited", True, "pd"),
            ("deepObject", True, "do"),
        ],
    )
    def test_keys(self, style: str, explode: bool, key: str) -> None:
        assert serializer_key("query", style, explode) == key

    def test_defaults(self) -> None:
        assert serializer_key("query") == "fe"
        assert serializer_key("path") == "s"

    def test_deep_object_requires_explode(self) -> None:
        assert serializer_key("query", "deepObject", False) is None

    def test_unknown_style(self) -> None:
        assert serializer_key("query", "csv", False) is None

    def test_unknown_location_without_style(self) -> None:
        assert serializer_key("body") is None
