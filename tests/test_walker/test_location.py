"""Tests for oagraph.walker.location."""

from __future__ import annotations

import pytest

from oagraph.walker.location import (
    LocationTracker,
    ReferenceMarker,
    escape_segment,
    unescape_segment,
)


# ---------------------------------------------------------------------------
# Segment escaping
# ---------------------------------------------------------------------------


class TestEscaping:
    def test_slash_becomes_tilde_one(self) -> None:
        assert escape_segment("/pets/{petId}") == "~1pets~1{petId}"

    def test_tilde_is_escaped_before_slash(self) -> None:
        # '~/' must not turn into '~01' via a double escape of the slash.
        assert escape_segment("~/") == "~0~1"

    def test_unescape_reverses_escape(self) -> None:
        for raw in ("application/json", "a~b", "~1literal", "plain"):
            assert unescape_segment(escape_segment(raw)) == raw


# ---------------------------------------------------------------------------
# LocationTracker
# ---------------------------------------------------------------------------


class TestLocationTracker:
    def test_root_location(self) -> None:
        tracker = LocationTracker()
        assert tracker.active_location == "#"
        assert tracker.depth == 1

    def test_plain_segments(self) -> None:
        tracker = LocationTracker()
        with tracker.segment("paths"), tracker.segment("/pets"), tracker.segment("get"):
            assert tracker.active_location == "#/paths/~1pets/get"
        assert tracker.active_location == "#"

    def test_integer_segment(self) -> None:
        tracker = LocationTracker()
        with tracker.segment("tags"), tracker.segment(0):
            assert tracker.active_location == "#/tags/0"

    def test_pop_on_exception(self) -> None:
        tracker = LocationTracker()
        with pytest.raises(RuntimeError):
            with tracker.segment("paths"):
                with tracker.reference(ReferenceMarker("#/components/schemas/Pet")):
                    raise RuntimeError("boom")
        assert tracker.entries == ("#",)

    def test_reference_replaces_prefix(self) -> None:
        tracker = LocationTracker()
        with tracker.segment("paths"), tracker.segment("/pets"):
            with tracker.reference(ReferenceMarker("#/components/schemas/Pet")):
                assert tracker.active_location == "#/components/schemas/Pet"
                with tracker.segment("properties"), tracker.segment("tag"):
                    assert tracker.active_location == "#/components/schemas/Pet/properties/tag"
            assert tracker.active_location == "#/paths/~1pets"

    def test_innermost_reference_wins(self) -> None:
        tracker = LocationTracker()
        with tracker.reference(ReferenceMarker("#/components/responses/NotFound")):
            with tracker.segment("content"), tracker.segment("application/json"), tracker.segment("schema"):
                with tracker.reference(ReferenceMarker("#/components/schemas/Error")):
                    with tracker.segment("properties"):
                        assert tracker.active_location == "#/components/schemas/Error/properties"

    def test_last_segment(self) -> None:
        tracker = LocationTracker()
        with tracker.segment("content"), tracker.segment("application/json"), tracker.segment("schema"):
            assert tracker.last_segment() == "schema"
            assert tracker.last_segment(2) == "application/json"

    def test_last_segment_rejects_marker(self) -> None:
        tracker = LocationTracker()
        with tracker.reference(ReferenceMarker("#/x")):
            with pytest.raises(LookupError):
                tracker.last_segment()

    def test_reset(self) -> None:
        tracker = LocationTracker()
        tracker._stack.append("dangling")
        tracker.reset()
        assert tracker.entries == ("#",)

    def test_marker_is_frozen(self) -> None:
        marker = ReferenceMarker("#/a")
        with pytest.raises(AttributeError):
            marker.ref = "#/b"  # type: ignore[misc]
