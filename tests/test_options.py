"""
Tests for explorer/options.py — option payload decoding and the
per-dataset dropdown option cache.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from explorer.datasets import OptionSource
from explorer.errors import FetchError, UnknownDatasetError
from explorer.options import DropdownOptionCache, OptionEntry, decode_options


def _names(entries):
    return [e.name for e in entries]


# ── decode_options ────────────────────────────────────────────────────────────

class TestDecodeOptions:
    def test_list_of_names(self):
        entries = decode_options(["Berlin", "Paris"], OptionSource("/x"))
        assert entries == [OptionEntry("Berlin"), OptionEntry("Paris")]

    def test_blanks_and_duplicates_dropped_order_kept(self):
        entries = decode_options(["Paris", "", None, "undefined", "Berlin", "Paris"],
                                 OptionSource("/x"))
        assert _names(entries) == ["Paris", "Berlin"]

    def test_named_entries_with_counts(self):
        payload = [{"name": "VC", "value": 150}, {"name": "Angel", "count": "50"}]
        entries = decode_options(payload, OptionSource("/x"))
        assert entries == [OptionEntry("VC", 150), OptionEntry("Angel", 50)]

    def test_object_with_single_list(self):
        entries = decode_options({"types": ["Conference", "Meetup"]}, OptionSource("/x"))
        assert _names(entries) == ["Conference", "Meetup"]

    def test_field_picks_member(self):
        payload = {"locations": [{"name": "London"}], "types": [{"name": "VC"}]}
        assert _names(decode_options(payload, OptionSource("/x", field="types"))) == ["VC"]

    def test_item_field_reads_records(self):
        payload = [{"investorType": "VC", "location": "Paris"},
                   {"investorType": "VC", "location": "Lyon"}]
        source = OptionSource("/x", item_field="investorType")
        assert _names(decode_options(payload, source)) == ["VC"]

    def test_item_field_falls_back_to_name(self):
        source = OptionSource("/x", field="types", item_field="type")
        payload = {"types": [{"name": "VC", "value": 3}]}
        assert decode_options(payload, source) == [OptionEntry("VC", 3)]

    def test_ambiguous_object_raises(self):
        with pytest.raises(ValueError):
            decode_options({"a": [], "b": []}, OptionSource("/x"))

    def test_scalar_raises(self):
        with pytest.raises(ValueError):
            decode_options("Berlin", OptionSource("/x"))

    def test_empty_list(self):
        assert decode_options([], OptionSource("/x")) == []


# ── DropdownOptionCache ───────────────────────────────────────────────────────

class TestDropdownOptionCache:
    def test_event_options(self, backend, registry):
        cache = DropdownOptionCache(backend, registry)
        options = cache.fetch_options("general")
        assert _names(options["eventType"]) == ["Conference", "Meetup"]
        assert _names(options["location"]) == ["Lisbon", "Helsinki", "Berlin"]

    def test_option_requests_carry_no_params(self, backend, registry):
        DropdownOptionCache(backend, registry).fetch_options("general")
        assert backend.calls_to("/api/events/unique-types") == [{}]
        assert backend.calls_to("/api/events/locations") == [{}]

    def test_cached_per_dataset(self, backend, registry):
        cache = DropdownOptionCache(backend, registry)
        cache.fetch_options("general")
        cache.fetch_options("general")
        assert len(backend.calls_to("/api/events/locations")) == 1

    def test_invalidate_refetches(self, backend, registry):
        cache = DropdownOptionCache(backend, registry)
        cache.fetch_options("general")
        cache.invalidate("general")
        cache.fetch_options("general")
        assert len(backend.calls_to("/api/events/locations")) == 2

    def test_shared_endpoint_fetched_once(self, backend, registry):
        options = DropdownOptionCache(backend, registry).fetch_options("investors")
        assert len(backend.calls_to("/api/investors/analytics")) == 1
        assert _names(options["location"]) == ["London", "Berlin"]
        assert _names(options["type"]) == ["VC", "Angel"]

    def test_static_sources(self, backend, registry):
        options = DropdownOptionCache(backend, registry).fetch_options("investors")
        assert _names(options["investmentRange"])[0] == "1-5"
        assert options["investmentRange"][0].count is None

    def test_static_only_dataset_makes_no_requests(self, backend, registry):
        options = DropdownOptionCache(backend, registry).fetch_options("cities")
        assert "2024" in _names(options["year"])
        assert backend.calls == []

    def test_contacts_read_from_records(self, backend, registry):
        options = DropdownOptionCache(backend, registry).fetch_options("contacts")
        assert _names(options["type"]) == ["VC", "Angel network"]
        assert _names(options["location"]) == ["Paris"]

    def test_options_for(self, backend, registry):
        cache = DropdownOptionCache(backend, registry)
        assert _names(cache.options_for("general", "location"))[0] == "Lisbon"
        assert cache.options_for("general", "year") == []

    def test_unknown_dataset(self, backend, registry):
        with pytest.raises(UnknownDatasetError):
            DropdownOptionCache(backend, registry).fetch_options("nope")

    def test_failure_not_cached(self, make_backend, registry):
        broken = make_backend(routes={"/api/events/locations": None})
        cache = DropdownOptionCache(broken, registry)
        with pytest.raises(FetchError):
            cache.fetch_options("general")
        broken.routes["/api/events/locations"] = ["Rome"]
        assert _names(cache.fetch_options("general")["location"]) == ["Rome"]

    def test_bad_shape_is_decode_error(self, make_backend, registry):
        odd = make_backend(routes={"/api/events/locations": "Berlin"})
        with pytest.raises(FetchError) as info:
            DropdownOptionCache(odd, registry).fetch_options("general")
        assert info.value.kind == "decode"
        assert info.value.endpoint == "/api/events/locations"
