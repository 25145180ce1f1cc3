"""
Test suite for result shape decoding.

Tests:
- Field mapping from API JSON
- Defaults for missing keys
- DecodeError on wrong top-level types
- People response tagged union
"""

import pytest

from mixpanel_driver import (
    EventQueryResult,
    SegmentationQueryResult,
    ExportRecord,
    TopEventsResult,
    PeopleQueryResult,
    RawResult,
    DecodeError,
)
from mixpanel_driver.models import parse_common_events, parse_people_response


class TestEventQueryResult:
    """Test events/properties and segmentation shapes."""

    def test_from_dict(self, event_query_response):
        """Test full payload decoding."""
        result = EventQueryResult.from_dict(event_query_response)
        assert result.legend_size == 2
        assert result.values["free"] == {"2024-01-01": 40, "2024-01-02": 38}

    def test_missing_keys_default_to_empty(self):
        """Test absent keys decode to empty values."""
        result = EventQueryResult.from_dict({})
        assert result == EventQueryResult(legend_size=0, series=[], values={})

    def test_segmentation_shares_layout(self, event_query_response):
        """Test segmentation decodes with its own type."""
        result = SegmentationQueryResult.from_dict(event_query_response)
        assert isinstance(result, SegmentationQueryResult)
        assert result.series == ["2024-01-01", "2024-01-02"]

    def test_non_object_raises(self):
        """Test a list body is rejected."""
        with pytest.raises(DecodeError) as exc_info:
            EventQueryResult.from_dict([1, 2])
        assert exc_info.value.details["received"] == "list"


class TestExportRecord:
    """Test export record decoding."""

    def test_from_dict(self):
        """Test event name and properties."""
        record = ExportRecord.from_dict({"event": "a", "properties": {"time": 1, "x": "y"}})
        assert record.event == "a"
        assert record.properties == {"time": 1, "x": "y"}

    def test_missing_properties(self):
        """Test absent properties become an empty dict."""
        assert ExportRecord.from_dict({"event": "a"}).properties == {}

    def test_non_object_raises(self):
        """Test scalar lines are rejected."""
        with pytest.raises(DecodeError):
            ExportRecord.from_dict("a")


class TestTopEventsResult:
    """Test top events decoding."""

    def test_from_dict(self, top_events_response):
        """Test ranking fields."""
        result = TopEventsResult.from_dict(top_events_response)
        assert result.events[0].amount == 2000
        assert result.events[0].percent_change == 0.25

    def test_integer_percent_change(self):
        """Test integral percent_change becomes float."""
        result = TopEventsResult.from_dict({"events": [{"event": "a", "amount": 1, "percent_change": 1}]})
        assert isinstance(result.events[0].percent_change, float)

    def test_empty(self):
        """Test missing events list."""
        assert TopEventsResult.from_dict({"type": "general"}).events == []


class TestCommonEvents:
    """Test events/names decoding."""

    def test_list(self):
        """Test order is preserved."""
        assert parse_common_events(["b", "a"]) == ["b", "a"]

    def test_object_raises(self):
        """Test an object body is rejected."""
        with pytest.raises(DecodeError):
            parse_common_events({"a": 1})


class TestPeopleResponse:
    """Test engage decoding."""

    def test_known_shape(self, people_response):
        """Test results list produces PeopleQueryResult."""
        result = parse_people_response(people_response)
        assert isinstance(result, PeopleQueryResult)
        assert result.page_size == 1000
        assert result.status == "ok"
        assert result.results[0].properties["plan"] == "premium"

    def test_empty_results(self):
        """Test empty results list is still the known shape."""
        result = parse_people_response({"results": []})
        assert isinstance(result, PeopleQueryResult)
        assert result.results == []

    @pytest.mark.parametrize("body", [
        {"error": "denied"},
        {"results": "oops"},
        ["not", "an", "object"],
        None,
    ])
    def test_unknown_shape_falls_back(self, body):
        """Test anything without a results list is RawResult."""
        result = parse_people_response(body)
        assert isinstance(result, RawResult)
        assert result.data == body


class TestNestedTypeChecks:
    """Test wrongly typed nested fields raise DecodeError."""

    @pytest.mark.parametrize("properties", [5, True, [1], [["x", "y"]], "text"])
    def test_export_properties_must_be_object(self, properties):
        """Test non-object properties are rejected rather than coerced."""
        with pytest.raises(DecodeError) as exc_info:
            ExportRecord.from_dict({"event": "a", "properties": properties})
        assert exc_info.value.details["shape"] == "ExportRecord.properties"

    def test_export_event_must_be_string(self):
        """Test a numeric event name is rejected."""
        with pytest.raises(DecodeError):
            ExportRecord.from_dict({"event": 7, "properties": {}})

    def test_null_fields_default_to_empty(self):
        """Test JSON null decodes like a missing key."""
        record = ExportRecord.from_dict({"event": None, "properties": None})
        assert record == ExportRecord(event="", properties={})

    @pytest.mark.parametrize("body", [
        {"data": {"series": 5}},
        {"data": {"series": [1]}},
        {"data": {"values": {"x": {"2024-01-01": "12"}}}},
        {"data": []},
        {"legend_size": True},
    ])
    def test_breakdown_nested_mismatch(self, body):
        """Test breakdown tables reject wrongly typed members."""
        with pytest.raises(DecodeError):
            EventQueryResult.from_dict(body)

    @pytest.mark.parametrize("item", [
        {"percent_change": "n/a"},
        {"amount": 1.5},
        {"amount": False},
    ])
    def test_top_event_mismatch(self, item):
        """Test ranking entries reject wrongly typed numbers."""
        with pytest.raises(DecodeError):
            TopEventsResult.from_dict({"events": [item]})

    def test_common_events_items_must_be_strings(self):
        """Test non-string event names are rejected."""
        with pytest.raises(DecodeError):
            parse_common_events(["a", 1])

    def test_people_properties_must_be_object(self):
        """Test list-valued $properties is rejected."""
        with pytest.raises(DecodeError):
            parse_people_response({"results": [{"$properties": [["k", "v"]]}]})
