"""
Result shapes returned by the Mixpanel query endpoints.

Each shape is a plain dataclass with a `from_dict` constructor. Keys missing
from a response (or set to null) decode to the field's empty value; a value
of the wrong JSON type, at any depth, raises DecodeError.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Union, Callable

from .exceptions import DecodeError


class Host(Enum):
    """Base URLs of the Mixpanel query API"""
    MAIN = "http://mixpanel.com/api/2.0"
    EXPORT = "http://data.mixpanel.com/api/2.0"


def _expect(data: Any, kind, shape: str) -> Any:
    kinds = kind if isinstance(kind, tuple) else (kind,)
    # JSON true/false must not pass as a number
    if not isinstance(data, kinds) or (isinstance(data, bool) and bool not in kinds):
        raise DecodeError(
            f"Expected JSON {'/'.join(k.__name__ for k in kinds)} for {shape}, "
            f"got {type(data).__name__}",
            details={"shape": shape, "received": type(data).__name__}
        )
    return data


def _field(data: Dict[str, Any], key: str, kind, default: Callable[[], Any], shape: str) -> Any:
    value = data.get(key)
    if value is None:
        return default()
    return _expect(value, kind, f"{shape}.{key}")


def _count_table(data: Any, shape: str) -> Dict[str, Dict[str, int]]:
    table = {}
    for name, counts in _expect(data, dict, shape).items():
        counts = _expect(counts, dict, f"{shape}[{name!r}]")
        table[name] = {
            date: _expect(count, int, f"{shape}[{name!r}][{date!r}]")
            for date, count in counts.items()
        }
    return table


@dataclass
class EventQueryResult:
    """
    Breakdown returned by events/properties.

    `values` maps each property value to a {date: count} table,
    `series` lists the dates in order.
    """
    legend_size: int = 0
    series: List[str] = field(default_factory=list)
    values: Dict[str, Dict[str, int]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any):
        shape = cls.__name__
        data = _expect(data, dict, shape)
        body = _field(data, "data", dict, dict, shape)
        series = _field(body, "series", list, list, f"{shape}.data")
        return cls(
            legend_size=_field(data, "legend_size", int, int, shape),
            series=[_expect(date, str, f"{shape}.data.series[]") for date in series],
            values=_count_table(_field(body, "values", dict, dict, f"{shape}.data"),
                                f"{shape}.data.values"),
        )


@dataclass
class SegmentationQueryResult(EventQueryResult):
    """Breakdown returned by segmentation (same layout as events/properties)"""
    pass


@dataclass
class ExportRecord:
    """One raw event from the export stream"""
    event: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "ExportRecord":
        data = _expect(data, dict, "ExportRecord")
        return cls(
            event=_field(data, "event", str, str, "ExportRecord"),
            properties=dict(_field(data, "properties", dict, dict, "ExportRecord")),
        )


@dataclass
class TopEvent:
    event: str = ""
    amount: int = 0
    percent_change: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> "TopEvent":
        data = _expect(data, dict, "TopEvent")
        return cls(
            event=_field(data, "event", str, str, "TopEvent"),
            amount=_field(data, "amount", int, int, "TopEvent"),
            percent_change=float(_field(data, "percent_change", (int, float), float, "TopEvent")),
        )


@dataclass
class TopEventsResult:
    """Ranking returned by events/top, most frequent first"""
    type: str = ""
    events: List[TopEvent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "TopEventsResult":
        data = _expect(data, dict, "TopEventsResult")
        return cls(
            type=_field(data, "type", str, str, "TopEventsResult"),
            events=[
                TopEvent.from_dict(item)
                for item in _field(data, "events", list, list, "TopEventsResult")
            ],
        )


CommonEventsResult = List[str]


def parse_common_events(data: Any) -> CommonEventsResult:
    """Decode the events/names list"""
    return [
        _expect(name, str, "CommonEventsResult[]")
        for name in _expect(data, list, "CommonEventsResult")
    ]


@dataclass
class PeopleRecord:
    """A profile from the engage endpoint"""
    distinct_id: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "PeopleRecord":
        data = _expect(data, dict, "PeopleRecord")
        return cls(
            distinct_id=str(_field(data, "$distinct_id", (str, int), str, "PeopleRecord")),
            properties=dict(_field(data, "$properties", dict, dict, "PeopleRecord")),
        )


@dataclass
class PeopleQueryResult:
    """
    Profiles returned by engage.

    `raw` keeps the full decoded body for fields not modelled here.
    """
    results: List[PeopleRecord] = field(default_factory=list)
    page: int = 0
    page_size: int = 0
    session_id: str = ""
    status: str = ""
    total: int = 0
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PeopleQueryResult":
        shape = "PeopleQueryResult"
        return cls(
            results=[
                PeopleRecord.from_dict(item)
                for item in _field(data, "results", list, list, shape)
            ],
            page=_field(data, "page", int, int, shape),
            page_size=_field(data, "page_size", int, int, shape),
            session_id=_field(data, "session_id", str, str, shape),
            status=_field(data, "status", str, str, shape),
            total=_field(data, "total", int, int, shape),
            raw=data,
        )


@dataclass
class RawResult:
    """Fallback for responses whose shape is not recognised"""
    data: Any = None


PeopleResponse = Union[PeopleQueryResult, RawResult]


def parse_people_response(data: Any) -> PeopleResponse:
    """
    Decode an engage response.

    Bodies carrying a `results` list become PeopleQueryResult; anything
    else (error payloads, future formats) is wrapped in RawResult.
    """
    if isinstance(data, dict) and isinstance(data.get("results"), list):
        return PeopleQueryResult.from_dict(data)
    return RawResult(data=data)
