"""
Record variants -- one pydantic model per dataset record shape.

Datasets expose unrelated record shapes, so instead of checking optional
fields on a generic dict every dataset declares a ``record_type`` and rows are
parsed into the matching model. The backend speaks camelCase; models expose
snake_case attributes and accept either. Unknown fields are kept (``extra``).

Numeric columns arrive as strings from the backend's numeric types; they are
coerced to float, with blanks and junk becoming ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Annotated, Any, ClassVar, Iterable, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from utils.patterns import DMY_DATE, ISO_DATE, YMD_DATE
from utils.strings import is_placeholder, safe_float

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float | None:
    if is_placeholder(value):
        return None
    parsed = safe_float(value, default=float("nan"))
    return None if parsed != parsed else parsed


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


Number = Annotated[Optional[float], BeforeValidator(_to_float)]
Text = Annotated[Optional[str], BeforeValidator(_to_text)]
RecordId = Union[int, str, None]


# ── Dates ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EventSchedule:
    """Start and end day of an event; both ``None`` means unscheduled."""

    start: date | None = None
    end: date | None = None

    @property
    def is_scheduled(self) -> bool:
        return self.start is not None

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
        }


UNSCHEDULED = EventSchedule()


def parse_event_date(text: Any) -> date | None:
    """Parse the date formats the event feeds use.

    Tries, in order: ISO (date or datetime prefix), ``DD/MM/YYYY`` or
    ``DD-MM-YYYY``, and ``YYYY/MM/DD``. Returns ``None`` when nothing matches
    or the numbers do not form a real date.

    Example:
        parse_event_date("2025-09-05T10:00:00Z") -> date(2025, 9, 5)
        parse_event_date("05/09/2025") -> date(2025, 9, 5)
        parse_event_date("TBA") -> None
    """
    if isinstance(text, date):
        return text
    if is_placeholder(text):
        return None
    s = str(text).strip()
    try:
        m = ISO_DATE.match(s)
        if m:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        m = DMY_DATE.match(s)
        if m:
            return date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        m = YMD_DATE.match(s)
        if m:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        logger.debug("Date %r matched a pattern but is not a real date", s)
    return None


# ── Models ────────────────────────────────────────────────────────────────────


class BaseRecord(BaseModel):
    """Common behaviour of every record variant."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    record_type: ClassVar[str] = ""
    # Attribute names tried in order for display_name
    name_fields: ClassVar[tuple[str, ...]] = ()

    id: RecordId = Field(None, description="Backend row id")

    @property
    def record_id(self) -> RecordId:
        return self.id

    @property
    def display_name(self) -> str:
        for name in self.name_fields:
            value = getattr(self, name, None)
            if not is_placeholder(value):
                return str(value).strip()
        return "Unknown"

    def to_dict(self) -> dict:
        data = self.model_dump(by_alias=True)
        data["recordType"] = self.record_type
        data["displayName"] = self.display_name
        return data


class EventRecord(BaseRecord):
    """A general event."""
    record_type: ClassVar[str] = "event"
    name_fields: ClassVar[tuple[str, ...]] = ("event_name",)

    event_name: Text = None
    event_type: Text = None
    location: Text = None
    start_date: Text = None
    end_date: Text = None
    link: Text = None

    def schedule(self) -> EventSchedule:
        start = parse_event_date(self.start_date)
        if start is None:
            return UNSCHEDULED
        return EventSchedule(start, parse_event_date(self.end_date) or start)


class EuropeanEventRecord(BaseRecord):
    """A European startup event; the date is free text."""
    record_type: ClassVar[str] = "european_event"
    name_fields: ClassVar[tuple[str, ...]] = ("event_name",)

    event_name: Text = None
    date_text: Text = None
    month: Text = None
    location: Text = None
    website_url: Text = None

    def schedule(self) -> EventSchedule:
        start = parse_event_date(self.date_text)
        if start is None:
            return UNSCHEDULED
        return EventSchedule(start, start)


class CityRankingRecord(BaseRecord):
    record_type: ClassVar[str] = "city_ranking"
    name_fields: ClassVar[tuple[str, ...]] = ("city",)

    rank: Number = None
    city: Text = None
    country: Text = None
    rank_change: Text = None
    total_score: Number = None


class CountryRankingRecord(BaseRecord):
    record_type: ClassVar[str] = "country_ranking"
    name_fields: ClassVar[tuple[str, ...]] = ("country",)

    rank: Number = None
    country: Text = None
    rank_change: Text = None
    total_score: Number = None


class UniversityRankingRecord(BaseRecord):
    record_type: ClassVar[str] = "university_ranking"
    name_fields: ClassVar[tuple[str, ...]] = ("name",)

    rank: Number = None
    name: Text = None
    country: Text = None
    year: Text = None
    overall_score: Number = None
    teaching_score: Number = None
    research_environment_score: Number = None
    research_quality_score: Number = None
    industry_impact_score: Number = None
    international_outlook_score: Number = None


class InvestorRecord(BaseRecord):
    """An individual investor profile."""
    record_type: ClassVar[str] = "investor"
    name_fields: ClassVar[tuple[str, ...]] = ("name",)

    name: Text = None
    type: Text = None
    location: Text = None
    current_position: Text = None
    investment_min: Number = None
    investment_max: Number = None
    sweet_spot: Number = None
    current_fund_size: Number = None


class InvestorContactRecord(BaseRecord):
    """An investment firm contact."""
    record_type: ClassVar[str] = "investor_contact"
    name_fields: ClassVar[tuple[str, ...]] = ("company_name", "domain")

    company_name: Text = None
    domain: Text = None
    investor_type: Text = None
    location: Text = None
    country: Text = None
    industries: Text = None
    number_of_investments: Number = None
    number_of_exits: Number = None


class StartupRecord(BaseRecord):
    """A ranked startup profile."""
    record_type: ClassVar[str] = "startup"
    name_fields: ClassVar[tuple[str, ...]] = ("name",)

    name: Text = None
    country: Text = None
    state: Text = None
    rank: Number = None
    sr_score2: Number = None
    founded: Text = None
    industry: Text = None
    tags: Text = None
    website: Text = None
    short_description: Text = None


class GrowthCompanyRecord(BaseRecord):
    """A fast-growing company. Money columns stay text ("$12.5M")."""
    record_type: ClassVar[str] = "growth_company"
    name_fields: ClassVar[tuple[str, ...]] = ("name",)

    name: Text = None
    location: Text = None
    growjo_ranking: Number = None
    industry: Text = None
    annual_revenue: Text = None
    total_funding: Text = None
    employees: Text = None
    employee_growth_percent: Text = None
    valuation: Text = None


class FranchiseRecord(BaseRecord):
    record_type: ClassVar[str] = "franchise"
    name_fields: ClassVar[tuple[str, ...]] = ("title",)

    title: Text = None
    rank: Number = None
    industry: Text = None
    initial_investment: Text = None
    founded: Number = None
    num_of_units: Number = None
    num_of_employees_at_hq: Number = None
    units_as_of_2024: Text = None


class VcFirmRecord(BaseRecord):
    record_type: ClassVar[str] = "vc_firm"
    name_fields: ClassVar[tuple[str, ...]] = ("title",)

    title: Text = None
    location: Text = None
    founded: Text = None
    aum: Text = None
    investment_ticket: Text = None
    investment_stage: Text = None
    industry: Text = None
    region_of_investment: Text = None


RECORD_TYPES: dict[str, type[BaseRecord]] = {
    model.record_type: model
    for model in (
        EventRecord,
        EuropeanEventRecord,
        CityRankingRecord,
        CountryRankingRecord,
        UniversityRankingRecord,
        InvestorRecord,
        InvestorContactRecord,
        StartupRecord,
        GrowthCompanyRecord,
        FranchiseRecord,
        VcFirmRecord,
    )
}


def parse_record(record_type: str, raw: dict) -> BaseRecord:
    """Parse one backend row into the model registered for *record_type*.

    Raises:
        ValueError: unknown record type, or a row that is not an object
            (pydantic's ValidationError is a ValueError).
    """
    try:
        model = RECORD_TYPES[record_type]
    except KeyError:
        raise ValueError(f"Unknown record type: {record_type!r}") from None
    return model.model_validate(raw)


def parse_records(record_type: str, rows: Iterable[dict]) -> list[BaseRecord]:
    return [parse_record(record_type, row) for row in rows]
