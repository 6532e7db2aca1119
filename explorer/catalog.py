"""
Built-in dataset catalog.

Single source of truth for the datasets the dashboard explores and the views
that group them into tabs. Endpoints are paths on the backend
(``EXPLORER_API_BASE_URL``); filter keys are listed in wire order.

    events      general events | European startup events
    rankings    cities | countries | universities
    investors   investors | investor contacts
    companies   startups | growth companies | franchises | VC firms
"""

from __future__ import annotations

from explorer.aggregation import Bucket, ChartSpec
from explorer.datasets import (
    ChartRecordsSource, DatasetDescriptor, DatasetRegistry, ExplorerView, OptionSource,
)
from utils.config import ALL
from utils.strings import parse_dollars, parse_number

# ── Shared vocabularies ───────────────────────────────────────────────────────

# Range filter values accepted by the investors backend, and chart buckets
# (in millions) matching them
MONEY_RANGES = ("1-5", "5-10", "10-25", "25-50", "50-100", "100")

MONEY_BUCKETS = (
    Bucket("$1-5M", 1, 5),
    Bucket("$5-10M", 5, 10),
    Bucket("$10-25M", 10, 25),
    Bucket("$25-50M", 25, 50),
    Bucket("$50-100M", 50, 100),
    Bucket("$100M+", 100, None),
)

RANKING_COUNTRIES = (
    "United States", "United Kingdom", "Germany", "Canada", "Australia", "Singapore",
)
RANKING_YEARS = ("2024", "2023")

# ── Events ────────────────────────────────────────────────────────────────────

EVENT_FILTER_KEYS = ("search", "eventType", "location", "month")

GENERAL_EVENTS = DatasetDescriptor(
    id="general",
    label="Events",
    record_endpoint="/api/events",
    count_endpoint="/api/events/count",
    record_type="event",
    relevant_filter_keys=EVENT_FILTER_KEYS,
    pagination="both",
    translations={"month": "month_number"},
    option_sources={
        "eventType": OptionSource("/api/events/unique-types", field="types"),
        "location": OptionSource("/api/events/locations"),
    },
    charts=(
        ChartSpec("eventTypes", key="event_type", title="Events by type"),
        ChartSpec("locations", key="location", title="Events by location"),
    ),
)

EUROPEAN_EVENTS = DatasetDescriptor(
    id="european",
    label="European Startup Events",
    record_endpoint="/api/events/european-startup",
    count_endpoint="/api/events/european-startup/count",
    record_type="european_event",
    relevant_filter_keys=EVENT_FILTER_KEYS,
    pagination="both",
    translations={"month": "month_number"},
    option_sources={
        "eventType": OptionSource("/api/events/european-startup/unique-types", field="types"),
        "location": OptionSource("/api/events/european-startup/locations"),
    },
    charts=(
        ChartSpec("locations", key="location", title="Events by location"),
        ChartSpec("months", key="month", top_n=12, title="Events by month"),
    ),
)

# ── Rankings ──────────────────────────────────────────────────────────────────

RANKING_FILTER_KEYS = ("search", "country", "year")

RANKING_OPTIONS = {
    "country": OptionSource(values=RANKING_COUNTRIES),
    "year": OptionSource(values=RANKING_YEARS),
}

CITY_RANKINGS = DatasetDescriptor(
    id="cities",
    label="Top Cities",
    record_endpoint="/api/rankings/cities",
    count_endpoint="/api/rankings/cities/count",
    record_type="city_ranking",
    relevant_filter_keys=RANKING_FILTER_KEYS,
    pagination="both",
    option_sources=RANKING_OPTIONS,
    charts=(
        ChartSpec("countries", key="country", title="Cities per country"),
    ),
)

COUNTRY_RANKINGS = DatasetDescriptor(
    id="countries",
    label="Top Countries",
    record_endpoint="/api/rankings/countries",
    count_endpoint="/api/rankings/countries/count",
    analytics_endpoint="/api/rankings/countries/analytics",
    record_type="country_ranking",
    relevant_filter_keys=RANKING_FILTER_KEYS,
    pagination="both",
    option_sources=RANKING_OPTIONS,
    charts=(
        # Country rows only carry a total score; the research and impact
        # breakdowns come from the analytics endpoint
        ChartSpec("researchQuality", key="country", value="total_score",
                  title="Research quality by country"),
        ChartSpec("industryImpact", key="country", value="total_score",
                  title="Industry impact by country"),
    ),
)

UNIVERSITY_RANKINGS = DatasetDescriptor(
    id="universities",
    label="Top Universities",
    record_endpoint="/api/rankings/universities",
    count_endpoint="/api/rankings/universities/count",
    record_type="university_ranking",
    relevant_filter_keys=RANKING_FILTER_KEYS,
    pagination="both",
    fallback_values={"year": "2024"},
    option_sources=RANKING_OPTIONS,
    # No analytics endpoint: charts aggregate one wide fetch for the year
    chart_records=ChartRecordsSource(limit=1000, filter_keys=("year",)),
    charts=(
        ChartSpec("researchQuality", key="country", value="research_quality_score",
                  title="Research quality by country"),
        ChartSpec("industryImpact", key="country", value="industry_impact_score",
                  title="Industry impact by country"),
    ),
)

# ── Investors ─────────────────────────────────────────────────────────────────

INVESTOR_FILTER_KEYS = ("search", "type", "location", "investmentRange", "sweetSpot")

INVESTORS = DatasetDescriptor(
    id="investors",
    label="Investors",
    record_endpoint="/api/investors",
    count_endpoint="/api/investors/count",
    analytics_endpoint="/api/investors/analytics",
    stats_endpoint="/api/investors/stats",
    record_type="investor",
    relevant_filter_keys=INVESTOR_FILTER_KEYS,
    pagination="page",
    option_sources={
        # The unfiltered analytics call doubles as the option source
        "type": OptionSource("/api/investors/analytics", field="types", item_field="type"),
        "location": OptionSource("/api/investors/analytics", field="locations",
                                 item_field="location"),
        "investmentRange": OptionSource(values=MONEY_RANGES),
        "sweetSpot": OptionSource(values=MONEY_RANGES),
    },
    charts=(
        ChartSpec("locations", key="location", title="Investors by location"),
        ChartSpec("types", key="type", title="Investors by type"),
        ChartSpec("sweetSpots", key="sweet_spot", buckets=MONEY_BUCKETS,
                  title="Sweet spot distribution"),
        ChartSpec("investmentRanges", key="investment_max", buckets=MONEY_BUCKETS,
                  title="Maximum investment distribution"),
    ),
)

INVESTOR_CONTACTS = DatasetDescriptor(
    id="contacts",
    label="Investor Contacts",
    record_endpoint="/api/investors/contacts",
    count_endpoint="/api/investors/contacts/count",
    stats_endpoint="/api/investors/stats",
    record_type="investor_contact",
    relevant_filter_keys=INVESTOR_FILTER_KEYS,
    pagination="offset",
    option_sources={
        "type": OptionSource("/api/investors/contacts/charts", item_field="investorType"),
        "location": OptionSource("/api/investors/contacts/charts", item_field="location"),
        "investmentRange": OptionSource(values=MONEY_RANGES),
        "sweetSpot": OptionSource(values=MONEY_RANGES),
    },
    charts=(
        ChartSpec("types", key="investor_type", title="Contacts by investor type"),
        ChartSpec("locations", key="location", title="Contacts by location"),
    ),
)

# ── Companies ─────────────────────────────────────────────────────────────────

# Company analytics always describe the whole dataset; the page filters only
# narrow the table and the count.

COMPANY_INDUSTRIES = (
    "software", "technology", "saas", "fintech", "mobile", "web", "ai",
    "health", "finance", "education", "business", "analytics", "marketing", "security",
)

STARTUPS = DatasetDescriptor(
    id="startups",
    label="Startups",
    record_endpoint="/api/companies/startups",
    count_endpoint="/api/companies/startups/count",
    analytics_endpoint="/api/companies/startups/analytics",
    analytics_filtered=False,
    record_type="startup",
    relevant_filter_keys=("search", "industry", "country", "state", "rank", "srScore2", "founded"),
    pagination="offset",
    option_sources={
        "industry": OptionSource(values=COMPANY_INDUSTRIES),
        "country": OptionSource("/api/companies/startups/analytics",
                                field="countryDistribution", item_field="name"),
        "state": OptionSource("/api/companies/startups/analytics",
                              field="stateDistribution", item_field="name"),
        "rank": OptionSource(values=("1-10", "11-50", "51-100", "101-500", "501-1000")),
    },
    charts=(
        ChartSpec("countryDistribution", key="country", title="Startups by country"),
        ChartSpec("industryDistribution", key="industry", title="Startups by industry"),
        ChartSpec("stateDistribution", key="state", title="Startups by state"),
    ),
)

GROWTH_COMPANIES = DatasetDescriptor(
    id="growth",
    label="Growth Companies",
    record_endpoint="/api/companies/growth",
    count_endpoint="/api/companies/growth/count",
    analytics_endpoint="/api/companies/growth/analytics",
    analytics_filtered=False,
    record_type="growth_company",
    relevant_filter_keys=(
        "search", "industry", "location", "ranking", "annualRevenue", "employees", "growthRate",
    ),
    pagination="offset",
    option_sources={
        "industry": OptionSource(values=COMPANY_INDUSTRIES),
        "ranking": OptionSource(values=("1-100", "101-500", "501-1000", "1000+")),
        "annualRevenue": OptionSource(values=("0-1M", "1M-10M", "10M-100M", "100M+")),
        "employees": OptionSource(values=("1-10", "11-50", "51-200", "201-1000", "1000+")),
        "growthRate": OptionSource(values=("0-10", "10-25", "25-50", "50-100", "100+")),
    },
    charts=(
        ChartSpec("fundingSizeDistribution", key="total_funding", buckets=(
            Bucket("Under $1M", None, 1),
            Bucket("$1M-$10M", 1, 10),
            Bucket("$10M-$50M", 10, 50),
            Bucket("$50M-$100M", 50, 100),
            Bucket("$100M+", 100, 1000),
            Bucket("$1B+", 1000, None),
        ), title="Total funding"),
        ChartSpec("industryDistribution", key="industry", title="Growth companies by industry"),
        ChartSpec("growthRateDistribution", key="employee_growth_percent", parse=parse_number,
                  buckets=(
                      Bucket("0-25%", None, 25),
                      Bucket("25-50%", 25, 50),
                      Bucket("50-100%", 50, 100),
                      Bucket("100-200%", 100, 200),
                      Bucket("200%+", 200, None),
                  ), title="Employee growth"),
    ),
)

FRANCHISES = DatasetDescriptor(
    id="franchises",
    label="Franchises",
    record_endpoint="/api/companies/franchises",
    count_endpoint="/api/companies/franchises/count",
    analytics_endpoint="/api/companies/franchises/analytics",
    analytics_filtered=False,
    record_type="franchise",
    relevant_filter_keys=(
        "search", "industry", "rank", "initialInvestment", "founded", "empAtHq", "units2024",
    ),
    pagination="offset",
    option_sources={
        "industry": OptionSource(values=COMPANY_INDUSTRIES),
        "rank": OptionSource(values=("1-10", "11-50", "51-100", "101-500")),
        "initialInvestment": OptionSource(
            values=("0-50k", "50k-100k", "100k-250k", "250k-500k", "500k+")),
        "founded": OptionSource(
            values=("2020+", "2010-2019", "2000-2009", "1990-1999", "1980-1989", "pre-1980")),
        "empAtHq": OptionSource(values=("1-10", "11-50", "51-200", "201-500", "500+")),
        "units2024": OptionSource(values=("1-10", "11-100", "101-500", "501-1000", "1000+")),
    },
    charts=(
        # Investments are quoted in dollars; buckets are in millions
        ChartSpec("investmentDistribution", key="initial_investment", parse=parse_dollars,
                  buckets=(
                      Bucket("Under $50K", None, 0.05),
                      Bucket("$50K-$100K", 0.05, 0.1),
                      Bucket("$100K-$250K", 0.1, 0.25),
                      Bucket("$250K-$500K", 0.25, 0.5),
                      Bucket("$500K+", 0.5, None),
                  ), title="Initial investment"),
        ChartSpec("industryDistribution", key="industry", title="Franchises by industry"),
        ChartSpec("foundedTimeline", key="founded", parse=parse_number, buckets=(
            Bucket("Before 1990", None, 1990),
            Bucket("1990-1999", 1990, 2000),
            Bucket("2000-2009", 2000, 2010),
            Bucket("2010-2024", 2010, None),
        ), title="Founded"),
    ),
)

VC_FIRMS = DatasetDescriptor(
    id="vc",
    label="VC Firms",
    record_endpoint="/api/companies/vc",
    count_endpoint="/api/companies/vc/count",
    analytics_endpoint="/api/companies/vc/analytics",
    analytics_filtered=False,
    record_type="vc_firm",
    relevant_filter_keys=(
        "search", "location", "industry", "investmentStage", "founded", "aum",
        "regionOfInvestment", "investmentTicket",
    ),
    pagination="offset",
    option_sources={
        "industry": OptionSource("/api/companies/vc/analytics",
                                 field="industryDistribution", item_field="name"),
        "regionOfInvestment": OptionSource("/api/companies/vc/analytics",
                                           field="regionalDistribution", item_field="name"),
        "investmentStage": OptionSource(
            values=("Pre-seed", "Seed", "Series A", "Series B", "Series C", "Late Stage")),
        "aum": OptionSource(values=("under-50m", "50m-100m", "100m-500m", "500m-1b", "over-1b")),
        "investmentTicket": OptionSource(
            values=("$0-1 m", "$1-5 m", "$5-10 m", "$10-50 m", "$100+ m")),
    },
    charts=(
        ChartSpec("investmentStageDistribution", key="investment_stage",
                  title="Firms by investment stage"),
        ChartSpec("aumDistribution", key="aum", buckets=(
            Bucket("Under $50M", None, 50),
            Bucket("$50M-$100M", 50, 100),
            Bucket("$100M-$500M", 100, 500),
            Bucket("$500M-$1B", 500, 1000),
            Bucket("Over $1B", 1000, None),
        ), title="Assets under management"),
        ChartSpec("regionalDistribution", key="region_of_investment",
                  title="Firms by region of investment"),
        ChartSpec("industryDistribution", key="industry", title="Firms by industry"),
    ),
)

DATASETS = (
    GENERAL_EVENTS,
    EUROPEAN_EVENTS,
    CITY_RANKINGS,
    COUNTRY_RANKINGS,
    UNIVERSITY_RANKINGS,
    INVESTORS,
    INVESTOR_CONTACTS,
    STARTUPS,
    GROWTH_COMPANIES,
    FRANCHISES,
    VC_FIRMS,
)

# ── Views ─────────────────────────────────────────────────────────────────────

EVENTS_VIEW = ExplorerView(
    id="events",
    title="Events",
    dataset_ids=("general", "european"),
    default_dataset="general",
    default_filters={"search": "", "eventType": ALL, "location": ALL, "month": ALL},
    page_size=20,
    # Event types differ between the two feeds
    reset_on_switch=("eventType",),
)

RANKINGS_VIEW = ExplorerView(
    id="rankings",
    title="Rankings",
    dataset_ids=("cities", "countries", "universities"),
    default_dataset="cities",
    default_filters={"search": "", "country": ALL, "year": "2024"},
    page_size=25,
)

INVESTORS_VIEW = ExplorerView(
    id="investors",
    title="Investors",
    dataset_ids=("investors", "contacts"),
    default_dataset="investors",
    default_filters={
        "search": "", "type": ALL, "location": ALL,
        "investmentRange": ALL, "sweetSpot": ALL,
    },
    page_size=20,
    # A name search is global: drop the narrowing filters
    clear_on_search=("location", "type"),
)

COMPANIES_VIEW = ExplorerView(
    id="companies",
    title="Companies",
    dataset_ids=("startups", "growth", "franchises", "vc"),
    default_dataset="startups",
    default_filters={
        "search": "", "industry": ALL, "location": ALL, "ranking": ALL,
        "annualRevenue": ALL, "employees": ALL, "growthRate": ALL,
        "rank": ALL, "initialInvestment": ALL, "founded": ALL, "empAtHq": ALL, "units2024": ALL,
        "investmentStage": ALL, "aum": ALL, "regionOfInvestment": ALL, "investmentTicket": ALL,
        "country": ALL, "state": ALL, "srScore2": "",
    },
    page_size=100,
    # Tabs share these keys but not their vocabularies
    reset_on_switch=("industry", "location", "rank", "founded"),
)

VIEWS = (EVENTS_VIEW, RANKINGS_VIEW, INVESTORS_VIEW, COMPANIES_VIEW)


def build_registry() -> DatasetRegistry:
    """Fresh registry holding every built-in dataset and view."""
    return DatasetRegistry(DATASETS, VIEWS)


DEFAULT_REGISTRY = build_registry()
