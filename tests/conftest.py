"""
Pytest fixtures for the explorer tests.

Provides a canned backend (``FakeBackend``) that answers ``get_json`` from a
route table instead of the network, sample payloads for each dataset family,
and a ready-made ``ExplorerSession`` per view.

The fake subclasses ``ApiClient`` and overrides only ``get_json``, so the
envelope unwrapping and shape checks of ``fetch_records`` / ``fetch_count`` /
``fetch_analytics`` still run against the canned payloads.
"""

import sys
import threading
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from explorer.catalog import build_registry  # noqa: E402
from explorer.client import ApiClient  # noqa: E402
from explorer.errors import FetchError  # noqa: E402
from explorer.fetch import FetchCoordinator  # noqa: E402
from explorer.session import ExplorerSession  # noqa: E402


# ── Fake backend ──────────────────────────────────────────────────────────────

class FakeBackend(ApiClient):
    """ApiClient whose responses come from a ``{endpoint: response}`` table.

    A response may be a JSON-like value, an exception instance (raised), or a
    callable taking the request params. Unknown endpoints answer HTTP 404.
    """

    def __init__(self, routes=None):
        super().__init__(base_url="http://backend.test")
        self.routes = dict(routes or {})
        self.calls = []
        self._lock = threading.Lock()

    def get_json(self, endpoint, params=None):
        params = dict(params or {})
        with self._lock:
            self.calls.append((endpoint, params))
        response = self.routes.get(endpoint)
        if response is None:
            raise FetchError(f"{endpoint} returned HTTP 404", kind="http",
                             status=404, endpoint=endpoint)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params)
        return response

    def calls_to(self, endpoint):
        """Params of every request made to *endpoint*, in order."""
        with self._lock:
            return [p for e, p in self.calls if e == endpoint]


# ── Sample payloads ───────────────────────────────────────────────────────────

EVENTS = [
    {"id": 1, "eventName": "Web Summit", "eventType": "Conference",
     "location": "Lisbon", "startDate": "2025-11-10", "endDate": "2025-11-13"},
    {"id": 2, "eventName": "Slush", "eventType": "Conference",
     "location": "Helsinki", "startDate": "2025-11-19", "endDate": "2025-11-20"},
    {"id": 3, "eventName": "Founders Meetup", "eventType": "Meetup",
     "location": "Berlin", "startDate": "TBA"},
]

EUROPEAN_EVENTS = [
    {"id": 10, "eventName": "VivaTech", "dateText": "11/06/2025",
     "month": "June", "location": "Paris"},
    {"id": 11, "eventName": "TNW", "dateText": "to be announced",
     "month": "June", "location": "Amsterdam"},
]

CITIES = [
    {"id": 1, "rank": "1", "city": "San Francisco", "country": "United States",
     "totalScore": "98.5"},
    {"id": 2, "rank": "2", "city": "London", "country": "United Kingdom",
     "totalScore": "91.0"},
    {"id": 3, "rank": "3", "city": "New York", "country": "United States",
     "totalScore": "90.2"},
]

COUNTRIES = [
    {"id": 1, "rank": 1, "country": "United States", "totalScore": "100"},
    {"id": 2, "rank": 2, "country": "United Kingdom", "totalScore": "80"},
]

COUNTRY_ANALYTICS = {
    "researchQuality": [{"country": "United States", "value": 95},
                        {"country": "United Kingdom", "value": 90}],
    "industryImpact": [{"country": "United States", "value": 88}],
    "total": 2,
}

UNIVERSITIES = [
    {"id": 1, "rank": "1", "name": "MIT", "country": "United States", "year": "2024",
     "researchQualityScore": "99", "industryImpactScore": "95"},
    {"id": 2, "rank": "2", "name": "Oxford", "country": "United Kingdom", "year": "2024",
     "researchQualityScore": "97", "industryImpactScore": "80"},
    {"id": 3, "rank": "3", "name": "Stanford", "country": "United States", "year": "2024",
     "researchQualityScore": "98", "industryImpactScore": "93"},
]

INVESTORS = [
    {"id": 1, "name": "Ada Angel", "type": "Angel", "location": "London",
     "sweetSpot": "2", "investmentMax": "7"},
    {"id": 2, "name": "Vera Capital", "type": "VC", "location": "Berlin",
     "sweetSpot": "30", "investmentMax": "150"},
    {"id": 3, "name": "Null Partner", "type": "VC", "location": "undefined",
     "sweetSpot": None, "investmentMax": None},
]

INVESTOR_ANALYTICS = {
    "locations": [{"name": "London", "value": 120}, {"name": "Berlin", "value": 80}],
    "types": [{"name": "VC", "value": 150}, {"name": "Angel", "value": 50}],
}

CONTACTS = [
    {"id": 7, "companyName": "Acme Ventures", "domain": "acme.vc",
     "investorType": "VC", "location": "Paris", "numberOfInvestments": "42"},
    {"id": 8, "companyName": "", "domain": "seedlings.io",
     "investorType": "Angel network", "location": "Paris"},
]


INVESTOR_STATS = {
    "totalInvestors": 1200, "totalContacts": "1,200", "vcFunds": 300,
    "angelInvestors": 150, "lastUpdated": "yesterday",
}

STARTUPS = [
    {"id": 1, "name": "Klarity", "country": "United States", "state": "California",
     "rank": "4", "srScore2": "88.5", "industry": "saas"},
    {"id": 2, "name": "Nordlys", "country": "Norway", "state": None,
     "rank": "12", "srScore2": "", "industry": "fintech"},
]

STARTUP_ANALYTICS = {
    "countryDistribution": [{"name": "United States", "value": 900},
                            {"name": "Norway", "value": 40}],
    "industryDistribution": [{"name": "saas", "value": 300}],
    "stateDistribution": [{"name": "California", "value": 400}, {"name": "", "value": 3}],
}

GROWTH_COMPANIES = [
    {"id": 1, "name": "Rampart", "location": "Austin, TX", "growjoRanking": "17",
     "industry": "security", "totalFunding": "$45M", "employeeGrowthPercent": "120%"},
    {"id": 2, "name": "Tiller", "location": "Denver, CO", "growjoRanking": "230",
     "industry": "software", "totalFunding": "$1.2B", "employeeGrowthPercent": "30%"},
    {"id": 3, "name": "Quill", "location": "Boston, MA", "growjoRanking": "n/a",
     "industry": "software", "totalFunding": None, "employeeGrowthPercent": None},
]

FRANCHISES = [
    {"id": 1, "title": "Crumbly Cookies", "rank": "3", "industry": "Food",
     "initialInvestment": "$250,000", "founded": 2008},
    {"id": 2, "title": "Sparkle Wash", "rank": "40", "industry": "Services",
     "initialInvestment": "$75K", "founded": 1985},
]

VC_FIRMS = [
    {"id": 1, "title": "Fjord Capital", "location": "Oslo", "aum": "$750M",
     "investmentStage": "Seed", "regionOfInvestment": "Europe", "industry": "fintech"},
    {"id": 2, "title": "Mesa Partners", "location": "Phoenix", "aum": "$2B",
     "investmentStage": "Series A", "regionOfInvestment": "North America",
     "industry": "health"},
]

VC_ANALYTICS = {
    "investmentStageDistribution": [{"name": "Seed", "value": 70}],
    "aumDistribution": [{"name": "Over $1B", "value": 12}],
    "regionalDistribution": [{"name": "Europe", "value": 50},
                             {"name": "North America", "value": 45}],
    "industryDistribution": [{"name": "fintech", "value": 33}, {"name": "health", "value": 21}],
}


def default_routes():
    return {
        "/api/events": EVENTS,
        "/api/events/count": {"count": 45},
        "/api/events/unique-types": {"types": ["Conference", "Meetup", "", "Conference"]},
        "/api/events/locations": ["Lisbon", "Helsinki", "Berlin"],
        "/api/events/european-startup": EUROPEAN_EVENTS,
        "/api/events/european-startup/count": {"count": "2"},
        "/api/events/european-startup/unique-types": {"types": ["Summit"]},
        "/api/events/european-startup/locations": ["Paris", "Amsterdam"],
        "/api/rankings/cities": CITIES,
        "/api/rankings/cities/count": {"count": 3},
        "/api/rankings/countries": COUNTRIES,
        "/api/rankings/countries/count": {"count": 2},
        "/api/rankings/countries/analytics": COUNTRY_ANALYTICS,
        "/api/rankings/universities": [],
        "/api/rankings/universities/count": {"count": 0},
        "/api/investors": INVESTORS,
        "/api/investors/count": {"count": 3},
        "/api/investors/analytics": INVESTOR_ANALYTICS,
        "/api/investors/contacts": {"items": CONTACTS},
        "/api/investors/contacts/count": {"count": 2},
        "/api/investors/contacts/charts": CONTACTS,
        "/api/investors/stats": INVESTOR_STATS,
        "/api/companies/startups": STARTUPS,
        "/api/companies/startups/count": {"count": 2},
        "/api/companies/startups/analytics": STARTUP_ANALYTICS,
        "/api/companies/growth": GROWTH_COMPANIES,
        "/api/companies/growth/count": {"count": 3},
        "/api/companies/growth/analytics": {},
        "/api/companies/franchises": FRANCHISES,
        "/api/companies/franchises/count": {"count": 2},
        "/api/companies/franchises/analytics": {"industryDistribution": []},
        "/api/companies/vc": VC_FIRMS,
        "/api/companies/vc/count": {"count": 2},
        "/api/companies/vc/analytics": VC_ANALYTICS,
    }


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture()
def registry():
    """Fresh registry with every built-in dataset and view."""
    return build_registry()


@pytest.fixture()
def make_backend():
    """Factory: FakeBackend with the sample routes, some replaced by *routes*."""
    def _make(routes=None):
        table = default_routes()
        table.update(routes or {})
        return FakeBackend(table)
    return _make


@pytest.fixture()
def backend(make_backend):
    """FakeBackend serving the sample payloads."""
    return make_backend()


@pytest.fixture()
def make_session(backend, registry):
    """Factory for sessions bound to the fake backend; coordinators are closed
    after the test."""
    coordinators = []

    def _make(view="events", **kwargs):
        coordinator = kwargs.pop("coordinator", None) or FetchCoordinator()
        coordinators.append(coordinator)
        return ExplorerSession(view, backend, registry=registry,
                               coordinator=coordinator, **kwargs)

    yield _make
    for coordinator in coordinators:
        coordinator.close()
