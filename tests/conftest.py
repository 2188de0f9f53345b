import ipaddress
import pytest

from pmacct_prometheus.core.aggregator import FlowCounters, MetricAggregator
from pmacct_prometheus.core.enricher import FlowEnricher
from pmacct_prometheus.core.pump import LinePump
from pmacct_prometheus.core.resolver import AsnRecord, CityRecord, PeerResolver


class FakeCityLookup:
    def __init__(self, records=None):
        self.records = {ipaddress.ip_address(k): v for k, v in (records or {}).items()}
        self.calls = 0

    def lookup_city(self, ip):
        self.calls += 1
        return self.records.get(ip)


class FakeAsnLookup:
    def __init__(self, records=None):
        self.records = {ipaddress.ip_address(k): v for k, v in (records or {}).items()}
        self.calls = 0

    def lookup_asn(self, ip):
        self.calls += 1
        return self.records.get(ip)


@pytest.fixture
def city_lookup():
    return FakeCityLookup(
        {
            "8.8.8.8": CityRecord(
                country="United States",
                country_iso="US",
                city="",
                latitude=37.751,
                longitude=-97.822,
            ),
            "81.2.69.142": CityRecord(
                country="United Kingdom",
                country_iso="GB",
                city="London",
                latitude=51.5142,
                longitude=-0.0931,
            ),
        }
    )


@pytest.fixture
def asn_lookup():
    return FakeAsnLookup(
        {
            "8.8.8.8": AsnRecord(number=15169, organization="GOOGLE"),
        }
    )


@pytest.fixture
def resolver(city_lookup, asn_lookup):
    return PeerResolver(city_lookup, asn_lookup)


@pytest.fixture
def local_addresses():
    return frozenset({ipaddress.ip_address("10.0.2.1"), ipaddress.ip_address("192.168.1.10")})


@pytest.fixture
def counters():
    return FlowCounters()


@pytest.fixture
def aggregator(counters):
    return MetricAggregator(counters)


@pytest.fixture
def enricher(resolver, local_addresses):
    return FlowEnricher(resolver, local_addresses)


@pytest.fixture
def sink():
    return []


@pytest.fixture
def pump(enricher, aggregator, sink):
    return LinePump(enricher, aggregator, diagnostic_sink=sink.append)
