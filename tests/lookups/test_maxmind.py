import io
import ipaddress
from types import SimpleNamespace

import geoip2.errors
import pytest

from pmacct_prometheus.core.aggregator import FlowCounters, MetricAggregator
from pmacct_prometheus.core.enricher import FlowEnricher
from pmacct_prometheus.core.errors import LookupFailed
from pmacct_prometheus.core.pump import LinePump
from pmacct_prometheus.core.resolver import NullLookup, PeerResolver
from pmacct_prometheus.lookups import maxmind
from pmacct_prometheus.lookups.maxmind import MaxMindAsnLookup, MaxMindCityLookup


class FakeReader:
    def __init__(self, path):
        self.path = path
        self.closed = False
        self.database_type = "GeoLite2-ASN" if "ASN" in path else "GeoLite2-City"

    def metadata(self):
        return SimpleNamespace(database_type=self.database_type)

    def city(self, ip):
        if self.database_type != "GeoLite2-City":
            raise TypeError(f"The city method cannot be used with the {self.database_type} database")
        if ip == "8.8.8.8":
            return SimpleNamespace(
                country=SimpleNamespace(name="United States", iso_code="US"),
                city=SimpleNamespace(name=None),
                location=SimpleNamespace(latitude=37.751, longitude=-97.822),
            )
        if ip == "6.6.6.6":
            raise ValueError("corrupt search tree")
        raise geoip2.errors.AddressNotFoundError(f"{ip} not in database")

    def asn(self, ip):
        if self.database_type != "GeoLite2-ASN":
            raise TypeError(f"The asn method cannot be used with the {self.database_type} database")
        if ip == "8.8.8.8":
            return SimpleNamespace(autonomous_system_number=15169, autonomous_system_organization="GOOGLE")
        if ip == "9.9.9.9":
            return SimpleNamespace(autonomous_system_number=None, autonomous_system_organization=None)
        raise geoip2.errors.AddressNotFoundError(f"{ip} not in database")

    def close(self):
        self.closed = True


@pytest.fixture
def fake_reader(monkeypatch):
    monkeypatch.setattr(maxmind.geoip2.database, "Reader", FakeReader)


@pytest.fixture
def city_db(tmp_path, fake_reader):
    p = tmp_path / "GeoLite2-City.mmdb"
    p.write_bytes(b"")
    return p


@pytest.fixture
def asn_db(tmp_path, fake_reader):
    p = tmp_path / "GeoLite2-ASN.mmdb"
    p.write_bytes(b"")
    return p


def ip(s):
    return ipaddress.ip_address(s)


def test_city_hit(city_db):
    with MaxMindCityLookup(city_db) as lookup:
        rec = lookup.lookup_city(ip("8.8.8.8"))
    assert rec.country == "United States"
    assert rec.country_iso == "US"
    assert rec.city == ""
    assert rec.latitude == 37.751


def test_city_miss_is_none(city_db):
    with MaxMindCityLookup(city_db) as lookup:
        assert lookup.lookup_city(ip("10.0.0.1")) is None


def test_city_backend_error_is_lookup_failed(city_db):
    with MaxMindCityLookup(city_db) as lookup:
        with pytest.raises(LookupFailed):
            lookup.lookup_city(ip("6.6.6.6"))


def test_asn_hit_and_miss(asn_db):
    with MaxMindAsnLookup(asn_db) as lookup:
        rec = lookup.lookup_asn(ip("8.8.8.8"))
        assert rec.number == 15169
        assert rec.organization == "GOOGLE"
        assert lookup.lookup_asn(ip("10.0.0.1")) is None
        assert lookup.lookup_asn(ip("9.9.9.9")) is None


def test_close_releases_reader(asn_db):
    lookup = MaxMindAsnLookup(asn_db)
    reader = lookup.reader
    lookup.close()
    assert reader.closed
    with pytest.raises(LookupFailed):
        lookup.lookup_asn(ip("8.8.8.8"))


def test_missing_database(tmp_path):
    with pytest.raises(FileNotFoundError):
        MaxMindCityLookup(tmp_path / "nope.mmdb")


def test_swapped_databases_fail_at_open(city_db, asn_db):
    with pytest.raises(ValueError, match="GeoLite2-ASN"):
        MaxMindCityLookup(asn_db)
    with pytest.raises(ValueError, match="GeoLite2-City"):
        MaxMindAsnLookup(city_db)


def test_wrong_edition_at_lookup_is_lookup_failed(asn_db):
    lookup = MaxMindCityLookup.__new__(MaxMindCityLookup)
    lookup.db_path = asn_db
    lookup._reader = FakeReader(str(asn_db))

    with pytest.raises(LookupFailed):
        lookup.lookup_city(ip("8.8.8.8"))


def test_wrong_edition_does_not_stop_pump(asn_db):
    lookup = MaxMindCityLookup.__new__(MaxMindCityLookup)
    lookup.db_path = asn_db
    lookup._reader = FakeReader(str(asn_db))

    counters = FlowCounters()
    local = frozenset({ip("10.0.2.1")})
    pump = LinePump(
        FlowEnricher(PeerResolver(lookup, NullLookup()), local),
        MetricAggregator(counters),
        diagnostic_sink=lambda text: None,
    )
    pump.run(io.StringIO('{"ip_src":"8.8.8.8","ip_dst":"10.0.2.1","packets":1,"bytes":40}\n'))

    assert counters.value(("in", "public", "", "", "")) == 40
