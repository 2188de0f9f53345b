import pytest

from pmacct_prometheus.core.server import ExporterMCPServer


@pytest.fixture
def server(pump, aggregator, resolver, local_addresses):
    return ExporterMCPServer(pump, aggregator, resolver, local_addresses)


def test_counter_snapshot_sorted(server, pump):
    pump.process_line('{"ip_src":"8.8.8.8","ip_dst":"10.0.2.1","packets":1,"bytes":10}')
    pump.process_line('{"ip_src":"10.0.2.1","ip_dst":"8.8.8.8","packets":1,"bytes":90}')

    rows = server.counter_snapshot()
    assert [r["direction"] for r in rows] == ["out", "in"]
    assert rows[0]["bytes"] == 90
    assert rows[0]["asn_org"] == "GOOGLE"
    assert server.counter_snapshot(limit=1) == rows[:1]


def test_pipeline_status(server, pump):
    pump.process_line("hello")
    status = server.pipeline_status()
    assert status["passthrough"] == 1


def test_resolve_peer(server):
    out = server.resolve_peer("8.8.8.8")
    assert out["ok"] is True
    assert out["ip"] == "8.8.8.8"
    assert out["asn"] == "15169"
    assert server.resolve_peer("bad")["ok"] is False


def test_classify_pair(server):
    assert server.classify_pair("8.8.8.8", "10.0.2.1") == {"ok": True, "direction": "in", "private": False}
    assert server.classify_pair("x", "10.0.2.1")["ok"] is False


def test_list_local_addresses(server):
    assert server.list_local_addresses() == ["10.0.2.1", "192.168.1.10"]
