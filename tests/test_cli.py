import io

from pmacct_prometheus.cli.run_exporter import build_pump, config_from_args
from pmacct_prometheus.core.aggregator import FlowCounters


def test_config_from_args(monkeypatch):
    monkeypatch.delenv("PMACCT_EXPORTER_LISTEN", raising=False)
    cfg = config_from_args(
        [
            "--addr", ":9100",
            "--verbose",
            "--city-db", "",
            "--local-address", "203.0.113.7",
            "--collector-command", '["pmacctd", "-i", "eth0"]',
        ]
    )
    assert cfg.listen == ":9100"
    assert cfg.verbose is True
    assert cfg.city_db == ""
    assert cfg.local_addresses == ["203.0.113.7"]
    assert cfg.collector_command == ["pmacctd", "-i", "eth0"]


def test_build_pump_wires_pipeline(resolver, local_addresses):
    counters = FlowCounters()
    out = []
    pump = build_pump(resolver, local_addresses, counters, out.append)
    pump.run(io.StringIO('hello\n{"ip_src":"10.0.1.1","ip_dst":"10.0.2.1","packets":2,"bytes":143}\n'))
    assert out == ["hello"]
    assert counters.value(("in", "private", "", "", "")) == 143
