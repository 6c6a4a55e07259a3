import json
import socket

import pytest

from apps import simulate_stream, watch_feed
from fakeadsb.sbs import ParsedMessage
from fakeadsb.server import FeedServer


def test_parse_args_uses_env(monkeypatch):
    monkeypatch.setenv("ADSB_SIM_PORT", "31003")
    monkeypatch.setenv("ADSB_SIM_PATTERN", "flyover")
    monkeypatch.setenv("ADSB_SIM_SEND_INTERVAL", "0.5")
    args = simulate_stream.parse_args([])
    assert args.port == 31003
    assert args.pattern == "flyover"
    assert args.interval == 0.5
    assert args.tick == 0.1
    assert args.fleet_file is None


def test_parse_args_rejects_non_positive_interval():
    with pytest.raises(SystemExit):
        simulate_stream.parse_args(["--interval", "0"])


def test_invalid_fleet_file_exits(tmp_path):
    path = tmp_path / "fleet.json"
    path.write_text('{"aircraft": []}', encoding="utf-8")
    with pytest.raises(SystemExit) as exc_info:
        simulate_stream.main(["--fleet-file", str(path), "--port", "0"])
    assert exc_info.value.code == 2


def test_bind_failure_exits():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen(1)
        port = busy.getsockname()[1]
        with pytest.raises(SystemExit) as exc_info:
            simulate_stream.main(["--host", "127.0.0.1", "--port", str(port)])
    assert exc_info.value.code == 1


def test_check_layout():
    good = ParsedMessage(raw="", message_type="MSG", transmission_type=4, icao="A1A1A1", field_count=24)
    short = ParsedMessage(raw="", message_type="MSG", transmission_type=3, icao="A1A1A1", field_count=20)
    odd = ParsedMessage(raw="", message_type="MSG", transmission_type=8, icao="A1A1A1", field_count=22)
    assert watch_feed.check_layout(good) is None
    assert "expected 22" in watch_feed.check_layout(short)
    assert "transmission type 8" in watch_feed.check_layout(odd)


def test_watch_reads_simulator(fleet):
    server = FeedServer(fleet, host="127.0.0.1", port=0, send_interval=0.05)
    server.start()
    try:
        host, port = server.address
        tracker = watch_feed.watch(host, port, max_lines=9)
    finally:
        server.stop()
    assert len(tracker) == 3
    assert tracker.get_state("A1A1A1").callsign == "DAL789"
    assert tracker.get_state("C3C3C3").messages == 3


def test_bad_env_value_exits(monkeypatch):
    monkeypatch.setenv("ADSB_SIM_TICK_SECONDS", "0")
    with pytest.raises(SystemExit) as exc_info:
        simulate_stream.main(["--port", "0"])
    assert exc_info.value.code == 2


def test_non_numeric_env_port_exits(monkeypatch):
    monkeypatch.setenv("ADSB_SIM_PORT", "http")
    with pytest.raises(SystemExit) as exc_info:
        simulate_stream.main([])
    assert exc_info.value.code == 2


def test_unknown_log_level_exits():
    with pytest.raises(SystemExit) as exc_info:
        simulate_stream.main(["--port", "0", "--log-level", "BOGUS"])
    assert exc_info.value.code == 2


@pytest.mark.parametrize("overrides", [{"callsign": "   "}, {"icao": "ZZZZZÄ"}, {"icao": " ABC12 "}])
def test_unusable_fleet_entry_exits(tmp_path, overrides):
    entries = [
        {
            "icao": icao,
            "callsign": "TEST",
            "start_lat": 41.38,
            "start_lon": -81.29,
            "speed_factor": 0.0003,
            "start_alt": 30000,
            "alt_rate": 2,
            "ground_speed": 450,
        }
        for icao in ("AAAAAA", "BBBBBB", "CCCCCC")
    ]
    entries[0].update(overrides)
    path = tmp_path / "fleet.json"
    path.write_text(json.dumps({"aircraft": entries}), encoding="utf-8")
    with pytest.raises(SystemExit) as exc_info:
        simulate_stream.main(["--fleet-file", str(path), "--port", "0"])
    assert exc_info.value.code == 2
