import logging

from settings import DEFAULT_PORT, resolve_port


def test_cli_port_wins(tmp_path):
    port_file = tmp_path / "myport.info"
    port_file.write_text("4000\n")
    assert resolve_port(5000, str(port_file)) == 5000


def test_port_file_used(tmp_path):
    port_file = tmp_path / "myport.info"
    port_file.write_text("4000\n")
    assert resolve_port(None, str(port_file)) == 4000


def test_missing_port_file_uses_default(tmp_path):
    assert resolve_port(None, str(tmp_path / "absent.info")) == DEFAULT_PORT


def test_bad_port_file_warns(tmp_path, caplog):
    port_file = tmp_path / "myport.info"
    port_file.write_text("not a port")
    with caplog.at_level(logging.WARNING):
        assert resolve_port(None, str(port_file)) == DEFAULT_PORT
    assert "Invalid port" in caplog.text
