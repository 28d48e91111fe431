import socket
from collections import namedtuple

import psutil
import pytest

from dirserve import __main__ as cli
from dirserve import server
from dirserve.paths import ServerConfig

Address = namedtuple("Address", "family address netmask broadcast ptp")


@pytest.fixture
def started(monkeypatch: pytest.MonkeyPatch) -> list[ServerConfig]:
	"""Captures the configurations the server would be run with."""
	res: list[ServerConfig] = []
	monkeypatch.setattr(cli, "run", res.append)
	monkeypatch.setattr(
		psutil,
		"net_if_addrs",
		lambda: {
			"lo": [Address(socket.AF_INET, "127.0.0.1", None, None, None)]
		},
	)
	monkeypatch.setattr(socket, "if_nameindex", lambda: [(1, "lo")])
	return res


def test_options():
	options = cli.parser().parse_args(["-f", "site", "-p", "9000", "-i", "eth0"])
	assert (options.root, options.port, options.interface) == ("site", 9000, "eth0")
	options = cli.parser().parse_args([])
	assert options.root == ""


def test_serve_directory(site, started):
	assert cli.main(["-f", str(site), "-p", "9000"]) == 0
	assert started == [ServerConfig(root=site, file=None, host="127.0.0.1", port=9000)]


def test_serve_file(site, started):
	assert cli.main(["-f", str(site / "index.html"), "-i", "lo"]) == 0
	(config,) = started
	assert config.root == site
	assert config.file == "index.html"
	assert config.host == "127.0.0.1"


def test_missing_root(tmp_path, started, capsys):
	assert cli.main(["-f", str(tmp_path / "missing")]) == 10
	assert started == []
	assert "Code=10" in capsys.readouterr().err


def test_unknown_interface(site, started, capsys):
	assert cli.main(["-f", str(site), "-i", "nope0"]) == 10
	assert started == []
	assert "Network interface not found: nope0" in capsys.readouterr().err


def test_listen_failure(site, started, monkeypatch: pytest.MonkeyPatch, capsys):
	monkeypatch.setattr(cli, "run", server.run)
	taken = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
	try:
		taken.bind(("127.0.0.1", 0))
		taken.listen(1)
		port = taken.getsockname()[1]
		assert cli.main(["-f", str(site), "-p", str(port)]) == 10
	finally:
		taken.close()
	err = capsys.readouterr().err
	# Reported once, with the exit code
	assert err.count(f"Unable to listen on 127.0.0.1:{port}") == 1
	assert "Code=10" in err


# EOF
