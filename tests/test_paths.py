import os
from pathlib import Path

import pytest

from dirserve.paths import ServerConfig, resolve


def test_resolve_directory(site: Path):
	config = resolve(site)
	assert config.root == site
	assert config.file is None
	assert not config.isSingleFile


def test_resolve_file(site: Path):
	config = resolve(str(site / "index.html"), host="10.0.0.1", port=9000)
	assert config.root == site
	assert config.file == "index.html"
	assert config.isSingleFile
	assert (config.host, config.port) == ("10.0.0.1", 9000)


def test_resolve_relative(site: Path, monkeypatch: pytest.MonkeyPatch):
	monkeypatch.chdir(site.parent)
	assert resolve("site/sub").root == site / "sub"
	assert resolve("site/sub/a.txt").file == "a.txt"


def test_resolve_defaults_to_cwd(site: Path, monkeypatch: pytest.MonkeyPatch):
	monkeypatch.chdir(site)
	for root in (None, ""):
		config = resolve(root)
		assert config.root == Path(os.getcwd())
		assert config.file is None


def test_resolve_missing(tmp_path: Path):
	with pytest.raises(FileNotFoundError):
		resolve(tmp_path / "missing")


def test_config_is_immutable(site: Path):
	config = resolve(site)
	with pytest.raises(AttributeError):
		config.file = "index.html"  # type: ignore[misc]


def test_allows():
	everything = ServerConfig(root=Path("/srv/site"))
	single = ServerConfig(root=Path("/srv/site"), file="index.html")
	for path in ("/", "/index.html", "/sub/", "/sub/a.txt", "/missing"):
		assert everything.allows(path)
	assert single.allows("/")
	assert single.allows("/index.html")
	assert single.allows("/index.html/")
	assert not single.allows("/other.html")
	assert not single.allows("/sub/index.html")


def test_local_path():
	config = ServerConfig(root=Path("/srv/site"))
	assert config.localPath("/") == Path("/srv/site")
	assert config.localPath("/sub/a.txt") == Path("/srv/site/sub/a.txt")
	assert config.localPath("/sub/../a.txt") == Path("/srv/site/a.txt")
	assert config.localPath("/sub/") == Path("/srv/site/sub")


def test_local_path_stays_under_root():
	config = ServerConfig(root=Path("/srv/site"))
	assert config.localPath("/..") is None
	assert config.localPath("/../site2/a.txt") is None
	assert config.localPath("/sub/../../etc/passwd") is None
	assert config.localPath("/a\x00b") is None


# EOF
