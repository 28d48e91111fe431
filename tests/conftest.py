import os
from pathlib import Path
from typing import Callable

import pytest

from dirserve.http.model import HTTPBodyFile, HTTPRequest, HTTPResponse
from dirserve.http.parser import HTTPParser
from dirserve.model import Application
from dirserve.paths import ServerConfig, resolve
from dirserve.services.files import FileService

# A fixed modification time: Tue, 14 Nov 2023 22:13:20 GMT
MTIME: int = 1_700_000_000


@pytest.fixture
def site(tmp_path: Path) -> Path:
	"""Creates a small site to be served."""
	root = tmp_path / "site"
	(root / "sub").mkdir(parents=True)
	(root / "empty").mkdir()
	(root / "index.html").write_text("<h1>Hello</h1>")
	(root / "other.html").write_text("<h1>Other</h1>")
	(root / "notes.txt").write_text("0123456789")
	(root / "sub" / "a.txt").write_text("A")
	(root / "sub" / "b.txt").write_text("B")
	for path in root.rglob("*"):
		os.utime(path, (MTIME, MTIME))
	return root


def parse(
	method: str, path: str, headers: dict[str, str] | None = None
) -> HTTPRequest:
	"""Parses a request the way it comes from the wire."""
	head = "".join(f"{k}: {v}\r\n" for k, v in (headers or {}).items())
	payload = f"{method} {path} HTTP/1.1\r\nHost: localhost\r\n{head}\r\n"
	requests = [
		_
		for _ in HTTPParser().feed(payload.encode("latin-1"))
		if isinstance(_, HTTPRequest)
	]
	assert len(requests) == 1
	requests[0].client = "127.0.0.1"
	return requests[0]


def content(response: HTTPResponse) -> bytes:
	"""Returns the body of the response, closing it."""
	body = response.body
	try:
		if body is None:
			return b""
		elif isinstance(body, HTTPBodyFile):
			body.file.seek(body.offset)
			return body.file.read(body.length)
		else:
			return body.payload
	finally:
		response.close()


Fetch = Callable[..., tuple[HTTPResponse, bytes]]


@pytest.fixture
def serve() -> Callable[[ServerConfig], Fetch]:
	"""Returns a function that creates a fetcher for the given configuration,
	processing requests through the application."""

	def make(config: ServerConfig) -> Fetch:
		app = Application(FileService(config))

		def fetch(
			path: str, method: str = "GET", headers: dict[str, str] | None = None
		) -> tuple[HTTPResponse, bytes]:
			res = app.process(parse(method, path, headers))
			return res, content(res)

		return fetch

	return make


@pytest.fixture
def everything(site: Path, serve: Callable[[ServerConfig], Fetch]) -> Fetch:
	return serve(resolve(site))


@pytest.fixture
def single(site: Path, serve: Callable[[ServerConfig], Fetch]) -> Fetch:
	return serve(resolve(site / "index.html"))


# EOF
