from dirserve.http.model import (
	HEADER_NAMES,
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	headername,
)
from dirserve.http.parser import HTTPParser

REQUEST: bytes = (
	b"GET /index.html?page=1 HTTP/1.1\r\n"
	b"Host: localhost\r\n"
	b"If-Modified-Since: Tue, 14 Nov 2023 22:13:20 GMT\r\n"
	b"\r\n"
)


def requests(parser: HTTPParser, *chunks: bytes) -> list[HTTPRequest]:
	return [
		atom
		for chunk in chunks
		for atom in parser.feed(chunk)
		if isinstance(atom, HTTPRequest)
	]


def test_request():
	atoms = list(HTTPParser().feed(REQUEST))
	assert isinstance(atoms[1], HTTPHeaders)
	assert atoms[-1] is HTTPProcessingStatus.Complete
	(req,) = [_ for _ in atoms if isinstance(_, HTTPRequest)]
	assert req.method == "GET"
	assert req.path == "/index.html"
	assert req.protocol == "HTTP/1.1"
	assert req.header("host") == "localhost"
	assert req.header("If-Modified-Since") == "Tue, 14 Nov 2023 22:13:20 GMT"


def test_split_chunks():
	# Byte by byte is the worst case
	parser = HTTPParser()
	reqs = requests(parser, *(REQUEST[i : i + 1] for i in range(len(REQUEST))))
	assert len(reqs) == 1
	assert reqs[0].path == "/index.html"
	assert reqs[0].header("Host") == "localhost"


def test_pipelining():
	parser = HTTPParser()
	payload = REQUEST + b"HEAD /sub/ HTTP/1.1\r\nHost: localhost\r\n\r\n"
	reqs = requests(parser, payload)
	assert [(_.method, _.path) for _ in reqs] == [
		("GET", "/index.html"),
		("HEAD", "/sub/"),
	]


def test_leading_empty_lines():
	reqs = requests(HTTPParser(), b"\r\n\r\n" + REQUEST)
	assert len(reqs) == 1


def test_percent_decoding():
	(req,) = requests(HTTPParser(), b"GET /a%20b%26c.txt?q=x%20y HTTP/1.1\r\n\r\n")
	assert req.path == "/a b&c.txt"
	# The query is dropped
	assert "q=" not in str(req)


def test_absolute_form():
	(req,) = requests(HTTPParser(), b"GET http://localhost:8000/sub/ HTTP/1.1\r\n\r\n")
	assert req.path == "/sub/"


def test_body_is_skipped():
	parser = HTTPParser()
	payload = (
		b"POST /upload HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"
		b"GET / HTTP/1.1\r\n\r\n"
	)
	reqs = requests(parser, payload[:40], payload[40:])
	assert [(_.method, _.path) for _ in reqs] == [("POST", "/upload"), ("GET", "/")]
	assert reqs[0].contentLength == 5


def test_bad_format():
	for payload in (
		b"GARBAGE\r\n\r\n",
		b"GET /\r\n\r\n",
		b"GET index.html HTTP/1.1\r\n\r\n",
		b"GET / FTP/1.0\r\n\r\n",
		b"POST / HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\n",
	):
		atoms = list(HTTPParser().feed(payload))
		assert HTTPProcessingStatus.BadFormat in atoms, payload
		assert not any(isinstance(_, HTTPRequest) for _ in atoms), payload


def test_line_too_long():
	parser = HTTPParser()
	atoms = list(parser.feed(b"GET /" + b"a" * 10_000))
	assert atoms == [HTTPProcessingStatus.BadFormat]
	# The parser is reset and can be reused
	assert len(requests(parser, REQUEST)) == 1


def test_header_names():
	assert headername("content-length") == "Content-Length"
	assert headername("x-forwarded-for") == "X-Forwarded-For"
	known = dict(HEADER_NAMES)
	parser = HTTPParser()
	for i in range(2_000):
		(req,) = requests(parser, f"GET / HTTP/1.1\r\nX-Junk-{i}: 1\r\n\r\n".encode())
		assert req.header(f"x-junk-{i}") == "1"
	# Names sent by clients are not retained
	assert HEADER_NAMES == known


# EOF
