import pytest

from dirserve.utils.io import LineParser

HEAD: bytes = b"GET /sub/ HTTP/1.1\r\nHost: 127.0.0.1\r\nConnection: close\r\n\r\n"


def test_lines_across_chunks():
	parser = LineParser()
	lines: list[bytes] = []
	for chunk in (HEAD[:50], HEAD[50:56], HEAD[56:]):
		offset: int = 0
		while offset < len(chunk):
			line, read = parser.feed(chunk, offset)
			offset += read
			if line is not None:
				lines.append(line)
	assert lines == HEAD.split(b"\r\n")[:-1]


def test_eol_split_across_chunks():
	parser = LineParser()
	assert parser.feed(b"Host: x\r") == (None, 8)
	assert parser.feed(b"\nrest") == (b"Host: x", 1)


def test_limit():
	parser = LineParser(limit=16)
	assert parser.feed(b"a" * 16) == (None, 16)
	with pytest.raises(ValueError):
		parser.feed(b"a")
	parser.reset()
	assert parser.feed(b"ok\r\n") == (b"ok", 4)


# EOF
