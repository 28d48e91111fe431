from typing import Iterator, Literal, TypeAlias
from urllib.parse import unquote, urlsplit

from ..utils.io import LineParser
from .model import (
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	headername,
)

# Type alias for what the parser produces
HTTPAtom: TypeAlias = HTTPRequestLine | HTTPHeaders | HTTPRequest | HTTPProcessingStatus


class MessageParser:
	"""Parses an HTTP request line."""

	__slots__ = ["line", "value"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser(limit=8_192)
		self.value: HTTPRequestLine | None = None

	def flush(self) -> HTTPRequestLine | None:
		res = self.value
		self.reset()
		return res

	def reset(self) -> "MessageParser":
		self.line.reset()
		self.value = None
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		"""Returns `True` when a request line was parsed, `False` when the
		line is malformed and `None` when more data is needed."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif not line:
			# Robust servers ignore empty lines before a request line
			self.line.reset()
			return None, read
		try:
			ln = line.decode("ascii")
		except UnicodeDecodeError:
			return False, read
		parts = ln.split(" ")
		if len(parts) != 3 or not parts[2].startswith("HTTP/"):
			return False, read
		method, target, protocol = parts
		url = urlsplit(target)
		# NOTE: The path is decoded, so that it maps to filesystem names. The
		# query is not used when serving files.
		path: str = unquote(url.path) if url.path else "/"
		if not path.startswith("/"):
			return False, read
		self.value = HTTPRequestLine(method, path, protocol)
		return True, read

	def __str__(self) -> str:
		return f"MessageParser({self.value})"


class HeadersParser:
	__slots__ = ["headers", "contentType", "contentLength", "line"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser(limit=8_192)
		self.headers: dict[str, str] = {}
		self.contentType: str | None = None
		self.contentLength: int | None = None

	def flush(self) -> HTTPHeaders:
		res = HTTPHeaders(self.headers, self.contentType, self.contentLength)
		self.reset()
		return res

	def reset(self) -> "HeadersParser":
		self.line.reset()
		self.headers = {}
		self.contentType = None
		self.contentLength = None
		return self

	def feed(
		self, chunk: bytes, start: int = 0
	) -> tuple[str | Literal[False] | None, int]:
		"""Feeds data from chunk, starting at `start` offset. Returns
		a value and the number of bytes read. When the value is `None`, no
		header has been extracted, when the value is `False` it's an empty
		line, otherwise it is the name of the header that was added."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif not line:
			# An empty line denotes the end of headers
			return False, read
		# Headers are expected to be in ASCII format, but we stay lenient
		ln: str = line.decode("latin-1")
		self.line.reset()
		i = ln.find(":")
		if i == -1:
			return None, read
		h = ln[:i].lower().strip()
		v = ln[i + 1 :].strip()
		if h == "content-length":
			try:
				self.contentLength = int(v)
			except ValueError:
				self.contentLength = None
		elif h == "content-type":
			self.contentType = v
		n: str = headername(h)
		self.headers[n] = v
		return n, read

	def __str__(self) -> str:
		return f"HeadersParser({self.headers})"


class BodySkipParser:
	"""Consumes a body with a known length, discarding its content."""

	__slots__ = ["expected", "read"]

	def __init__(self) -> None:
		self.expected: int = 0
		self.read: int = 0

	def reset(self, length: int = 0) -> "BodySkipParser":
		self.expected = length
		self.read = 0
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		to_read: int = min(len(chunk) - start, self.expected - self.read)
		self.read += to_read
		return (True if self.read >= self.expected else None), to_read


class HTTPParser:
	"""A stateful HTTP request parser. Request bodies are not used by the
	file server and are skipped."""

	def __init__(self) -> None:
		self.message: MessageParser = MessageParser()
		self.headers: HeadersParser = HeadersParser()
		self.body: BodySkipParser = BodySkipParser()
		self.parser: MessageParser | HeadersParser | BodySkipParser = self.message
		self.requestLine: HTTPRequestLine | None = None
		self.pending: HTTPRequest | None = None

	def reset(self) -> "HTTPParser":
		self.message.reset()
		self.headers.reset()
		self.body.reset()
		self.parser = self.message
		self.requestLine = None
		self.pending = None
		return self

	def feed(self, chunk: bytes) -> Iterator[HTTPAtom]:
		size: int = len(chunk)
		offset: int = 0
		while offset < size:
			try:
				ln, read = self.parser.feed(chunk, offset)
			except ValueError:
				# The line parser rejected an overlong line
				yield HTTPProcessingStatus.BadFormat
				self.reset()
				return
			offset += read
			if ln is None:
				continue
			elif self.parser is self.message:
				line = self.message.flush()
				if ln is False or line is None:
					yield HTTPProcessingStatus.BadFormat
					self.reset()
					return
				self.requestLine = line
				yield line
				self.parser = self.headers
			elif self.parser is self.headers:
				if ln is not False:
					# `ln` is going to be the header name as a string there.
					continue
				headers = self.headers.flush()
				yield headers
				if "Transfer-Encoding" in headers.headers or (
					headers.contentLength is not None and headers.contentLength < 0
				):
					yield HTTPProcessingStatus.BadFormat
					self.reset()
					return
				request = self.request(headers)
				if headers.contentLength:
					self.pending = request
					self.parser = self.body.reset(headers.contentLength)
					yield HTTPProcessingStatus.Body
				else:
					self.parser = self.message.reset()
					yield request
					yield HTTPProcessingStatus.Complete
			elif self.parser is self.body:
				request = self.pending
				self.pending = None
				self.parser = self.message.reset()
				if request:
					yield request
					yield HTTPProcessingStatus.Complete
			else:
				raise RuntimeError(f"Unsupported parser: {self.parser}")

	def request(self, headers: HTTPHeaders) -> HTTPRequest:
		line = self.requestLine
		if line is None:
			raise RuntimeError("Headers parsed without a request line")
		return HTTPRequest(
			method=line.method,
			path=line.path,
			headers=headers,
			protocol=line.protocol,
		)


# EOF
