from enum import Enum
from typing import Any, Callable, NamedTuple

from ..utils.io import DEFAULT_ENCODING
from .api import ResponseFactory
from .body import HTTPBodyBlob, HTTPBodyFile, HTTPBodyWriter, THTTPBody  # NOQA: F401
from .status import HTTP_STATUS

# -----------------------------------------------------------------------------
#
# HELPERS
#
# -----------------------------------------------------------------------------


# Normalized names of the headers the server reads or writes, keyed by their
# lowercase form. Other names are normalized on each call and not retained.
HEADER_NAMES: dict[str, str] = {
	_.lower(): _
	for _ in (
		"Accept-Ranges",
		"Allow",
		"Connection",
		"Content-Length",
		"Content-Range",
		"Content-Type",
		"Host",
		"If-Modified-Since",
		"If-Unmodified-Since",
		"Last-Modified",
		"Range",
		"Transfer-Encoding",
	)
}


def headername(name: str) -> str:
	"""Normalizes the header name as `Kebab-Case`."""
	if (known := HEADER_NAMES.get(name.lower())) is not None:
		return known
	else:
		return "-".join(_.capitalize() for _ in name.split("-"))


# -----------------------------------------------------------------------------
#
# DATA MODEL
#
# -----------------------------------------------------------------------------


class HTTPRequestLine(NamedTuple):
	"""Represents a request status line"""

	method: str
	path: str
	protocol: str


class HTTPHeaders(NamedTuple):
	"""Wraps HTTP headers, keeping key information for response/request processing."""

	headers: dict[str, str]
	contentType: str | None = None
	contentLength: int | None = None


class HTTPProcessingStatus(Enum):
	"""Internal parser/processor state management"""

	Processing = 0
	Body = 1
	Complete = 2
	Timeout = 10
	NoData = 11
	BadFormat = 12


# -----------------------------------------------------------------------------
#
# ERRORS
#
# -----------------------------------------------------------------------------


class HTTPRequestError(Exception):
	"""To be raised by handlers to generate an error response, 500 by default."""

	def __init__(
		self,
		message: str,
		status: int | None = None,
	):
		super().__init__(message)
		self.message: str = message
		self.status: int | None = status


# -----------------------------------------------------------------------------
#
# REQUESTS
#
# -----------------------------------------------------------------------------


class HTTPRequest(ResponseFactory["HTTPResponse"]):
	"""Represents an HTTP requests, which also acts as a factory for
	responses."""

	__slots__ = [
		"protocol",
		"method",
		"path",
		"client",
		"_headers",
	]

	def __init__(
		self,
		method: str,
		path: str,
		headers: HTTPHeaders,
		protocol: str = "HTTP/1.1",
		client: str | None = None,
	):
		super().__init__()
		self.method: str = method
		self.path: str = path
		self.protocol: str = protocol
		# The IP address of the peer, when known
		self.client: str | None = client
		self._headers: HTTPHeaders = headers

	@property
	def headers(self) -> dict[str, str]:
		return self._headers.headers

	def header(self, name: str) -> str | None:
		return self._headers.headers.get(headername(name))

	@property
	def contentLength(self) -> int | None:
		return self._headers.contentLength

	def respond(
		self,
		content: Any = None,
		contentType: str | None = None,
		contentLength: int | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
		message: str | None = None,
	) -> "HTTPResponse":
		return HTTPResponse.Create(
			status=status,
			message=message,
			content=content,
			contentType=contentType,
			contentLength=contentLength,
			protocol=self.protocol,
			headers=headers,
		)

	def __str__(self) -> str:
		return f"Request({self.method} {self.path} {self.headers})"


# -----------------------------------------------------------------------------
#
# RESPONSE
#
# -----------------------------------------------------------------------------


class HTTPResponse:
	"""An HTTP response."""

	@staticmethod
	def Create(
		content: Any = None,
		contentType: str | None = None,
		contentLength: int | None = None,
		headers: dict[str, str] | None = None,
		status: int = 200,
		message: str | None = None,
		protocol: str = "HTTP/1.1",
	) -> "HTTPResponse":
		"""Factory method to create HTTP response objects."""
		body: THTTPBody | None = None
		if content is None:
			pass
		elif isinstance(content, str):
			body = HTTPBodyBlob.FromBytes(content.encode(DEFAULT_ENCODING))
		elif isinstance(content, bytes):
			body = HTTPBodyBlob.FromBytes(content)
		elif isinstance(content, HTTPBodyFile):
			body = content
		else:
			raise ValueError(f"Unsupported content {type(content)}:{content}")
		if body is not None and contentLength is None:
			contentLength = body.length
		res_headers: dict[str, str] = (
			{headername(k): v for k, v in headers.items()} if headers else {}
		)
		if contentType is not None:
			res_headers["Content-Type"] = contentType
		# Responses with no body still advertise an empty payload so that the
		# connection can be kept alive, except for those that never have one.
		if status not in (204, 304):
			res_headers["Content-Length"] = str(contentLength or 0)
		return HTTPResponse(
			status=status,
			message=message or HTTP_STATUS.get(status, "Unknown status"),
			headers=HTTPHeaders(
				res_headers,
				contentType=contentType,
				contentLength=contentLength,
			),
			body=body,
			protocol=protocol,
		)

	__slots__ = [
		"protocol",
		"status",
		"message",
		"headers",
		"body",
		"_onClose",
	]

	def __init__(
		self,
		protocol: str,
		status: int,
		message: str | None,
		headers: HTTPHeaders,
		body: THTTPBody | None = None,
	):
		self.protocol: str = protocol
		self.status: int = status
		self.message: str | None = message
		self.headers: HTTPHeaders = headers
		self.body: THTTPBody | None = body
		self._onClose: Callable[[HTTPResponse], None] | None = None

	def header(self, name: str) -> str | None:
		return self.headers.headers.get(headername(name))

	def setHeader(self, name: str, value: str | int | None) -> "HTTPResponse":
		if value is None:
			self.headers.headers.pop(headername(name), None)
		else:
			self.headers.headers[headername(name)] = str(value)
		return self

	def head(self) -> bytes:
		"""Serializes the head as a payload."""
		message: str = self.message or HTTP_STATUS.get(self.status, "Unknown status")
		lines: list[str] = [
			f"{headername(k)}: {v}" for k, v in self.headers.headers.items()
		]
		lines.insert(0, f"{self.protocol} {self.status} {message}")
		lines.append("")
		lines.append("")
		# NOTE: Header values are latin-1 as per RFC 7230
		return "\r\n".join(lines).encode("latin-1", "replace")

	def onClose(
		self, callback: Callable[["HTTPResponse"], None] | None
	) -> "HTTPResponse":
		self._onClose = callback
		return self

	def close(self) -> None:
		"""Invokes the close callback, at most once."""
		callback, self._onClose = self._onClose, None
		if callback:
			callback(self)

	def __str__(self) -> str:
		return f"Response({self.protocol} {self.status} {self.message} {self.headers} {self.body})"


# EOF
