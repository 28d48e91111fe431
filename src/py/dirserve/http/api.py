from abc import ABC, abstractmethod
from email.utils import mktime_tz, parsedate_tz
from pathlib import Path
from time import gmtime
from typing import Any, BinaryIO, Generic, Literal, TypeVar

from ..utils.files import contentType as getContentType
from ..utils.files import sniff
from .body import HTTPBodyFile
from .status import HTTP_STATUS

T = TypeVar("T")

DAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTHS: tuple[str, ...] = (
	"Jan",
	"Feb",
	"Mar",
	"Apr",
	"May",
	"Jun",
	"Jul",
	"Aug",
	"Sep",
	"Oct",
	"Nov",
	"Dec",
)

TEXT_PLAIN: str = "text/plain; charset=utf-8"

# -----------------------------------------------------------------------------
#
# HELPERS
#
# -----------------------------------------------------------------------------


def httpdate(timestamp: float) -> str:
	"""Formats the timestamp in HTTP cache format, independently of the locale."""
	# FORMAT: If-Modified-Since: Sat, 29 Oct 1994 19:43:31 GMT
	t = gmtime(timestamp)
	return f"{DAYS[t.tm_wday]}, {t.tm_mday:02d} {MONTHS[t.tm_mon - 1]} {t.tm_year} {t.tm_hour:02d}:{t.tm_min:02d}:{t.tm_sec:02d} GMT"


def parseHTTPDate(value: str | None) -> int | None:
	"""Parses an HTTP date as a UTC timestamp, returning `None` when the
	value is missing or malformed."""
	if not value:
		return None
	parsed = parsedate_tz(value)
	if parsed is None:
		return None
	try:
		return mktime_tz(parsed)
	except (OverflowError, ValueError):
		return None


def parseRange(value: str | None, size: int) -> tuple[int, int] | None | Literal[False]:
	"""Parses a single `Range: bytes=…` header against a content of the given
	size. Returns the inclusive `(start, end)` offsets, `None` when the header
	is absent or not supported (in which case the whole content is sent), and
	`False` when the range cannot be satisfied."""
	if not value or not value.startswith("bytes="):
		return None
	ranges = value[6:].strip()
	# Multiple ranges are not supported, the full content is sent instead
	if "," in ranges or "-" not in ranges:
		return None
	first, last = (_.strip() for _ in ranges.split("-", 1))
	try:
		if not first:
			# Suffix range, ie. the last N bytes
			suffix = int(last)
			if suffix <= 0 or size == 0:
				return False
			return (max(0, size - suffix), size - 1)
		start = int(first)
		end = int(last) if last else size - 1
	except ValueError:
		return None
	if start < 0 or end < start:
		return None
	elif start >= size:
		return False
	else:
		return (start, min(end, size - 1))


# -----------------------------------------------------------------------------
#
# API
#
# -----------------------------------------------------------------------------

# --
# == HTTP Request Response API
#
# Defines the high level API functions (orthogonal to the underlying model)
# to manipulate requests/responses.


class ResponseFactory(ABC, Generic[T]):
	method: str

	@abstractmethod
	def header(self, name: str) -> str | None: ...

	@abstractmethod
	def respond(
		self,
		content: Any = None,
		contentType: str | None = None,
		contentLength: int | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
		message: str | None = None,
	) -> T: ...

	def empty(
		self,
		status: int = 200,
		headers: dict[str, str] | None = None,
	) -> T:
		return self.respond(content=None, status=status, headers=headers)

	def error(
		self,
		status: int,
		content: str | None = None,
		contentType: str = TEXT_PLAIN,
		headers: dict[str, str] | None = None,
	) -> T:
		message = HTTP_STATUS.get(status, "Server Error")
		return self.respond(
			content=message if content is None else content,
			contentType=contentType,
			status=status,
			message=message,
			headers=headers,
		)

	def notFound(
		self,
		content: str = "404 page not found",
		contentType: str = TEXT_PLAIN,
		*,
		status: int = 404,
	) -> T:
		return self.error(status, content=content, contentType=contentType)

	def notAllowed(self, allowed: tuple[str, ...] = ("GET", "HEAD")) -> T:
		return self.error(
			405,
			content="method not allowed.",
			headers={"Allow": ", ".join(allowed)},
		)

	def fail(
		self,
		content: str = "internal server error.",
		*,
		status: int = 500,
		contentType: str = TEXT_PLAIN,
	) -> T:
		return self.error(status, content=content, contentType=contentType)

	def notModified(self, headers: dict[str, str] | None = None) -> T:
		return self.empty(status=304, headers=headers)

	def respondHTML(self, html: str | bytes, status: int = 200) -> T:
		return self.respond(
			content=html, contentType="text/html; charset=utf-8", status=status
		)

	def respondFile(
		self,
		file: BinaryIO,
		*,
		name: Path | str,
		size: int,
		modified: float,
		contentType: str | None = None,
	) -> T:
		"""Responds with the content of the given open file, honouring
		the `If-Modified-Since`, `If-Unmodified-Since` and `Range`
		request headers. The file is not closed by this function."""
		# HTTP dates have a one second resolution
		last_modified: int = int(modified)
		headers: dict[str, str] = {
			"Last-Modified": httpdate(last_modified),
			"Accept-Ranges": "bytes",
		}
		unmodified_since = parseHTTPDate(self.header("If-Unmodified-Since"))
		if unmodified_since is not None and last_modified > unmodified_since:
			return self.empty(status=412, headers=headers)
		if self.method in ("GET", "HEAD"):
			modified_since = parseHTTPDate(self.header("If-Modified-Since"))
			if modified_since is not None and last_modified <= modified_since:
				return self.notModified(headers)
		content_type: str = contentType or getContentType(name, sniff(file))
		match parseRange(self.header("Range"), size):
			case False:
				return self.empty(
					status=416, headers=headers | {"Content-Range": f"bytes */{size}"}
				)
			case (start, end):
				return self.respond(
					content=HTTPBodyFile(file, start, end - start + 1),
					contentType=content_type,
					status=206,
					headers=headers | {"Content-Range": f"bytes {start}-{end}/{size}"},
				)
			case _:
				return self.respond(
					content=HTTPBodyFile(file, 0, size),
					contentType=content_type,
					headers=headers,
				)


# EOF
