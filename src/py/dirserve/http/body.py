from abc import ABC, abstractmethod
from typing import BinaryIO, Literal, NamedTuple, TypeAlias

# -----------------------------------------------------------------------------
#
# BODY
#
# -----------------------------------------------------------------------------


class HTTPBodyBlob(NamedTuple):
	"""Represents a body as bytes."""

	payload: bytes = b""
	length: int = 0

	@staticmethod
	def FromBytes(data: bytes) -> "HTTPBodyBlob":
		return HTTPBodyBlob(payload=data, length=len(data))


class HTTPBodyFile(NamedTuple):
	"""Represents a slice of an open file. The file is owned by whoever
	opened it, which is expected to close it once the response is done."""

	file: BinaryIO
	offset: int
	length: int


# The different types of bodies that are managed
THTTPBody: TypeAlias = HTTPBodyBlob | HTTPBodyFile


class HTTPBodyWriter(ABC):
	"""A generic writer for response heads and bodies."""

	__slots__ = ["shouldClose"]

	def __init__(self) -> None:
		# Set when the connection cannot carry further responses
		self.shouldClose: bool = False

	async def write(self, body: THTTPBody | bytes | None) -> bool:
		"""Writes the given type of body."""
		if isinstance(body, bytes):
			return await self._write(body)
		elif isinstance(body, HTTPBodyBlob):
			return await self._write(body.payload)
		elif isinstance(body, HTTPBodyFile):
			return await self._writeFile(body.file, body.offset, body.length)
		elif body is None:
			return True
		else:
			raise ValueError(f"Unsupported body format: {body}")

	async def _write(self, chunk: bytes) -> bool:
		return await self._writeBytes(chunk)

	async def _writeFile(
		self, file: BinaryIO, offset: int, length: int, size: int = 64_000
	) -> bool:
		file.seek(offset)
		remaining = length
		while remaining and (chunk := file.read(min(size, remaining))):
			remaining -= len(chunk)
			await self._write(chunk)
		return remaining == 0

	@abstractmethod
	async def _writeBytes(self, chunk: bytes | None | Literal[False]) -> bool: ...


# EOF
