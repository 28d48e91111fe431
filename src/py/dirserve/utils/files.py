import mimetypes
from pathlib import Path
from typing import BinaryIO

mimetypes.init()

MIME_TYPES: dict[str, str] = dict(
	bz2="application/x-bzip",
	gz="application/x-gzip",
	md="text/markdown",
)

# Number of bytes looked at when sniffing the content
SNIFF_SIZE: int = 512


def isText(data: bytes) -> bool:
	"""Tells if the given sample is likely to come from a text file."""
	if b"\x00" in data:
		return False
	try:
		data.decode("utf-8")
		return True
	except UnicodeDecodeError as e:
		# The sample may end in the middle of a multi-byte sequence
		return e.start >= len(data) - 3 and e.reason == "unexpected end of data"


def contentType(path: Path | str, sample: bytes | None = None) -> str:
	"""Guesses the content type from the given path, falling back on the
	sample of the content when the extension is unknown."""
	name = str(path)
	if res := MIME_TYPES.get(name.rsplit(".", 1)[-1].lower()):
		return res
	elif res := mimetypes.guess_type(name)[0]:
		return f"{res}; charset=utf-8" if res.startswith("text/") else res
	elif sample is None:
		return "application/octet-stream"
	else:
		return (
			"text/plain; charset=utf-8" if isText(sample) else "application/octet-stream"
		)


def sniff(file: BinaryIO, size: int = SNIFF_SIZE) -> bytes:
	"""Reads a sample from the start of the file, restoring the position."""
	position = file.tell()
	try:
		file.seek(0)
		return file.read(size)
	finally:
		file.seek(position)


# EOF
