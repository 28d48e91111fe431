import os
import posixpath
from pathlib import Path
from stat import S_ISDIR
from typing import BinaryIO
from urllib.parse import quote

from ..http.model import HTTPRequest, HTTPResponse
from ..model import Service
from ..paths import ServerConfig
from ..utils.htmpl import H, Node, html
from ..utils.logging import error

# Methods for which files and listings are served
METHODS: tuple[str, ...] = ("GET", "HEAD")


def joinHref(path: str, name: str) -> str:
	"""Joins the entry name to the request path, returning an absolute,
	normalized and URL-quoted path."""
	href = posixpath.normpath(posixpath.join(path, name))
	# POSIX keeps a leading `//`, which browsers take as a host name
	return quote(f"/{href.lstrip('/')}", safe="/")


class FileService(Service):
	"""Serves the files of a directory, or a single file of it, as described
	by the server configuration."""

	def __init__(self, config: ServerConfig):
		self.config: ServerConfig = config
		super().__init__()

	def process(self, request: HTTPRequest) -> HTTPResponse:
		if request.method not in METHODS:
			return request.notAllowed(METHODS)
		path: str = request.path
		# In single file mode, anything but the listing and the file is hidden.
		if not self.config.allows(path):
			return request.notFound()
		local_path = self.config.localPath(path)
		if local_path is None:
			return request.notFound()
		try:
			stat = os.stat(local_path)
		except (FileNotFoundError, NotADirectoryError):
			return request.notFound()
		except OSError as e:
			error("Failed to stat file", Path=str(local_path), Error=str(e))
			return request.fail()
		if S_ISDIR(stat.st_mode):
			return self.renderDir(request, path, local_path)
		else:
			return self.renderFile(request, local_path, stat)

	def listDir(self, path: str, localPath: Path) -> list[str]:
		"""Returns the entries listed for the given directory. Raises
		`OSError` when the directory cannot be read."""
		if self.config.file is not None:
			return [self.config.file]
		names: list[str] = sorted(os.listdir(localPath))
		if path != "/":
			names.insert(0, "..")
		return names

	def renderDir(
		self, request: HTTPRequest, path: str, localPath: Path
	) -> HTTPResponse:
		try:
			names = self.listDir(path, localPath)
		except OSError as e:
			error("Failed to list files", Path=str(localPath), Error=str(e))
			return request.fail()
		return request.respondHTML(self.renderListing(path, names))

	def renderListing(self, path: str, names: list[str]) -> str:
		links: list[Node | str] = []
		for name in names:
			links += [H.a(name, href=joinHref(path, name)), H.br(), "\n"]
		return "".join(
			html(
				H.html(
					H.head(H.meta(charset="UTF-8"), H.title(path)),
					H.body(
						H.h1(f"Index of {path}"),
						H.hr(),
						H.p("\n", links),
					),
					lang="en",
				),
				doctype="html",
			)
		)

	def renderFile(
		self, request: HTTPRequest, localPath: Path, stat: os.stat_result
	) -> HTTPResponse:
		try:
			file: BinaryIO = open(localPath, "rb")
		except OSError as e:
			error("Failed to open file", Path=str(localPath), Error=str(e))
			return request.fail()
		try:
			res = request.respondFile(
				file, name=localPath, size=stat.st_size, modified=stat.st_mtime
			)
		except Exception:
			self.closeFile(localPath, file)
			raise
		# The file stays open until the response is sent
		return res.onClose(lambda _: self.closeFile(localPath, file))

	def closeFile(self, localPath: Path, file: BinaryIO) -> None:
		try:
			file.close()
		except OSError as e:
			error("Failed to close file", Path=str(localPath), Error=str(e))


# EOF
