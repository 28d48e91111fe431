import os
from stat import S_ISDIR
from dataclasses import dataclass
from pathlib import Path

from .config import PORT

# -----------------------------------------------------------------------------
#
# CONFIGURATION
#
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ServerConfig:
	"""The configuration of a server, created once at startup and read-only
	thereafter."""

	# Absolute path of the directory being served
	root: Path
	# When set, the name of the only file inside `root` that can be accessed,
	# otherwise everything under `root` is served.
	file: str | None = None
	host: str = "127.0.0.1"
	port: int = PORT

	@property
	def isSingleFile(self) -> bool:
		return self.file is not None

	def allows(self, path: str) -> bool:
		"""Tells if the given request path is accessible. The root path is
		always accessible, as it is the entry point listing."""
		return path == "/" or self.file is None or path.strip("/") == self.file

	def localPath(self, path: str) -> Path | None:
		"""Maps the request path to a path under the root directory, returning
		`None` when the result would fall outside of it."""
		if "\x00" in path:
			return None
		local = Path(os.path.normpath(os.path.join(self.root, path.lstrip("/"))))
		if local == self.root or self.root in local.parents:
			return local
		else:
			return None


# -----------------------------------------------------------------------------
#
# RESOLUTION
#
# -----------------------------------------------------------------------------


def resolve(
	root: str | Path | None = None,
	*,
	host: str = "127.0.0.1",
	port: int = PORT,
) -> ServerConfig:
	"""Resolves the root argument into a server configuration. A directory
	is served entirely, a file is served alone from its parent directory.
	Filesystem errors are propagated as `OSError`."""
	path = Path(root) if root else Path(os.getcwd())
	# NOTE: `stat` raises `FileNotFoundError`, `PermissionError`, etc.
	info = path.stat()
	absolute = Path(os.path.abspath(path))
	if S_ISDIR(info.st_mode):
		return ServerConfig(root=absolute, host=host, port=port)
	else:
		return ServerConfig(
			root=absolute.parent, file=absolute.name, host=host, port=port
		)


# EOF
