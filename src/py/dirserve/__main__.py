import argparse
import sys
from dataclasses import replace

from .config import EXIT_STARTUP, INTERFACE, PORT
from .errors import StartupError
from .netif import resolveBindAddress
from .paths import resolve
from .server import run
from .utils.logging import error


def parser() -> argparse.ArgumentParser:
	res = argparse.ArgumentParser(
		prog="dirserve",
		description="Serves a directory, or a single file, over HTTP",
		formatter_class=argparse.ArgumentDefaultsHelpFormatter,
	)
	res.add_argument(
		"-f",
		action="store",
		dest="root",
		default="",
		help="Root directory or a file allowed to be visited (defaults to the current directory)",
	)
	res.add_argument(
		"-p",
		action="store",
		dest="port",
		type=int,
		default=PORT,
		help="HTTP server port",
	)
	res.add_argument(
		"-i",
		action="store",
		dest="interface",
		default=INTERFACE,
		help="Network interface to bind to (defaults to the first one by index)",
	)
	return res


def main(args: list[str] | None = None) -> int:
	"""Runs the server, returning the process exit code."""
	options = parser().parse_args(args=args)
	try:
		config = resolve(options.root, port=options.port)
		config = replace(config, host=resolveBindAddress(options.interface))
		run(config)
	except (OSError, StartupError) as e:
		error(str(e), EXIT_STARTUP)
		return EXIT_STARTUP
	return 0


if __name__ == "__main__":
	sys.exit(main(sys.argv[1:]))

# EOF
