import asyncio
import socket
import threading
from dataclasses import dataclass
from signal import SIGINT, SIGTERM
from typing import Any, BinaryIO, Callable, Literal, NamedTuple

from .config import KEEPALIVE, LOG_REQUESTS
from .http.model import (
	HTTPBodyWriter,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPResponse,
)
from .http.parser import HTTPParser
from .model import Application
from .paths import ServerConfig
from .services.files import FileService
from .utils.logging import (
	LogLevel,
	access,
	debug,
	event,
	exception,
	info,
	logged,
	warning,
)

# An observer is notified of every request along with the status that was
# actually sent to the client.
ResponseObserver = Callable[[HTTPRequest, int], None]


def accessLog(request: HTTPRequest, status: int) -> None:
	"""Logs the request as `[<client-ip>] <status> <path>`."""
	access(request.client, status, request.path)


@dataclass(slots=True)
class ServerState:
	isRunning: bool = True

	def stop(self) -> None:
		info("Server stopping…")
		self.isRunning = False

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		e = context.get("exception")
		if e:
			exception(e)


class ServerOptions(NamedTuple):
	host: str = "127.0.0.1"
	port: int = 8000
	backlog: int = 1_024
	# This is the polling timeout for accepting new requests.
	polling: float = 1.0
	readsize: int = 4_096
	# Idle time after which a keep-alive connection is closed
	keepalive: float = KEEPALIVE
	condition: Callable[[], bool] | None = None
	stopSignals: bool = True
	observers: tuple[ResponseObserver, ...] = ()


OPTIONS: ServerOptions = ServerOptions()

SERVER_ERROR: bytes = (
	b"HTTP/1.1 500 Internal Server Error\r\n"
	b"Content-Type: text/plain; charset=utf-8\r\n"
	b"Content-Length: 22\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"internal server error."
)

SERVER_BAD_REQUEST: bytes = (
	b"HTTP/1.1 400 Bad Request\r\n"
	b"Content-Type: text/plain; charset=utf-8\r\n"
	b"Content-Length: 12\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"bad request."
)


class AIOSocketBodyWriter(HTTPBodyWriter):
	"""Specialized body writer to work with AIO sockets."""

	def __init__(
		self,
		client: "socket.socket",
		loop: asyncio.AbstractEventLoop,
	) -> None:
		super().__init__()
		self.client: socket.socket = client
		self.loop: asyncio.AbstractEventLoop = loop

	async def _writeBytes(self, chunk: bytes | None | Literal[False]) -> bool:
		if chunk:
			await self.loop.sock_sendall(self.client, chunk)
		return True

	async def _writeFile(
		self, file: BinaryIO, offset: int, length: int, size: int = 64_000
	) -> bool:
		if length <= 0:
			return True
		# NOTE: This falls back to read/send when `sendfile` is not available.
		sent = await self.loop.sock_sendfile(self.client, file, offset, length)
		return sent == length


class AIOSocketServer:
	"""AsyncIO backend using sockets directly, one task per connection. The
	application runs in the loop's executor so that blocking filesystem calls
	only hold the request being processed."""

	@classmethod
	async def OnRequest(
		cls,
		app: Application,
		client: socket.socket,
		address: str | None,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
	) -> None:
		"""Asynchronous worker, processing a socket in the context
		of an application."""
		size: int = options.readsize
		buffer = bytearray(size)
		keep_alive: bool = True
		status: HTTPProcessingStatus = HTTPProcessingStatus.Processing
		req_count: int = 0
		res_count: int = 0
		try:
			parser: HTTPParser = HTTPParser()
			writer: AIOSocketBodyWriter = AIOSocketBodyWriter(client, loop)
			# NOTE: With keep alive, all the requests of a client come through
			# this loop, until there's `Connection: close`, or the keepalive
			# timeout has expired.
			while keep_alive and not writer.shouldClose:
				try:
					n = await asyncio.wait_for(
						loop.sock_recv_into(client, buffer),
						timeout=options.keepalive,
					)
				except asyncio.TimeoutError:
					status = HTTPProcessingStatus.Timeout
					break
				if not n:
					# A no-data means a close
					status = HTTPProcessingStatus.NoData
					break
				# NOTE: With HTTP Pipelining, we may receive more than one
				# request in the same payload.
				for atom in parser.feed(bytes(buffer[:n])):
					if atom is HTTPProcessingStatus.BadFormat:
						warning("Malformed request", Client=address)
						await writer.write(SERVER_BAD_REQUEST)
						keep_alive = False
						break
					elif isinstance(atom, HTTPRequest):
						req = atom
						req.client = address
						req_count += 1
						connection = (req.header("Connection") or "").lower()
						if req.protocol == "HTTP/1.0" or connection == "close":
							keep_alive = False
						res = await cls.SendResponse(
							req,
							app,
							writer,
							loop=loop,
							observers=options.observers,
							close=not keep_alive,
						)
						if res:
							res_count += 1
						else:
							keep_alive = False
							break
			if status is HTTPProcessingStatus.Timeout and req_count != res_count:
				warning(
					"Client timed out",
					Client=address,
					Requests=req_count,
					Responses=res_count,
				)
			elif logged(LogLevel.Debug):
				debug(
					"Connection closed",
					Client=address,
					Status=status.name,
					Requests=req_count,
				)
		except (ConnectionError, OSError) as e:
			warning("Client connection failed", Client=address, Error=str(e))
		except Exception as e:
			exception(e)
		finally:
			client.close()

	@staticmethod
	async def SendResponse(
		request: HTTPRequest,
		app: Application,
		writer: HTTPBodyWriter,
		*,
		loop: asyncio.AbstractEventLoop,
		observers: tuple[ResponseObserver, ...] = (),
		close: bool = False,
	) -> HTTPResponse | None:
		"""Processes the request within the application and sends a response
		using the given writer. Returns `None` when the response could not
		be sent, in which case the connection should be closed."""
		res: HTTPResponse | None = None
		status: int = 500
		sent: bool = False
		failed: bool = False
		disconnected: bool = False
		try:
			res = await loop.run_in_executor(None, app.process, request)
			if close:
				res.setHeader("Connection", "close")
			status = res.status
			# We send the request head
			await writer.write(res.head())
			sent = True
			if request.method != "HEAD" and not await writer.write(res.body):
				# The file is shorter than the advertised `Content-Length`, the
				# client can only detect the truncation by the connection closing.
				warning(
					"Response body was truncated",
					Client=request.client,
					Path=request.path,
				)
				writer.shouldClose = True
		except (BrokenPipeError, ConnectionError) as e:
			# Client did an early close
			warning(
				"Client disconnected",
				Client=request.client,
				Path=request.path,
				Error=str(e),
			)
			disconnected = True
		except Exception as e:
			exception(e)
			failed = True
		finally:
			if res:
				try:
					res.close()
				except Exception as e:
					exception(e)
		if not (sent or disconnected):
			status = 500
			try:
				warning(
					"Server did not send a response",
					Method=request.method,
					Path=request.path,
				)
				await writer.write(SERVER_ERROR)
			except Exception as e:
				exception(e)
		for observer in observers:
			try:
				observer(request, status)
			except Exception as e:
				exception(e)
		return None if failed or disconnected or writer.shouldClose or not sent else res

	@staticmethod
	def Bind(options: ServerOptions) -> socket.socket:
		"""Creates the listening socket. Raises `OSError` when the address
		cannot be bound, which is fatal."""
		server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		try:
			server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
			server.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
			server.bind((options.host, options.port))
			# The argument is the backlog of connections that will be accepted
			# before they are refused.
			server.listen(options.backlog)
		except OSError as e:
			server.close()
			# NOTE: Logging is left to the caller, as this is fatal.
			message = f"Unable to listen on {options.host}:{options.port}: {e.strerror or e}"
			raise (OSError(e.errno, message) if e.errno else OSError(message)) from e
		# This is what we need to use it with asyncio
		server.setblocking(False)
		return server

	@classmethod
	async def Serve(
		cls,
		app: Application,
		options: ServerOptions = ServerOptions(),
		server: socket.socket | None = None,
	) -> None:
		"""Main server coroutine."""
		server = server or cls.Bind(options)
		host, port = server.getsockname()[:2]
		tasks: set[asyncio.Task[None]] = set()
		loop = asyncio.get_running_loop()

		# Manage server state
		state = ServerState()
		# Signal handlers can only be registered from the main thread
		if (
			options.stopSignals
			and threading.current_thread() is threading.main_thread()
		):
			loop.add_signal_handler(SIGINT, lambda: state.stop())
			loop.add_signal_handler(SIGTERM, lambda: state.stop())
		loop.set_exception_handler(state.onException)

		info(f"Serving on http://{host}:{port}", Host=host, Port=port)

		try:
			while state.isRunning:
				if options.condition and not options.condition():
					break
				try:
					client, address = await asyncio.wait_for(
						loop.sock_accept(server), timeout=options.polling or 1.0
					)
				except asyncio.TimeoutError:
					continue
				except OSError as e:
					# This can be: [OSError] [Errno 24] Too many open files
					if e.errno == 24:
						await asyncio.sleep(0.1)
					else:
						exception(e)
					continue
				task = loop.create_task(
					cls.OnRequest(
						app,
						client,
						address[0] if address else None,
						loop=loop,
						options=options,
					)
				)
				tasks.add(task)
				task.add_done_callback(tasks.discard)
		finally:
			server.close()
			for task in tasks:
				task.cancel()
			await asyncio.gather(*tasks, return_exceptions=True)


def run(
	config: ServerConfig,
	*,
	backlog: int = OPTIONS.backlog,
	keepalive: float = OPTIONS.keepalive,
	logRequests: bool = LOG_REQUESTS,
	condition: Callable[[], bool] | None = None,
) -> None:
	"""High level function to run the server until it is stopped. Raises
	`OSError` when the server cannot listen."""
	options = ServerOptions(
		host=config.host,
		port=config.port,
		backlog=backlog,
		keepalive=keepalive,
		condition=condition,
		observers=(accessLog,) if logRequests else (),
	)
	app = Application(FileService(config))
	info(
		"Serving files",
		Root=str(config.root),
		File=config.file or "*",
	)
	try:
		asyncio.run(AIOSocketServer.Serve(app, options))
	except KeyboardInterrupt:
		event("ManualShutdown")


# EOF
