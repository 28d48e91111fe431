import sys
import time
from enum import Enum
from typing import Any, NamedTuple, TextIO

from .term import Term, hasColor

# NOTE: Resolved on each write when unset, so that redirections of
# `sys.stderr` (tests, daemonization) are honoured.
ERR: TextIO | None = None

TIMESTAMP_FORMAT: str = "%Y.%m.%d %H:%M:%S"


class LogType(Enum):
	Message = 0  # A general information message
	Event = 20  # An event
	Audit = 30  # An access log line (must keep)


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30
	Error = 40  # A managed error
	Exception = 50  # An un-managed error


LOG_LEVEL_COLOR = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}

# Minimum level that gets written out
LOG_LEVEL: LogLevel = LogLevel.Info


class LogEntry(NamedTuple):
	time: float
	type: LogType = LogType.Message
	level: LogLevel = LogLevel.Info
	message: str | None = None
	name: str | None = None
	value: Any = None
	context: dict[str, Any] | None = None


def setErrorStream(stream: TextIO | None) -> TextIO | None:
	global ERR
	ERR = stream
	return ERR


def setLevel(level: LogLevel) -> LogLevel:
	global LOG_LEVEL
	LOG_LEVEL = level
	return LOG_LEVEL


def stream() -> TextIO:
	return ERR or sys.stderr


def timestamp(at: float | None = None) -> str:
	return time.strftime(TIMESTAMP_FORMAT, time.localtime(at))


def formatData(value: Any) -> str:
	if value is None or value == () or value == [] or value == {}:
		return ""
	elif isinstance(value, dict):
		return " ".join(f"{k}={formatData(v)}" for k, v in value.items())
	elif isinstance(value, list) or isinstance(value, tuple):
		return ",".join(formatData(v) for v in value)
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, bool):
		return "yes" if value else "no"
	elif isinstance(value, float):
		return f"{value:0.2f}"
	else:
		return str(value)


def formatEntry(entry: LogEntry) -> str:
	"""Formats the entry as a single line, without the trailing EOL."""
	if entry.type == LogType.Audit:
		text = f"[{entry.name}] {entry.value} {entry.message}"
	elif entry.type == LogType.Event:
		text = " ".join(
			_
			for _ in (entry.name or "", formatData(entry.value), formatData(entry.context))
			if _
		)
	else:
		text = " ".join(
			_ for _ in (entry.message or "", formatData(entry.context)) if _
		)
	return f"{timestamp(entry.time)} {text}"


def send(entry: LogEntry) -> LogEntry:
	if entry.level.value < LOG_LEVEL.value:
		return entry
	out = stream()
	line = formatEntry(entry)
	if hasColor(out):
		color = Term.Color(
			LOG_LEVEL_COLOR[entry.level], bold=entry.level.value >= LogLevel.Error.value
		)
		line = f"{color}{line}{Term.RESET}"
	out.write(f"{line}\n")
	out.flush()
	return entry


def entry(
	*,
	at: float | None = None,
	type: LogType = LogType.Message,
	level: LogLevel = LogLevel.Info,
	message: str | None = None,
	name: str | None = None,
	value: Any = None,
	context: dict[str, Any] | None = None,
) -> LogEntry:
	return LogEntry(
		time=time.time() if at is None else at,
		type=type,
		level=level,
		message=message,
		name=name,
		value=value,
		context=context,
	)


def debug(message: str, *, at: float | None = None, **context: Any) -> LogEntry:
	return send(entry(message=message, level=LogLevel.Debug, at=at, context=context))


def info(message: str, *, at: float | None = None, **context: Any) -> LogEntry:
	return send(entry(message=message, at=at, context=context))


def warning(message: str, *, at: float | None = None, **context: Any) -> LogEntry:
	return send(
		entry(message=message, level=LogLevel.Warning, at=at, context=context)
	)


def error(
	message: str,
	code: int | str | None = None,
	*,
	at: float | None = None,
	**context: Any,
) -> LogEntry:
	return send(
		entry(
			message=message,
			value=code,
			level=LogLevel.Error,
			at=at,
			context=(context | {"Code": code}) if code is not None else context,
		)
	)


def event(
	event: str, value: Any = None, *, at: float | None = None, **context: Any
) -> LogEntry:
	return send(
		entry(name=event, value=value, type=LogType.Event, at=at, context=context)
	)


def access(
	client: str | None, status: int, path: str, *, at: float | None = None
) -> LogEntry:
	"""Logs an access line, formatted as `[<client-ip>] <status> <path>`."""
	return send(
		entry(
			type=LogType.Audit,
			name=client or "-",
			value=status,
			message=path,
			at=at,
		)
	)


def exception(
	exception: BaseException,
	message: str | None = None,
) -> BaseException:
	try:
		out = stream()
		out.write(
			f"{timestamp()} !!! EXCP {f'{message}: [{exception.__class__.__name__}] {exception}' if message else f'[{exception.__class__.__name__}] {exception}'}\n"
		)
		tb = exception.__traceback__
		while tb:
			code = tb.tb_frame.f_code
			out.write(
				f"... in {code.co_name:15s} at {tb.tb_lineno:4d} in {code.co_filename}\n",
			)
			tb = tb.tb_next
		out.flush()
	except Exception:  # nosec: B110
		# Swallow all exceptions so that this function can be called from an exception
		# handler safely.
		pass

	# Return the exception so that this function can be called like:
	#   raise exception(e)
	return exception


def logged(level: LogLevel) -> bool:
	"""Tells if entries of the given level are currently written. This is
	used to guard against building entries when not necessary."""
	return level.value >= LOG_LEVEL.value


# EOF
