class StartupError(RuntimeError):
	"""Raised when the server cannot be started. These errors are fatal."""


class InterfaceNotFound(StartupError):
	def __init__(self, name: str | int, available: list[str] | None = None):
		super().__init__(
			f"Network interface not found: {name}"
			+ (f" (available: {', '.join(available)})" if available else "")
		)
		self.name: str | int = name


class NoUsableAddress(StartupError):
	def __init__(self, name: str):
		super().__init__(f"Network interface has no IPv4 address: {name}")
		self.name: str = name


# EOF
