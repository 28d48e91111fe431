from typing import Optional

from .http.model import HTTPRequest, HTTPRequestError, HTTPResponse
from .utils.logging import exception

# -----------------------------------------------------------------------------
#
# SERVICE
#
# -----------------------------------------------------------------------------


class Service:
	"""A service processes requests into responses."""

	def __init__(self, name: Optional[str] = None) -> None:
		self.name: str = name or self.__class__.__name__
		self.init()

	def init(self) -> None:
		pass

	def process(self, request: HTTPRequest) -> HTTPResponse:
		return request.notFound()

	def __repr__(self) -> str:
		return f"(Service {self.name})"


# -----------------------------------------------------------------------------
#
# APPLICATION
#
# -----------------------------------------------------------------------------


class Application:
	"""Wraps a service so that any failure turns into an error response, the
	details of which only go to the log."""

	def __init__(self, service: Service) -> None:
		self.service: Service = service

	def process(self, request: HTTPRequest) -> HTTPResponse:
		try:
			return self.service.process(request)
		except HTTPRequestError as e:
			status = e.status or 500
			if status >= 500:
				exception(e, f"Request failed: {request.method} {request.path}")
			return request.error(status)
		except Exception as e:
			exception(e, f"Request failed: {request.method} {request.path}")
			return request.fail()

	def __repr__(self) -> str:
		return f"(Application {self.service})"


# EOF
