from dirserve.http.model import HTTPRequest, HTTPRequestError, HTTPResponse
from dirserve.model import Application, Service

from conftest import content, parse


class Failing(Service):
	def __init__(self, error: Exception):
		self.error = error
		super().__init__()

	def process(self, request: HTTPRequest) -> HTTPResponse:
		raise self.error


def test_default_service():
	res = Application(Service()).process(parse("GET", "/"))
	assert res.status == 404
	assert content(res) == b"404 page not found"


def test_request_error():
	res = Application(Failing(HTTPRequestError("Not for you", 403))).process(parse("GET", "/"))
	assert res.status == 403
	# Only the status reason is sent
	assert content(res) == b"Forbidden"


def test_unexpected_error(capsys):
	res = Application(Failing(RuntimeError("Secret details"))).process(
		parse("GET", "/x")
	)
	assert res.status == 500
	assert content(res) == b"internal server error."
	err = capsys.readouterr().err
	assert "Request failed: GET /x: [RuntimeError] Secret details" in err


# EOF
