from .http.model import HTTPRequest, HTTPResponse, HTTPRequestError  # NOQA: F401
from .paths import ServerConfig, resolve  # NOQA: F401
from .netif import resolveBindAddress  # NOQA: F401
from .services.files import FileService  # NOQA: F401
from .server import run  # NOQA: F401

__version__ = "1.0.0"

# EOF
