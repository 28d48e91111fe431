import socket

import psutil

from .config import DEFAULT_INTERFACE_INDEX
from .errors import InterfaceNotFound, NoUsableAddress
from .utils.logging import info

# --
# Network interfaces are enumerated by the platform (`if_nameindex`), their
# addresses are retrieved through `psutil`, which covers the platforms where
# `socket` does not expose them.


def listInterfaces() -> list[tuple[int, str]]:
	"""Returns the `(index, name)` of the network interfaces, sorted by index."""
	try:
		return sorted(socket.if_nameindex())
	except (AttributeError, OSError):
		# Not every platform exposes interface indexes
		return list(enumerate(sorted(psutil.net_if_addrs()), start=1))


def interfaceName(index: int = DEFAULT_INTERFACE_INDEX) -> str:
	"""Returns the name of the interface with the given platform index."""
	interfaces = listInterfaces()
	for i, name in interfaces:
		if i == index:
			return name
	raise InterfaceNotFound(index, [n for _, n in interfaces])


def interfaceAddress(name: str) -> str:
	"""Returns the first IPv4 address assigned to the given interface."""
	addresses = psutil.net_if_addrs()
	if name not in addresses:
		raise InterfaceNotFound(name, sorted(addresses))
	for address in addresses[name]:
		if address.family == socket.AF_INET and address.address:
			return address.address
	raise NoUsableAddress(name)


def resolveBindAddress(name: str | None = None) -> str:
	"""Resolves the IPv4 address to bind to for the given interface name. When
	no name is given, the interface with the default platform index is used,
	which is environment dependent."""
	interface = name or interfaceName(DEFAULT_INTERFACE_INDEX)
	address = interfaceAddress(interface)
	info("Choosing interface", Interface=interface, Address=address)
	return address


# EOF
