"""
Embedded File Server Example

This runs the file server from Python rather than from the command line.
Features shown:
- Resolving a directory (or a single file) into a server configuration
- Picking the address of a network interface
- Disabling the access log

Usage:
    python fileserver.py [PATH] [INTERFACE]

Test with:
    http://<address>:8000/           # Browse the directory
    http://<address>:8000/README.md  # Serve a specific file
"""

import sys
from dataclasses import replace

from dirserve import resolve, resolveBindAddress, run
from dirserve.utils.logging import info

if __name__ == "__main__":
	config = resolve(sys.argv[1] if len(sys.argv) > 1 else None, port=8000)
	config = replace(
		config, host=resolveBindAddress(sys.argv[2] if len(sys.argv) > 2 else None)
	)
	info("Starting embedded file server", Root=str(config.root))
	run(config, logRequests=False)

# EOF
