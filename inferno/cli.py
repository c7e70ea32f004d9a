"""Command that starts the optimizer REST server."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping, Sequence

from inferno.rest import create_app
from inferno.system import System

REST_HOST_ENV_NAME = "INFERNO_HOST"
REST_PORT_ENV_NAME = "INFERNO_PORT"

DEFAULT_HOST = ""
DEFAULT_PORT = "8080"

# Command-line argument selecting the stateful server
DEFAULT_STATEFUL = "-F"

_ALL_INTERFACES = "0.0.0.0"


def server_address(environ: Mapping[str, str]) -> tuple[str, int]:
    """Host and port to listen on, taken from the environment.

    An unset or empty host means all interfaces. Raises ValueError for a
    port that is not a number in the range 0 to 65535.
    """
    host = environ.get(REST_HOST_ENV_NAME) or DEFAULT_HOST
    port_text = environ.get(REST_PORT_ENV_NAME) or DEFAULT_PORT
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"invalid port {port_text!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"port {port} out of range")
    return host or _ALL_INTERFACES, port


def main(argv: Sequence[str] | None = None) -> int:
    """Run the REST server: stateless by default, stateful with ``-F``."""
    args = list(sys.argv[1:] if argv is None else argv)
    stateful = bool(args) and args[0] == DEFAULT_STATEFUL
    host, port = server_address(os.environ)
    app = create_app(stateful, System())
    app.run(host=host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())