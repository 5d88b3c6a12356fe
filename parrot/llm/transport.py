"""HTTP session whose in-flight requests can be torn down from another thread.

``requests.Session.close()`` only drops idle pooled connections; a connection
that is checked out and blocked in ``recv`` keeps waiting for the server. The
adapter here records every checked-out connection, and closing the session
shuts those sockets down so the blocked request fails at once.
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Set

import requests
from requests.adapters import HTTPAdapter
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._live: Set[object] = set()

    def add(self, conn: object) -> None:
        with self._lock:
            self._live.add(conn)

    def discard(self, conn: object) -> None:
        with self._lock:
            self._live.discard(conn)

    def abort_all(self) -> int:
        """Shut down the socket of every checked-out connection; returns how many."""
        with self._lock:
            conns, self._live = list(self._live), set()
        aborted = 0
        for conn in conns:
            sock = getattr(conn, "sock", None)
            if sock is None:
                continue
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # already closed by the peer
                continue
            aborted += 1
        if aborted:
            logger.debug("Aborted %d in-flight connection(s)", aborted)
        return aborted


def _tracking_pool(base: type, registry: ConnectionRegistry) -> type:
    class TrackingPool(base):  # type: ignore[misc, valid-type]
        def _get_conn(self, timeout=None):
            conn = super()._get_conn(timeout=timeout)
            registry.add(conn)
            return conn

        def _put_conn(self, conn):
            registry.discard(conn)
            super()._put_conn(conn)

    TrackingPool.__name__ = f"Tracking{base.__name__}"
    return TrackingPool


class CancellableAdapter(HTTPAdapter):
    def __init__(self, *args, **kwargs) -> None:
        # init_poolmanager runs inside HTTPAdapter.__init__
        self.connections = ConnectionRegistry()
        super().__init__(*args, **kwargs)

    def init_poolmanager(self, *args, **kwargs) -> None:
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = {
            "http": _tracking_pool(HTTPConnectionPool, self.connections),
            "https": _tracking_pool(HTTPSConnectionPool, self.connections),
        }


class CancellableSession(requests.Session):
    """``requests.Session`` whose ``close()`` also interrupts requests in flight."""

    def __init__(self) -> None:
        super().__init__()
        self._adapter = CancellableAdapter()
        self.mount("https://", self._adapter)
        self.mount("http://", self._adapter)

    def close(self) -> None:
        self._adapter.connections.abort_all()
        super().close()
