# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import threading
from contextlib import contextmanager
from queue import Queue
from socketserver import TCPServer
from typing import Iterator


@contextmanager
def http_server(handler_class: type) -> Iterator[int]:
    """Serves `handler_class` on an ephemeral localhost port, yielding the port."""

    def serve(port_queue: Queue[int], shutdown_queue: Queue[bool]) -> None:
        httpd = TCPServer(("127.0.0.1", 0), handler_class)
        httpd.timeout = 0.1

        port_queue.put(httpd.server_address[1])
        while shutdown_queue.empty():
            httpd.handle_request()
        httpd.server_close()

    port_queue: Queue[int] = Queue()
    shutdown_queue: Queue[bool] = Queue()
    t = threading.Thread(target=lambda: serve(port_queue, shutdown_queue))
    t.daemon = True
    t.start()

    try:
        yield port_queue.get(block=True)
    finally:
        shutdown_queue.put(True)
        t.join()
