"""
HTTP server exposing the metrics endpoint.
"""
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlparse

from prometheus_client import CollectorRegistry
from prometheus_client.exposition import choose_encoder

from .config import ExporterConfig
from .logger import get_logger

LANDING_PAGE = """<html>
<head><title>Mastodon Exporter</title></head>
<body>
<h1>Mastodon Exporter</h1>
<p>Exporting metrics for {domain}</p>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


class ExporterServer:
    """Serves the registry on the configured path, one collection per GET."""

    def __init__(self, config: ExporterConfig, registry: CollectorRegistry):
        self.config = config
        self.registry = registry
        self.logger = get_logger("server")
        self.server = None
        self.server_thread = None

    @property
    def server_address(self):
        return self.server.server_address if self.server else None

    def _bind(self):
        if self.server is None:
            handler = self._create_handler()
            self.server = ThreadingHTTPServer(
                (self.config.listen_address, self.config.port), handler)
            self.server.daemon_threads = True
            self.logger.info("listening on",
                             address=f"{self.config.listen_address}:{self.server.server_address[1]}",
                             path=self.config.path)
        return self.server

    def start(self):
        """Start serving in a background thread."""
        server = self._bind()
        if self.server_thread is None:
            self.server_thread = threading.Thread(target=server.serve_forever, daemon=True)
            self.server_thread.start()

    def serve_forever(self):
        """Serve until interrupted."""
        self._bind().serve_forever()

    def stop(self):
        """Stop the server."""
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.server = None
            self.server_thread = None

    def _create_handler(self):
        """Create HTTP request handler."""
        exporter_server = self

        class MetricsHandler(BaseHTTPRequestHandler):
            def do_GET(self):
                path = urlparse(self.path).path
                config = exporter_server.config

                if path == config.path:
                    self._send_metrics()
                elif path == '/':
                    body = LANDING_PAGE.format(domain=config.domain, path=config.path)
                    self._send(200, 'text/html; charset=utf-8', body.encode())
                elif path == '/health':
                    body = json.dumps({"status": "alive", "timestamp": time.time()})
                    self._send(200, 'application/json', body.encode())
                else:
                    self._send(404, 'text/plain; charset=utf-8', b'Not Found\n')

            def _send_metrics(self):
                encoder, content_type = choose_encoder(self.headers.get('Accept', ''))
                try:
                    output = encoder(exporter_server.registry)
                except Exception:
                    exporter_server.logger.exception("Failed to render metrics")
                    self._send(500, 'text/plain; charset=utf-8', b'Internal Server Error\n')
                    return
                self._send(200, content_type, output)

            def _send(self, status_code: int, content_type: str, body: bytes):
                self.send_response(status_code)
                self.send_header('Content-Type', content_type)
                self.send_header('Content-Length', str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format, *args):
                exporter_server.logger.debug("HTTP request",
                                             client=self.client_address[0],
                                             request=format % args)

        return MetricsHandler


def start_exporter_server(config: ExporterConfig,
                          registry: CollectorRegistry) -> ExporterServer:
    """Create and start a background exporter server."""
    server = ExporterServer(config, registry)
    server.start()
    return server
