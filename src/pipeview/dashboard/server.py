"""
JSON HTTP API over a single DeliveryPipelineView.
Serves the component list for periodic dashboard refreshes and accepts
start-job and manual-trigger requests.
"""

import json
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Dict
from urllib.parse import urlparse

from pipeview.view.errors import (
    AuthorizationError,
    ConfigurationError,
    JobNotFoundError,
    TriggerError,
)
from pipeview.view.view import DeliveryPipelineView

_ERROR_STATUS = [
    (AuthorizationError, 403),
    (JobNotFoundError, 404),
    (TriggerError, 409),
    (ConfigurationError, 400),
]


def error_status(exc: Exception) -> int:
    for exc_type, status in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 500


class ViewRequestHandler(BaseHTTPRequestHandler):
    view: DeliveryPipelineView

    def do_GET(self):
        """Handle GET requests for view data."""
        path = urlparse(self.path).path

        if path == '/api/view':
            self.handle_json(self.view.to_dict)
        elif path == '/api/items':
            self.handle_json(lambda: {'items': self.view.get_items()})
        elif path == '/api/options':
            self.handle_json(self.view.options)
        else:
            self.send_error(404, "Endpoint not found")

    def do_POST(self):
        """Handle POST requests for build actions."""
        path = urlparse(self.path).path

        if path == '/api/start':
            self.handle_json(self.start_job)
        elif path == '/api/trigger':
            self.handle_json(self.trigger_manual)
        else:
            self.send_error(404, "Endpoint not found")

    def do_OPTIONS(self):
        """Handle OPTIONS requests for CORS."""
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()

    def read_body(self) -> Dict[str, Any]:
        length = int(self.headers.get('Content-Length') or 0)
        if not length:
            return {}
        try:
            body = json.loads(self.rfile.read(length))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON body: {e}") from e
        if not isinstance(body, dict):
            raise ConfigurationError("Request body must be a JSON object")
        return body

    def start_job(self) -> Dict[str, Any]:
        body = self.read_body()
        job = body.get('job', '')
        self.view.start_job(job)
        return {'success': True, 'job': job}

    def trigger_manual(self) -> Dict[str, Any]:
        body = self.read_body()
        project = body.get('projectName', '')
        upstream = body.get('upstreamName', '')
        build_id = str(body.get('buildId', ''))
        try:
            self.view.trigger_manual(project, upstream, build_id)
        except TriggerError as e:
            raise TriggerError(
                f"Could not trigger {project} from {upstream} #{build_id}: {e}") from e
        return {'success': True}

    def handle_json(self, producer):
        try:
            status, payload = 200, producer()
        except Exception as e:
            status, payload = error_status(e), {'error': str(e), 'success': False}

        self.send_response(status)
        self.send_header('Content-type', 'application/json')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.end_headers()
        self.wfile.write(json.dumps(payload, indent=2).encode())

    def log_message(self, format, *args):
        # Requests are recorded in the view activity log instead
        pass


def make_server(view: DeliveryPipelineView, port: int = 8765, host: str = '') -> HTTPServer:
    handler = type('BoundViewRequestHandler', (ViewRequestHandler,), {'view': view})
    return HTTPServer((host, port), handler)


def run_server(view: DeliveryPipelineView, port: int = 8765):
    httpd = make_server(view, port)
    print(f"Pipeline view '{view.name}' served on http://localhost:{port}")
    print("Endpoints:")
    print("   GET  /api/view    - Components, last error, display options")
    print("   GET  /api/items   - Jobs belonging to the view")
    print("   POST /api/start   - Start a job")
    print("   POST /api/trigger - Manually promote a build")
    print("Press Ctrl+C to stop\n")
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        print("\nServer stopped")
    finally:
        httpd.server_close()
