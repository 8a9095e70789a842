"""
Metrics service routes: Prometheus scrape endpoint and request timing hooks.
"""

import time

from flask import Blueprint, Flask, Response, g, request

METRICS_PATH = "/metrics"


def create_metrics_blueprint(metrics) -> Blueprint:
    """
    Build the blueprint serving the scrape endpoint.

    Args:
        metrics: UploadMetrics or NullMetrics instance to render.

    Returns:
        Blueprint: Exposes GET /metrics.
    """
    metrics_bp = Blueprint("metrics", __name__)

    @metrics_bp.route(METRICS_PATH, methods=["GET"])
    def export_metrics() -> Response:
        """
        Render every registered metric in the Prometheus text format.

        Returns:
            200: Metrics text.
        """
        return Response(metrics.render(), status=200, content_type=metrics.content_type)

    return metrics_bp


def install_request_timer(app: Flask, metrics) -> None:
    """
    Record the duration of every request except the scrape itself.

    The route label is the matched URL rule (e.g. '/upload'), or the raw
    path when no rule matched.
    """

    @app.before_request
    def start_timer() -> None:
        if request.path == METRICS_PATH:
            return
        g.request_started_at = time.perf_counter()

    @app.after_request
    def record_duration(response: Response) -> Response:
        started_at = g.pop("request_started_at", None)
        if started_at is None:
            return response

        elapsed_ms = (time.perf_counter() - started_at) * 1000
        route = request.url_rule.rule if request.url_rule is not None else request.path
        metrics.observe_request(request.method, route, response.status_code, elapsed_ms)
        return response
