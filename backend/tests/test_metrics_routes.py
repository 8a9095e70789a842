import io
from concurrent.futures import ThreadPoolExecutor

from backend.ai_service.client import Described
from backend.metrics_service.registry import NullMetrics, PLACEHOLDER_METRICS, UploadMetrics


METRIC_FAMILIES = [
    ("image_upload_total", "counter"),
    ("ai_api_call_total", "counter"),
    ("http_request_duration_ms", "histogram"),
]


def assert_all_families(body):
    for family, kind in METRIC_FAMILIES:
        assert f"# HELP {family}" in body
        assert f"# TYPE {family} {kind}" in body


def test_metrics_exposition(client):
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["Content-Type"]
    assert_all_families(response.get_data(as_text=True))


def test_metrics_exposition_after_traffic(client, describer):
    describer.describe.side_effect = [Described("A dog."), Exception("boom")]

    def image():
        return {"image": (io.BytesIO(b"img"), "dog.jpg")}

    client.post("/upload", data=image(), content_type="multipart/form-data")
    client.post("/upload")
    client.post("/upload", data=image(), content_type="multipart/form-data")

    body = client.get("/metrics").get_data(as_text=True)
    assert_all_families(body)
    assert 'image_upload_total{status="success"} 1.0' in body
    assert 'image_upload_total{status="fail"} 2.0' in body
    assert 'ai_api_call_total{status="fail"} 1.0' in body


def test_concurrent_uploads_lose_no_increments(app, describer, sample):
    describer.describe.return_value = Described("Same text.")

    def upload(_):
        # One test client per worker thread
        with app.test_client() as worker:
            response = worker.post(
                "/upload",
                data={"image": (io.BytesIO(b"img"), "cat.jpg")},
                content_type="multipart/form-data",
            )
        return response.status_code

    with ThreadPoolExecutor(max_workers=16) as pool:
        codes = list(pool.map(upload, range(200)))

    assert codes == [200] * 200
    assert sample("image_upload_total", status="success") == 200
    assert sample("ai_api_call_total", status="success") == 200
    assert sample("http_request_duration_ms_count", method="POST", route="/upload", code="200") == 200


def test_counters_start_at_zero(client):
    body = client.get("/metrics").get_data(as_text=True)

    assert 'image_upload_total{status="success"} 0.0' in body
    assert 'ai_api_call_total{status="fail"} 0.0' in body


def test_request_duration_recorded_with_route(client, describer, metrics, sample):
    describer.describe.return_value = Described("A cat.")

    client.post("/upload", data={"image": (io.BytesIO(b"img"), "cat.jpg")}, content_type="multipart/form-data")
    client.post("/upload")

    assert sample("http_request_duration_ms_count", method="POST", route="/upload", code="200") == 1
    assert sample("http_request_duration_ms_count", method="POST", route="/upload", code="400") == 1


def test_unmatched_route_uses_raw_path(client, sample):
    response = client.get("/nowhere")

    assert response.status_code == 404
    assert sample("http_request_duration_ms_count", method="GET", route="/nowhere", code="404") == 1


def test_wrong_method_on_upload(client, sample):
    response = client.get("/upload")

    assert response.status_code == 405
    assert sample("http_request_duration_ms_count", method="GET", route="/upload", code="405") == 1


def test_static_route_uses_rule_pattern(client, sample):
    response = client.get("/static/missing.png")

    assert response.status_code == 404
    assert sample("http_request_duration_ms_count", method="GET", route="/static/<path:filename>", code="404") == 1


def test_metrics_scrape_not_timed(client, metrics, sample):
    client.get("/metrics")
    client.get("/metrics")

    assert sample("http_request_duration_ms_count", method="GET", route="/metrics", code="200") == 0


def test_default_collectors_registered():
    body = UploadMetrics().render().decode("utf-8")

    assert "python_info" in body
    assert "python_gc_objects_collected_total" in body


def test_null_metrics_placeholder():
    metrics = NullMetrics()
    metrics.record_upload("success")
    metrics.record_ai_call("fail")
    metrics.observe_request("GET", "/", 200, 1.5)

    assert metrics.render() == PLACEHOLDER_METRICS.encode("utf-8")
