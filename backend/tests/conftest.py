import pytest

from backend.ai_service.client import ImageDescriber
from backend.gateway.config import Settings
from backend.gateway.server import create_app
from backend.metrics_service.registry import UploadMetrics


@pytest.fixture
def settings():
    return Settings(
        app_env="production",
        google_cloud_project="test-project",
        google_application_credentials="/tmp/credentials.json",
        max_upload_mb=1,
    )


@pytest.fixture
def describer(mocker):
    """
    Mocks the model client. Tests set describe.return_value / side_effect.
    """
    return mocker.Mock(spec=ImageDescriber)


@pytest.fixture
def metrics():
    # A fresh registry per test so counters never leak between tests
    return UploadMetrics(default_collectors=False)


@pytest.fixture
def app(settings, describer, metrics):
    app = create_app(settings, describer=describer, metrics=metrics)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sample(metrics):
    """
    Reader for one labelled series of the test registry (0.0 if never observed).
    """
    def read(name, **labels):
        return metrics.registry.get_sample_value(name, labels) or 0.0
    return read
