import pytest

from services import AggregationService, ConfigService, MetricsDataService


AZURE_ENV = {
    "AZURE_OPENAI_ENDPOINT": "https://example-resource.openai.azure.com",
    "AZURE_OPENAI_API_KEY": "test-key-123",
    "AZURE_OPENAI_DEPLOYMENT_GPT5": "gpt-5-board",
    "AZURE_OPENAI_API_VERSION": "2025-01-01-preview",
}


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, json_data=None, text="", json_error=None):
        self.status_code = status_code
        self._json_data = json_data
        self._json_error = json_error
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._json_data


class FakeSession:
    """Records post() calls and replays a canned response or exception."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(
            json_data={"choices": [{"message": {"role": "assistant", "content": "Push Home & Garden adjacency."}}]}
        )
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def dataset():
    return MetricsDataService.load_dataset(ConfigService.DEFAULT_DATA_PATH)


@pytest.fixture
def metrics(dataset):
    return dataset.metrics


@pytest.fixture
def view(dataset):
    return AggregationService.derive(dataset.metrics, dataset.categories, dataset.hierarchy)


@pytest.fixture
def azure_env(monkeypatch):
    for key, value in AZURE_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("AZURE_OPENAI_DEPLOYMENT", raising=False)
    monkeypatch.delenv("AZURE_OPENAI_TIMEOUT", raising=False)
    return dict(AZURE_ENV)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def make_session():
    def _make(status_code=200, json_data=None, text="", json_error=None, error=None):
        if json_data is None and json_error is None and status_code < 400:
            return FakeSession(error=error)
        return FakeSession(
            response=FakeResponse(status_code, json_data, text, json_error),
            error=error,
        )
    return _make
