import pytest
import requests

from services import (
    AIService,
    ConfigService,
    ConfigurationMissingError,
    DatasetValidationError,
    ErrorCategory,
    InternalError,
    InvalidInputError,
    InvalidParameterError,
    MethodNotAllowedError,
    QueryState,
    UpstreamError,
)


def test_blank_query_is_rejected_before_any_call(azure_env, fake_session):
    service = AIService(session=fake_session)

    for query in ["", "   \n", None, 42]:
        result = service.ask(query)
        assert result.state is QueryState.FAILED
        assert result.to_response() == (400, {"error": "Query is required"})

    assert fake_session.calls == []


@pytest.mark.parametrize(
    "missing",
    ["AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_API_KEY", "AZURE_OPENAI_DEPLOYMENT_GPT5", "AZURE_OPENAI_API_VERSION"],
)
def test_missing_configuration(monkeypatch, azure_env, fake_session, missing):
    monkeypatch.delenv(missing)
    service = AIService(session=fake_session)

    result = service.ask("anything")

    status, body = result.to_response()
    assert status == 500
    assert body == {"error": "Azure OpenAI configuration missing"}
    assert fake_session.calls == []


def test_deployment_alias_is_accepted(monkeypatch, azure_env, fake_session):
    monkeypatch.delenv("AZURE_OPENAI_DEPLOYMENT_GPT5")
    monkeypatch.setenv("AZURE_OPENAI_DEPLOYMENT", "board-alias")

    result = AIService(session=fake_session).ask("anything")

    assert result.ok
    assert "/openai/deployments/board-alias/" in fake_session.calls[0]["url"]


def test_successful_call_shape(azure_env, fake_session):
    result = AIService(session=fake_session).ask("How do we lift Home attachment?")

    assert result.ok
    assert result.state is QueryState.SUCCEEDED
    assert result.to_response() == (200, {"answer": "Push Home & Garden adjacency."})

    assert len(fake_session.calls) == 1
    call = fake_session.calls[0]
    assert call["url"] == (
        "https://example-resource.openai.azure.com/openai/deployments/gpt-5-board"
        "/chat/completions?api-version=2025-01-01-preview"
    )
    assert call["headers"] == {"Content-Type": "application/json", "api-key": "test-key-123"}
    assert call["timeout"] == ConfigService.AZURE_DEFAULT_TIMEOUT

    body = call["json"]
    assert body["max_completion_tokens"] == 1000
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert body["messages"][1]["content"] == "How do we lift Home attachment?"
    assert body["messages"][0]["content"].startswith("You are a retail analytics expert")


def test_trailing_slash_and_timeout_settings(monkeypatch, azure_env, fake_session):
    monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://example-resource.openai.azure.com/")
    monkeypatch.setenv("AZURE_OPENAI_TIMEOUT", "12.5")

    AIService(session=fake_session).ask("q")

    call = fake_session.calls[0]
    assert call["url"].startswith("https://example-resource.openai.azure.com/openai/")
    assert call["timeout"] == 12.5


def test_payload_is_injected_into_system_prompt(azure_env, fake_session, dataset):
    data = dataset.to_payload()
    data["kpi"]["totalGroceryTxns"] = 1234567

    AIService(session=fake_session).ask("q", data)

    system = fake_session.calls[0]["json"]["messages"][0]["content"]
    assert "- Total grocery transactions: 1,234,567" in system
    assert "- Home & Garden: 6,322,479 transactions (48.1% of mixed)" in system


def test_malformed_payload_falls_back(azure_env, fake_session):
    AIService(session=fake_session).ask("q", {"kpi": "nope", "mixCats": {"name": "x"}})

    system = fake_session.calls[0]["json"]["messages"][0]["content"]
    assert "- Total grocery transactions: 24,745,410" in system


def test_upstream_error_is_not_retried(azure_env, make_session):
    session = make_session(status_code=429, text="rate limited")

    result = AIService(session=session).ask("anything")

    status, body = result.to_response()
    assert status == 500
    assert body == {"error": "Azure OpenAI API error: 429"}
    assert body["error"] != "Azure OpenAI configuration missing"
    assert len(session.calls) == 1
    assert result.error.upstream_status == 429


@pytest.mark.parametrize(
    "json_data",
    [
        {},
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": ""}}]},
        {"choices": [{"message": None}]},
        [],
    ],
)
def test_missing_answer_uses_placeholder(azure_env, make_session, json_data):
    result = AIService(session=make_session(json_data=json_data)).ask("anything")
    assert result.to_response() == (200, {"answer": "No response generated"})


def test_transport_failure_is_internal_error(azure_env, make_session):
    session = make_session(error=requests.ConnectionError("https://example-resource.openai.azure.com refused"))

    status, body = AIService(session=session).ask("anything").to_response()

    assert status == 500
    assert body == {"error": "Internal server error"}


def test_undecodable_body_is_internal_error(azure_env, make_session):
    session = make_session(json_error=ValueError("bad json"))
    assert AIService(session=session).ask("anything").to_response() == (500, {"error": "Internal server error"})


def test_errors_never_expose_configuration(azure_env, make_session):
    for session in (
        make_session(status_code=401, text="invalid key test-key-123"),
        make_session(error=RuntimeError(azure_env["AZURE_OPENAI_API_KEY"])),
    ):
        _, body = AIService(session=session).ask("anything").to_response()
        for value in azure_env.values():
            assert value not in body["error"]


def test_oversized_payload_numbers_still_get_an_answer(azure_env, fake_session):
    data = {
        "kpi": {"totalGrocerySales": 1e27, "pureTxns": 10**400},
        "mixCats": [{"name": "Toys", "mixTxns": 10**400, "mixSales": 10, "avgTicket": 2}],
    }

    result = AIService(session=fake_session).ask("Is this plausible?", data)

    assert result.to_response() == (200, {"answer": "Push Home & Garden adjacency."})
    system_prompt = fake_session.calls[0]["json"]["messages"][0]["content"]
    assert "- Total grocery sales: $1,000,000,000,000,000,000,000,000,000\n" in system_prompt
    assert "- Pure grocery transactions: 11,607,631 (46.9% of total)\n" in system_prompt


def test_every_error_category_is_raised_somewhere():
    declared = {v for k, v in vars(ErrorCategory).items() if k.isupper()}
    carried = {
        cls.category
        for cls in (
            InvalidInputError, MethodNotAllowedError, ConfigurationMissingError, UpstreamError,
            InternalError, InvalidParameterError, DatasetValidationError,
        )
    }
    assert declared == carried
