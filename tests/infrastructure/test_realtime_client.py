"""Tests for the per-name chat-completions classifier."""

import asyncio
import json

import pytest
import requests

from payee_classifier.domain.classification import AI_METHOD, Classification, ProcessingTier
from payee_classifier.exceptions import ClassificationFailure
from payee_classifier.infrastructure.realtime_client import HttpRealtimeClassifier
from tests.fakes import FakeResponse, FakeSession


def _completion(content: object) -> dict[str, object]:
    body = content if isinstance(content, str) else json.dumps(content)
    return {"choices": [{"message": {"content": body}}]}


def _classifier(session: FakeSession) -> HttpRealtimeClassifier:
    return HttpRealtimeClassifier(
        api_key="sk-test",
        base_url="https://api.example.com/v1/",
        model="gpt-test",
        timeout_seconds=5.0,
        session=session,  # type: ignore[arg-type]
    )


def test_classify_posts_chat_request_and_parses_reply() -> None:
    session = FakeSession(
        responses=[
            FakeResponse(
                payload=_completion(
                    {"classification": "Business", "confidence": 91.6, "reasoning": "LLC suffix"}
                )
            )
        ]
    )

    result = asyncio.run(_classifier(session).classify("Acme LLC"))

    assert result.classification is Classification.BUSINESS
    assert result.confidence == 92
    assert result.reasoning == "LLC suffix"
    assert result.processing_tier is ProcessingTier.AI_ASSISTED
    assert result.processing_method == AI_METHOD
    (request,) = session.requests
    assert request.method == "POST"
    assert request.url == "https://api.example.com/v1/chat/completions"
    assert request.kwargs["timeout"] == 5.0
    body = request.kwargs["json"]
    assert body["model"] == "gpt-test"
    assert body["response_format"] == {"type": "json_object"}
    assert 'Classify this payee name: "Acme LLC"' in body["messages"][1]["content"]
    assert session.headers["Authorization"] == "Bearer sk-test"


@pytest.mark.parametrize(
    ("response", "detail"),
    [
        (FakeResponse(status_code=429, text="slow down"), "status=429, body=slow down"),
        (FakeResponse(status_code=500, text="boom"), "status=500"),
        (FakeResponse(text="<html>"), "response was not JSON"),
        (FakeResponse(payload={"choices": []}), "No response content"),
        (FakeResponse(payload=_completion("not json")), "Failed to parse classification"),
        (
            FakeResponse(payload=_completion({"classification": "Robot", "confidence": 50})),
            "Failed to parse classification",
        ),
    ],
)
def test_unusable_responses_raise_classification_failure(
    response: FakeResponse, detail: str
) -> None:
    session = FakeSession(responses=[response])

    with pytest.raises(ClassificationFailure, match=detail) as excinfo:
        asyncio.run(_classifier(session).classify("Jane Doe"))

    assert excinfo.value.payee_name == "Jane Doe"


def test_transport_errors_raise_classification_failure() -> None:
    session = FakeSession(responses=[requests.ConnectionError("connection reset")])

    with pytest.raises(ClassificationFailure, match="request failed: connection reset"):
        asyncio.run(_classifier(session).classify("Jane Doe"))


def test_blank_name_is_rejected_without_a_request() -> None:
    session = FakeSession()

    with pytest.raises(ClassificationFailure, match="Empty payee name"):
        asyncio.run(_classifier(session).classify("   "))

    assert session.requests == []
