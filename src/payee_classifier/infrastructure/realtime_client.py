"""Per-name AI classification over an OpenAI-compatible chat-completions API.

Usage example:
    from payee_classifier.infrastructure.realtime_client import HttpRealtimeClassifier

    ai = HttpRealtimeClassifier(api_key="sk-...")
    result = await ai.classify("Acme Holdings Inc")
"""

from __future__ import annotations

import asyncio
from typing import override

import requests

from ..domain.classification import AI_METHOD, ClassificationResult, ProcessingTier
from ..exceptions import ClassificationFailure
from ..observability import get_logger
from ..protocols import RealtimeAiClassifier
from .batch_client import (
    chat_completion_body,
    completion_content,
    parse_classification_content,
    response_details,
)

logger = get_logger("payee_classifier.realtime_client")


class HttpRealtimeClassifier(RealtimeAiClassifier):
    """Classify one payee name per chat-completion request.

    Uses the same prompt and reply format as batch jobs. Every failure, whether
    a transport error, an error status or an unusable reply, raises
    `ClassificationFailure` for that name.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _classify(self, payee_name: str) -> ClassificationResult:
        if not payee_name.strip():
            raise ClassificationFailure(payee_name, "Empty payee name")
        try:
            response = self.session.request(
                "POST",
                f"{self.base_url}/chat/completions",
                json=chat_completion_body(payee_name, self.model),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise ClassificationFailure(payee_name, f"request failed: {exc}") from exc
        if response.status_code >= 400:
            raise ClassificationFailure(
                payee_name,
                f"status={response.status_code}, body={response_details(response)}",
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ClassificationFailure(payee_name, "response was not JSON") from exc

        content = completion_content(payload)
        if not content:
            raise ClassificationFailure(payee_name, "No response content")
        parsed = parse_classification_content(content)
        if not parsed.ok or parsed.classification is None:
            raise ClassificationFailure(payee_name, parsed.error or "No classification returned")
        logger.debug(
            "Classified %r as %s (%d)", payee_name, parsed.classification, parsed.confidence
        )
        return ClassificationResult(
            classification=parsed.classification,
            confidence=parsed.confidence,
            reasoning=parsed.reasoning,
            processing_tier=ProcessingTier.AI_ASSISTED,
            processing_method=AI_METHOD,
        )

    @override
    async def classify(self, payee_name: str) -> ClassificationResult:
        return await asyncio.to_thread(self._classify, payee_name)
