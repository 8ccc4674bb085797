"""
document_generator.py – Four-way guide generation fan-out
==========================================================
Client side of guide generation.  ``DocumentGeneratorClient.generate_all``
issues one request per document type, all four concurrently, and joins
them with a wait-for-all policy: each task returns its own
``DocumentOutcome`` so one failing guide never blocks or fails the others.

Per-type contract
-----------------
  • non-2xx status                         → DocumentFailed
  • payload carries ``error``/``userMessage`` → DocumentFailed
  • content empty or < 100 characters      → DocumentFailed
  • any exception (transport, JSON, config) → DocumentFailed
  • otherwise                              → DocumentCompleted

Outcomes are written back to the document store; callers re-read the
stored rows afterwards.  There are no retries.

Transports
----------
  LocalGuideTransport   calls GuideService in-process (default)
  HttpGuideTransport    POSTs to ``{GUIDE_FUNCTIONS_URL}/{function-name}`` via httpx,
                        selected by default_transport() once that URL is set
"""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Any, Optional, Protocol

import httpx

from startup_companion import database
from startup_companion.config import FunctionsConfig, Settings, get_settings
from startup_companion.guide_service import MIN_CONTENT_LENGTH, GuideService
from startup_companion.models import (
    CONFIRMED_IDEA_FLOW,
    DOCUMENT_META,
    DOCUMENT_TYPES,
    DocumentCompleted,
    DocumentFailed,
    DocumentOutcome,
    DocumentType,
    GeneratedDocument,
    GenerationStatus,
    document_title,
)

logger = logging.getLogger(__name__)


class GuideTransport(Protocol):
    def send(self, doc_type: DocumentType, body: dict[str, Any]) -> tuple[int, Any]:
        """Deliver one generation request; return (status_code, decoded body)."""
        ...


class LocalGuideTransport:
    """Runs the guide endpoint in the same process."""

    def __init__(self, service: GuideService | None = None) -> None:
        self._service = service or GuideService()

    def send(self, doc_type: DocumentType, body: dict[str, Any]) -> tuple[int, Any]:
        return self._service.handle(doc_type, body)


class HttpGuideTransport:
    """Calls remotely deployed guide endpoints, one per document type."""

    def __init__(
        self,
        config: FunctionsConfig,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        self._cfg    = config
        # timeout=None waits for as long as the guide function takes
        self._client = client or httpx.Client(timeout=timeout)

    def send(self, doc_type: DocumentType, body: dict[str, Any]) -> tuple[int, Any]:
        url = f"{self._cfg.url}/{DOCUMENT_META[doc_type]['function']}"
        response = self._client.post(
            url,
            json=body,
            headers={
                "Authorization": f"Bearer {self._cfg.api_key}",
                "Content-Type":  "application/json",
            },
        )
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        return response.status_code, payload


def default_transport(settings: Settings | None = None) -> GuideTransport:
    """HTTP transport when remote guide functions are configured, else in-process."""
    settings = settings or get_settings()
    if settings.functions.is_configured:
        logger.info("Using remote guide functions at %s", settings.functions.url)
        return HttpGuideTransport(settings.functions)
    return LocalGuideTransport(GuideService(settings))


def _validate(doc_type: DocumentType, status: int, payload: Any) -> DocumentOutcome:
    if not 200 <= status < 300:
        logger.error("Failed to generate %s document: HTTP %s %s", doc_type.value, status, payload)
        return DocumentFailed(doc_type, f"HTTP {status}")

    if not isinstance(payload, dict):
        logger.error("Malformed payload for %s document: %r", doc_type.value, payload)
        return DocumentFailed(doc_type, "malformed payload")

    if payload.get("error") or payload.get("userMessage"):
        logger.error("Error from guide endpoint for %s: %s", doc_type.value, payload)
        return DocumentFailed(doc_type, str(payload.get("error") or payload.get("userMessage")))

    content = payload.get("fullContent") or payload.get("response") or ""
    if not isinstance(content, str) or len(content) < MIN_CONTENT_LENGTH:
        logger.error("Invalid or empty content received for %s document", doc_type.value)
        return DocumentFailed(doc_type, "empty or too-short content")

    key_points = payload.get("keyPoints") or []
    return DocumentCompleted(
        document_type = doc_type,
        title         = document_title(doc_type),
        key_points    = [str(k) for k in key_points] if isinstance(key_points, list) else [],
        full_content  = content,
        pdf_url       = payload.get("pdfUrl"),
        document_id   = payload.get("documentId"),
    )


class DocumentGeneratorClient:
    """Dispatches the four guide requests and records each outcome."""

    def __init__(self, transport: GuideTransport | None = None, max_workers: int = 4) -> None:
        self._transport   = transport or default_transport()
        self._max_workers = max_workers

    def mark_generating(self, session_id: str, user_id: str) -> None:
        """Create the four placeholder rows in ``generating`` state."""
        if not session_id:
            return
        for doc_type in DOCUMENT_TYPES:
            database.mark_document_status(session_id, user_id, doc_type, GenerationStatus.GENERATING)

    def generate_one(
        self,
        doc_type: DocumentType,
        session_id: str,
        user_id: str,
        profile: dict[str, Any],
    ) -> DocumentOutcome:
        body = {
            "message":         "generate_document",
            "sessionId":       session_id,
            "userId":          user_id,
            "businessProfile": profile,
        }
        try:
            status, payload = self._transport.send(doc_type, body)
            outcome = _validate(doc_type, status, payload)
        except Exception as exc:
            logger.exception("Error generating %s document", doc_type.value)
            outcome = DocumentFailed(doc_type, str(exc) or exc.__class__.__name__)

        self._record(outcome, session_id, user_id)
        return outcome

    def _record(self, outcome: DocumentOutcome, session_id: str, user_id: str) -> None:
        if not session_id:
            return
        if isinstance(outcome, DocumentFailed):
            database.mark_document_status(
                session_id, user_id, outcome.document_type, GenerationStatus.FAILED,
            )
            return
        stored: Optional[GeneratedDocument] = next(
            (d for d in database.get_documents_by_session(session_id)
             if d.document_type is outcome.document_type),
            None,
        )
        database.upsert_document(GeneratedDocument(
            session_id    = session_id,
            user_id       = user_id,
            document_type = outcome.document_type,
            title         = outcome.title,
            key_points    = outcome.key_points,
            full_content  = outcome.full_content,
            pdf_url       = outcome.pdf_url,
            pdf_file_name = stored.pdf_file_name if stored else None,
            status        = GenerationStatus.COMPLETED,
            service_type  = CONFIRMED_IDEA_FLOW,
        ))

    def generate_all(
        self,
        session_id: str,
        user_id: str,
        profile: dict[str, Any],
    ) -> dict[DocumentType, DocumentOutcome]:
        """Run all four generations concurrently and wait for every one."""
        with concurrent.futures.ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = {
                doc_type: executor.submit(self.generate_one, doc_type, session_id, user_id, dict(profile))
                for doc_type in DOCUMENT_TYPES
            }
            outcomes = {doc_type: f.result() for doc_type, f in futures.items()}

        done = sum(1 for o in outcomes.values() if isinstance(o, DocumentCompleted))
        logger.info("Guide generation for %s: %d/%d completed", session_id, done, len(outcomes))
        return outcomes
