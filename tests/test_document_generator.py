"""
Tests for the four-way generation fan-out (document_generator.py).
Transports are faked so each document type can succeed or fail on its own.
"""
import json

import httpx
import pytest
from factories import FakeTransport, ok_payload

from startup_companion import database
from startup_companion.config import FunctionsConfig
from startup_companion.document_generator import (
    DocumentGeneratorClient,
    HttpGuideTransport,
    LocalGuideTransport,
    _validate,
    default_transport,
)
from startup_companion.models import (
    DOCUMENT_TYPES,
    DocumentCompleted,
    DocumentFailed,
    DocumentType,
    GenerationStatus,
)


def _all_ok():
    return {t: ok_payload(t) for t in DOCUMENT_TYPES}


# ─── Response validation ──────────────────────────────────────────────────────

class TestValidate:
    def test_ok_payload_completes(self):
        status, payload = ok_payload(DocumentType.HR)
        outcome = _validate(DocumentType.HR, status, payload)
        assert isinstance(outcome, DocumentCompleted)
        assert outcome.title == "HR Setup Guide"
        assert outcome.key_points == ["Point one", "Point two"]

    def test_non_2xx_fails(self):
        assert isinstance(_validate(DocumentType.HR, 502, {}), DocumentFailed)

    def test_error_field_fails(self):
        outcome = _validate(DocumentType.HR, 200, {"error": "x", "fullContent": "y" * 500})
        assert isinstance(outcome, DocumentFailed)

    def test_user_message_field_fails(self):
        outcome = _validate(DocumentType.HR, 200, {"userMessage": "try again", "fullContent": "y" * 500})
        assert isinstance(outcome, DocumentFailed)

    def test_content_under_100_chars_fails(self):
        outcome = _validate(DocumentType.HR, 200, {"fullContent": "y" * 99})
        assert isinstance(outcome, DocumentFailed)

    def test_content_of_exactly_100_chars_completes(self):
        outcome = _validate(DocumentType.HR, 200, {"fullContent": "y" * 100})
        assert isinstance(outcome, DocumentCompleted)

    def test_response_field_used_when_full_content_missing(self):
        outcome = _validate(DocumentType.HR, 200, {"response": "z" * 150})
        assert isinstance(outcome, DocumentCompleted)
        assert outcome.full_content == "z" * 150

    def test_non_dict_payload_fails(self):
        assert isinstance(_validate(DocumentType.HR, 200, ["not", "a", "dict"]), DocumentFailed)


# ─── generate_all ─────────────────────────────────────────────────────────────

class TestGenerateAll:
    def test_all_succeed(self, session_id, user, profile):
        client = DocumentGeneratorClient(FakeTransport(_all_ok()))
        outcomes = client.generate_all(session_id, user.id, profile)
        assert set(outcomes) == set(DOCUMENT_TYPES)
        assert all(isinstance(o, DocumentCompleted) for o in outcomes.values())

    def test_one_request_per_type_with_profile(self, session_id, user, profile):
        transport = FakeTransport(_all_ok())
        DocumentGeneratorClient(transport).generate_all(session_id, user.id, profile)
        assert sorted(t.value for t, _ in transport.calls) == sorted(t.value for t in DOCUMENT_TYPES)
        for _, body in transport.calls:
            assert body["sessionId"] == session_id
            assert body["businessProfile"] == profile

    def test_one_malformed_result_fails_only_that_type(self, session_id, user, profile):
        responses = _all_ok()
        responses[DocumentType.BRANDING] = (200, {"fullContent": "too short"})
        client = DocumentGeneratorClient(FakeTransport(responses))
        client.mark_generating(session_id, user.id)
        outcomes = client.generate_all(session_id, user.id, profile)

        assert isinstance(outcomes[DocumentType.BRANDING], DocumentFailed)
        for t in (DocumentType.REGISTRATION, DocumentType.COMPLIANCE, DocumentType.HR):
            assert isinstance(outcomes[t], DocumentCompleted)

        stored = {d.document_type: d.status for d in database.get_documents_by_session(session_id)}
        assert stored[DocumentType.BRANDING] is GenerationStatus.FAILED
        assert stored[DocumentType.HR] is GenerationStatus.COMPLETED

    def test_transport_exception_becomes_failure(self, session_id, user, profile):
        responses = _all_ok()
        responses[DocumentType.COMPLIANCE] = RuntimeError("network down")
        outcomes = DocumentGeneratorClient(FakeTransport(responses)).generate_all(session_id, user.id, profile)
        assert isinstance(outcomes[DocumentType.COMPLIANCE], DocumentFailed)
        assert "network down" in outcomes[DocumentType.COMPLIANCE].reason
        assert sum(isinstance(o, DocumentCompleted) for o in outcomes.values()) == 3

    def test_all_fail_still_returns_four_outcomes(self, session_id, user, profile):
        client = DocumentGeneratorClient(FakeTransport({}, default=(500, {"error": "x"})))
        outcomes = client.generate_all(session_id, user.id, profile)
        assert len(outcomes) == 4
        assert all(isinstance(o, DocumentFailed) for o in outcomes.values())

    def test_no_document_left_generating(self, session_id, user, profile):
        responses = _all_ok()
        responses[DocumentType.HR] = (503, {})
        client = DocumentGeneratorClient(FakeTransport(responses))
        client.mark_generating(session_id, user.id)
        client.generate_all(session_id, user.id, profile)
        docs = database.get_documents_by_session(session_id)
        assert len(docs) == 4
        assert all(d.status.is_terminal for d in docs)

    def test_completed_result_stored_with_key_points(self, session_id, user, profile):
        DocumentGeneratorClient(FakeTransport(_all_ok())).generate_all(session_id, user.id, profile)
        doc = next(d for d in database.get_documents_by_session(session_id)
                   if d.document_type is DocumentType.HR)
        assert doc.key_points == ["Point one", "Point two"]
        assert doc.pdf_url == "https://files.example.com/hr.pdf"

    def test_without_session_nothing_is_stored(self, user, profile):
        client = DocumentGeneratorClient(FakeTransport(_all_ok()))
        client.mark_generating("", user.id)
        outcomes = client.generate_all("", user.id, profile)
        assert all(isinstance(o, DocumentCompleted) for o in outcomes.values())
        assert database.get_documents_by_session("") == []


class TestLocalTransport:
    def test_mock_generation_end_to_end(self, session_id, user, profile):
        client = DocumentGeneratorClient(LocalGuideTransport())
        client.mark_generating(session_id, user.id)
        outcomes = client.generate_all(session_id, user.id, profile)
        assert all(isinstance(o, DocumentCompleted) for o in outcomes.values())
        docs = database.get_documents_by_session(session_id)
        assert {d.status for d in docs} == {GenerationStatus.COMPLETED}
        assert all(d.pdf_file_name for d in docs)


# ─── HTTP transport ───────────────────────────────────────────────────────────

class TestHttpTransport:
    CFG = FunctionsConfig(url="https://fn.example.com/functions/v1", api_key="anon-key")

    def _client(self, handler):
        return httpx.Client(transport=httpx.MockTransport(handler))

    def test_posts_to_function_url_with_bearer(self):
        seen = {}

        def handler(request):
            seen["url"]  = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"fullContent": "x" * 200})

        transport = HttpGuideTransport(self.CFG, client=self._client(handler))
        status, payload = transport.send(DocumentType.HR, {"sessionId": "s1"})
        assert status == 200
        assert seen["url"] == "https://fn.example.com/functions/v1/hr-guide-guru"
        assert seen["auth"] == "Bearer anon-key"
        assert seen["body"] == {"sessionId": "s1"}
        assert payload["fullContent"] == "x" * 200

    def test_non_json_body_becomes_empty_dict(self):
        transport = HttpGuideTransport(
            self.CFG, client=self._client(lambda r: httpx.Response(502, text="Bad Gateway")),
        )
        assert transport.send(DocumentType.BRANDING, {}) == (502, {})

    @pytest.mark.parametrize("status", [400, 500, 503])
    def test_non_2xx_fails_generation(self, session_id, user, profile, status):
        transport = HttpGuideTransport(
            self.CFG, client=self._client(lambda r: httpx.Response(status, json={"error": "boom"})),
        )
        outcomes = DocumentGeneratorClient(transport).generate_all(session_id, user.id, profile)
        assert all(isinstance(o, DocumentFailed) for o in outcomes.values())


class TestDefaultTransport:
    def test_local_when_functions_not_configured(self, monkeypatch):
        monkeypatch.delenv("GUIDE_FUNCTIONS_URL", raising=False)
        assert isinstance(default_transport(), LocalGuideTransport)

    def test_http_when_functions_url_set(self, monkeypatch):
        monkeypatch.setenv("GUIDE_FUNCTIONS_URL", "https://fn.example.com/functions/v1")
        assert isinstance(default_transport(), HttpGuideTransport)
