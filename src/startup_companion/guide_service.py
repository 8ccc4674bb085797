"""
guide_service.py – Guide generation endpoint (one per document type)
=====================================================================
Server side of the per-type generation call.  For each request it:

  1. resolves the business profile (request body, else the stored profile),
  2. asks the LLM (OpenRouter via the ``openai`` SDK) for the guide,
  3. extracts up to six key points with keyword rules,
  4. renders and stores the PDF,
  5. upserts the GeneratedDocument row as ``completed``,
  6. returns ``(200, {response, keyPoints, fullContent, pdfUrl, documentId})``.

Any failure returns ``(500, {error, userMessage, details})``; nothing is
raised to the caller.  With FORCE_MOCK_MODE=true the LLM call is replaced
by ``mock_guides.generate_mock_guide``.
"""

from __future__ import annotations

import json
import logging
import textwrap
from typing import Any, Callable, Optional

from openai import APIConnectionError, APIStatusError, OpenAI

from startup_companion import database
from startup_companion.config import Settings, get_settings
from startup_companion.mock_guides import generate_mock_guide
from startup_companion.models import (
    CONFIRMED_IDEA_FLOW,
    DocumentType,
    GeneratedDocument,
    GenerationStatus,
    document_title,
)
from startup_companion.pdf_generator import store_guide_pdf

logger = logging.getLogger(__name__)

# Signature of the LLM call: (system_prompt, user_message) -> markdown text
LlmCall = Callable[[str, str], str]


class GuideGenerationError(Exception):
    """Raised inside the service; ``code`` selects the user-facing message."""

    def __init__(self, code: str, details: str = "") -> None:
        super().__init__(code)
        self.code    = code
        self.details = details or code


# ─── System prompts ──────────────────────────────────────────────────────────

_FORMAT_FOOTER = (
    "Format the response in clean markdown with proper headers, checklists, "
    "and actionable guidelines. Make it practical and ready-to-implement."
)

SYSTEM_PROMPTS: dict[DocumentType, str] = {
    DocumentType.REGISTRATION: textwrap.dedent("""
        You are an expert company-formation consultant for startups and SMEs in India.
        Generate a comprehensive company registration guide based on the business profile provided.

        The guide MUST include:
        1. **Recommended Business Structure** (Private Limited, LLP, Partnership, OPC) with reasoning
        2. **Step-by-step Registration Process** (DSC, DIN, name reservation, SPICe+, MOA/AOA)
        3. **Required Documents** for directors/partners and the registered office
        4. **Tax Registrations** (PAN, TAN, GST)
        5. **Bank Account and Post-incorporation Steps**
        6. **Timeline and Cost Estimates**
    """).strip() + "\n\n" + _FORMAT_FOOTER,
    DocumentType.BRANDING: textwrap.dedent("""
        You are an expert brand strategist for startups.
        Generate a comprehensive branding strategy guide based on the business profile provided,
        honouring the stated colour tone and style preferences.

        The guide MUST include:
        1. **Brand Positioning** and target audience
        2. **Brand Identity**: name usage, tagline options, brand story
        3. **Visual Identity**: colour palette (with hex codes), typography, logo direction
        4. **Brand Voice and Messaging**
        5. **Digital Presence**: website, social media, content plan
        6. **Trademark Protection** and a launch checklist
    """).strip() + "\n\n" + _FORMAT_FOOTER,
    DocumentType.COMPLIANCE: textwrap.dedent("""
        You are an expert corporate compliance and legal advisor for startups in India.
        Generate a comprehensive compliance and legal guide based on the business profile provided.

        The guide MUST include:
        1. **Statutory Compliance** (ROC filings, board meetings, statutory registers)
        2. **Tax Compliance** (GST returns, TDS, income tax, audit)
        3. **Licences and Permits** for the location and industry
        4. **Contracts and Agreements** (founders agreement, vendor and client contracts)
        5. **Data Protection and Intellectual Property**
        6. **Annual Compliance Calendar** with due dates and penalties
    """).strip() + "\n\n" + _FORMAT_FOOTER,
    DocumentType.HR: textwrap.dedent("""
        You are an expert HR consultant specializing in startup and SME human resources management in India.
        Generate a comprehensive HR setup guide based on the business profile provided.

        The guide MUST include:
        1. **Organizational Structure** (org chart, key roles, hiring roadmap)
        2. **Employment Documentation** (offer letter, appointment letter, NDA)
        3. **HR Policies** (leave, attendance, code of conduct, grievance redressal)
        4. **Compensation and Benefits**
        5. **Payroll Management** (PF, PT, TDS, payslips)
        6. **Onboarding Process** and **Performance Management**
        7. **Employee Engagement**
        8. **Legal Compliance** (minimum wages, gratuity, maternity benefit, POSH)
        9. **HR Technology Stack** and **Cost Planning**
    """).strip() + "\n\n" + _FORMAT_FOOTER,
}


# ─── Key-point extraction ────────────────────────────────────────────────────

# (keywords, key point): a point is added when any keyword occurs; rules run in order
_KEY_POINT_RULES: dict[DocumentType, list[tuple[tuple[str, ...], str]]] = {
    DocumentType.REGISTRATION: [
        (("private limited", "llp", "partnership", "business structure"), "Recommended business structure"),
        (("dsc", "digital signature", "din"), "Director identification and digital signatures"),
        (("spice", "incorporation", "moa", "aoa"), "Step-by-step incorporation filing"),
        (("pan", "tan", "gst"), "PAN, TAN and GST registrations"),
        (("bank account", "current account"), "Business bank account setup"),
        (("timeline", "cost", "fees"), "Timeline and cost estimates"),
    ],
    DocumentType.BRANDING: [
        (("positioning", "target audience", "value proposition"), "Brand positioning and audience"),
        (("colour", "color", "palette"), "Colour palette aligned to your preference"),
        (("typography", "font", "logo"), "Typography and logo direction"),
        (("voice", "messaging", "tagline"), "Brand voice and messaging"),
        (("social media", "website", "content"), "Digital presence plan"),
        (("trademark",), "Trademark protection steps"),
    ],
    DocumentType.COMPLIANCE: [
        (("roc", "annual return", "board meeting"), "Statutory ROC compliance"),
        (("gst return", "tds", "income tax"), "Tax filing obligations"),
        (("licence", "license", "permit"), "Licences and permits required"),
        (("contract", "agreement"), "Key contracts and agreements"),
        (("data protection", "privacy", "intellectual property"), "Data protection and IP safeguards"),
        (("calendar", "due date", "penalt"), "Annual compliance calendar"),
    ],
    DocumentType.HR: [
        (("offer letter", "appointment letter", "employment agreement", "nda", "documentation"),
         "Complete employment documentation templates"),
        (("leave policy", "attendance", "code of conduct", "hr polic", "work hours"),
         "Essential HR policies (leave, attendance, conduct)"),
        (("salary", "compensation", "pay structure", "wages", "benefits"),
         "Salary structure and compensation guidelines"),
        (("payroll", "provident fund", "tds", "payslip", "statutory"),
         "Payroll processing and statutory compliance"),
        (("onboarding", "orientation", "joining process"), "Structured onboarding process"),
        (("performance", "appraisal", "kpi", "okr", "goal setting"), "Performance management framework"),
        (("org chart", "organizational structure", "organisational structure", "hierarchy"),
         "Organizational structure recommendations"),
        (("hrms", "software", "tool", "technology"), "HR technology and tools recommendations"),
        (("minimum wages", "gratuity", "maternity", "posh", "labor law"), "Legal compliance requirements"),
        (("engagement", "team building", "recognition"), "Employee engagement strategies"),
    ],
}

_FALLBACK_POINTS: dict[DocumentType, list[str]] = {
    DocumentType.REGISTRATION: [
        "Business structure comparison",
        "Incorporation document checklist",
        "Tax registration steps",
        "Post-incorporation compliance",
        "Registration timeline",
        "Estimated registration costs",
    ],
    DocumentType.BRANDING: [
        "Brand positioning statement",
        "Visual identity guidelines",
        "Brand voice framework",
        "Digital launch plan",
        "Marketing channel priorities",
        "Trademark checklist",
    ],
    DocumentType.COMPLIANCE: [
        "Statutory filing requirements",
        "Tax compliance schedule",
        "Licence checklist",
        "Contract essentials",
        "Record-keeping obligations",
        "Penalty avoidance tips",
    ],
    DocumentType.HR: [
        "Employment contract templates",
        "Core HR policy framework",
        "Compensation and benefits structure",
        "Statutory compliance guide",
        "Employee lifecycle management",
        "HR systems and processes",
    ],
}

MIN_CONTENT_LENGTH = 100
MAX_KEY_POINTS     = 6


def extract_key_points(doc_type: DocumentType, content: str) -> list[str]:
    """Up to six headline points, topped up with fallbacks when rules miss."""
    doc_type  = DocumentType(doc_type)
    fallbacks = _FALLBACK_POINTS[doc_type]
    if not content or len(content) < MIN_CONTENT_LENGTH:
        return list(fallbacks)

    lowered = content.lower()
    points: list[str] = []
    for keywords, point in _KEY_POINT_RULES[doc_type]:
        if any(k in lowered for k in keywords):
            points.append(point)

    for fallback in fallbacks:
        if len(points) >= MAX_KEY_POINTS:
            break
        first_word = fallback.lower().split(" ")[0]
        if not any(first_word in p.lower() for p in points):
            points.append(fallback)

    return points[:MAX_KEY_POINTS]


# ─── Prompt context ──────────────────────────────────────────────────────────

def build_context(doc_type: DocumentType, profile: dict[str, Any]) -> str:
    partners = profile.get("partners_info") or profile.get("directors_partners") or []
    lines = [
        "Business Information:",
        f"- Company Name: {profile.get('business_name') or 'Company'}",
        f"- Business Description: {profile.get('company_description') or 'General'}",
        f"- Location: {profile.get('location') or 'India'}",
        f"- Partners/Directors: {json.dumps(partners, ensure_ascii=False)}",
    ]
    if doc_type is DocumentType.BRANDING:
        lines.append(f"- Colour Preference: {profile.get('color_preference') or 'Not specified'}")
        lines.append(f"- Style Preference: {profile.get('style_preference') or 'Not specified'}")
    lines.append("")
    lines.append(
        f"Generate a comprehensive {document_title(doc_type).lower()} for this business."
    )
    return "\n".join(lines)


# ─── LLM call ────────────────────────────────────────────────────────────────

def make_openrouter_call(settings: Settings) -> LlmCall:
    """Return a callable that sends one chat completion to OpenRouter."""
    cfg = settings.openrouter

    def _call(system_prompt: str, user_message: str) -> str:
        if not cfg.is_configured:
            logger.error("OPENROUTER_API_KEY not configured")
            raise GuideGenerationError("API_KEY_NOT_CONFIGURED")

        client = OpenAI(
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            default_headers={"HTTP-Referer": cfg.referer, "X-Title": cfg.app_title},
        )
        try:
            response = client.chat.completions.create(
                model=cfg.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user",   "content": user_message},
                ],
                temperature=cfg.temperature,
                max_tokens=cfg.max_tokens,
            )
        except APIStatusError as exc:
            logger.error("OpenRouter API error %s: %s", exc.status_code, exc.message)
            raise GuideGenerationError(f"API_ERROR: {exc.status_code}", str(exc)) from exc
        except APIConnectionError as exc:
            logger.error("OpenRouter connection failed: %s", exc)
            raise GuideGenerationError("API_ERROR: connection", str(exc)) from exc

        if not response.choices or not response.choices[0].message.content:
            logger.error("Invalid response structure from OpenRouter API: %s", response)
            raise GuideGenerationError("INVALID_API_RESPONSE")
        return response.choices[0].message.content

    return _call


def _error_payload(exc: Exception) -> dict[str, str]:
    code = getattr(exc, "code", "") or str(exc)
    if code == "API_KEY_NOT_CONFIGURED":
        error = "OpenRouter API key not configured"
        user  = "Configuration error: API key missing. Please contact support."
    elif code.startswith("API_ERROR"):
        error = code
        user  = "AI service temporarily unavailable. Please try again in a moment."
    else:
        error = "Internal server error"
        user  = "Failed to generate the guide. Please try again."
    return {"error": error, "userMessage": user, "details": getattr(exc, "details", str(exc))}


# ─── Service ─────────────────────────────────────────────────────────────────

class GuideService:
    """
    Generates, renders and stores one guide per call.

    ``llm`` may be injected (tests, alternative providers); by default the
    OpenRouter call is used in live mode and the rule-based generator in
    mock mode.
    """

    def __init__(self, settings: Settings | None = None, llm: Optional[LlmCall] = None) -> None:
        self._settings = settings or get_settings()
        self._llm      = llm
        self.using_mock = llm is None and self._settings.app.force_mock_mode
        if self._llm is None and not self.using_mock:
            self._llm = make_openrouter_call(self._settings)

    def _generate_content(self, doc_type: DocumentType, profile: dict[str, Any]) -> str:
        if self.using_mock:
            return generate_mock_guide(doc_type, profile)
        return self._llm(SYSTEM_PROMPTS[doc_type], build_context(doc_type, profile))

    def handle(self, doc_type: DocumentType, request: dict[str, Any]) -> tuple[int, dict[str, Any]]:
        """Process one generation request; returns (http_status, json_payload)."""
        doc_type   = DocumentType(doc_type)
        session_id = request.get("sessionId", "")
        user_id    = request.get("userId", "")
        try:
            profile = request.get("businessProfile")
            if not profile:
                profile = database.get_business_profile(session_id) or {}

            content    = self._generate_content(doc_type, profile)
            key_points = extract_key_points(doc_type, content)
            artifact   = store_guide_pdf(
                user_id, doc_type, content, profile.get("business_name") or "Your Business",
            )
            doc_id = None
            if session_id:
                doc_id = database.upsert_document(GeneratedDocument(
                    session_id    = session_id,
                    user_id       = user_id,
                    document_type = doc_type,
                    title         = document_title(doc_type),
                    key_points    = key_points,
                    full_content  = content,
                    pdf_url       = artifact.pdf_url if artifact else None,
                    pdf_file_name = artifact.file_name if artifact else None,
                    status        = GenerationStatus.COMPLETED,
                    service_type  = CONFIRMED_IDEA_FLOW,
                ))
                if doc_id is None:
                    logger.error("Error storing %s document in database", doc_type.value)
        except Exception as exc:
            logger.exception("Error in %s guide generation", doc_type.value)
            return 500, _error_payload(exc)

        return 200, {
            "response":    content,
            "keyPoints":   key_points,
            "fullContent": content,
            "pdfUrl":      artifact.pdf_url if artifact else None,
            "documentId":  doc_id,
        }
