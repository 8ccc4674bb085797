"""
mock_guides.py – Rule-based guide text (no OpenRouter key needed).

Produces markdown in the same shape the LLM returns so the chat flow, the
key-point extractor and the PDF renderer are fully exercisable before
credentials are wired in.  Activated by FORCE_MOCK_MODE=true.
"""

from __future__ import annotations

from typing import Any

from startup_companion.models import DocumentType, document_title

# ── Section outlines per guide ───────────────────────────────────────────────

_OUTLINES: dict[DocumentType, list[tuple[str, list[str]]]] = {
    DocumentType.REGISTRATION: [
        ("Choosing a Business Structure", [
            "Compare Private Limited Company, LLP and Partnership Firm",
            "Match the structure to the number of partners or directors",
        ]),
        ("Registration Process", [
            "Obtain Digital Signature Certificates (DSC) and DIN for directors",
            "Reserve the company name through the MCA portal (SPICe+)",
            "File the incorporation documents, MOA and AOA",
        ]),
        ("Tax Registrations", [
            "Apply for PAN and TAN",
            "Register for GST once turnover crosses the threshold",
        ]),
        ("Timeline and Costs", [
            "Typical incorporation timeline: 10 to 15 working days",
            "Government fees, stamp duty and professional fees",
        ]),
    ],
    DocumentType.BRANDING: [
        ("Brand Positioning", [
            "Define the target audience and the value proposition",
            "Write a one-line brand promise",
        ]),
        ("Visual Identity", [
            "Colour palette built around the preferred tone",
            "Typography and logo direction matching the chosen style",
        ]),
        ("Brand Voice", [
            "Tone of voice guidelines and messaging pillars",
        ]),
        ("Marketing Launch", [
            "Social media channels and content calendar",
            "Website, domain and trademark checklist",
        ]),
    ],
    DocumentType.COMPLIANCE: [
        ("Statutory Compliance", [
            "Annual ROC filings and board meeting requirements",
            "Maintain statutory registers and minutes",
        ]),
        ("Tax Compliance", [
            "Monthly GST returns and quarterly TDS filings",
            "Income tax returns and tax audit thresholds",
        ]),
        ("Licences and Permits", [
            "Shops and Establishment registration",
            "Industry-specific licences for the operating location",
        ]),
        ("Compliance Calendar", [
            "Key due dates and penalties for late filing",
        ]),
    ],
    DocumentType.HR: [
        ("Organizational Structure", [
            "Recommended org chart and reporting structure",
            "Hiring roadmap in three phases",
        ]),
        ("Employment Documentation", [
            "Offer letter, appointment letter and NDA templates",
        ]),
        ("HR Policies", [
            "Leave policy, attendance and code of conduct",
            "Performance review process",
        ]),
        ("Payroll and Statutory Compliance", [
            "Salary structure, PF, PT and TDS deductions",
            "Payroll software recommendations",
        ]),
        ("Onboarding", [
            "Day 1 onboarding agenda and 30-60-90 day goals",
        ]),
    ],
}


def _partners_summary(partners: Any) -> str:
    if isinstance(partners, list):
        parts = [p.get("info", "") if isinstance(p, dict) else str(p) for p in partners]
        joined = "; ".join(p for p in parts if p)
        return joined or "Not specified"
    if partners:
        return str(partners)
    return "Not specified"


def generate_mock_guide(doc_type: DocumentType, profile: dict[str, Any]) -> str:
    """Return a markdown guide for *doc_type* personalised with the profile."""
    doc_type = DocumentType(doc_type)
    name     = profile.get("business_name") or "Your Business"
    location = profile.get("location") or "India"

    lines = [
        f"# {document_title(doc_type)} for {name}",
        "",
        "**Business overview**",
        f"{profile.get('company_description') or 'A new venture'} operating in {location}.",
        f"Partners / directors: {_partners_summary(profile.get('partners_info'))}",
    ]
    if doc_type is DocumentType.BRANDING:
        lines.append(
            f"Preferred colour tone: {profile.get('color_preference') or 'Professional'}; "
            f"style: {profile.get('style_preference') or 'Modern/Contemporary'}."
        )
    lines.append("")

    for i, (heading, bullets) in enumerate(_OUTLINES[doc_type], start=1):
        lines.append(f"## {i}. {heading}")
        lines.extend(f"- {b}" for b in bullets)
        lines.append("")

    lines.append("### Next Steps")
    lines.append(
        "Review each section with your partners and keep this guide handy "
        "as a checklist while you set up the business."
    )
    return "\n".join(lines)

