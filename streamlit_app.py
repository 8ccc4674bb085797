# streamlit_app.py – StartUP Companion
# Guided chat that turns a confirmed business idea into four launch guides

import html
import logging
import sys
import uuid
from pathlib import Path

# make src/ importable without installing the package
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st

from startup_companion import database
from startup_companion.config import get_settings
from startup_companion.flow import ChatFlow, ConversationContext
from startup_companion.models import (
    DOCUMENT_META,
    QUESTIONS,
    FlowStage,
    GeneratedDocument,
    GenerationStatus,
    MentorCard,
    MessageRole,
    UserIdentity,
)
from startup_companion.pdf_generator import render_guide_pdf

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-7s %(name)s – %(message)s",
)

# Color constants
BG_DARK      = "#F5F5F5"
BG_CARD      = "#FFFFFF"
BLUE         = "#3B82F6"
PURPLE       = "#9333EA"
GREEN        = "#10B981"
ORANGE       = "#F97316"
TEXT_PRIMARY = "#1F2937"
TEXT_MUTED   = "#6B7280"
BORDER       = "#E5E7EB"

STATUS_BADGE = {
    GenerationStatus.GENERATING: ("⏳ Generating", ORANGE),
    GenerationStatus.COMPLETED:  ("✅ Ready",      GREEN),
    GenerationStatus.FAILED:     ("⚠️ Failed",     "#DC2626"),
}

# ─── Page config ─────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="StartUP Companion – Your Business Launch Partner",
    page_icon="🚀",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(f"""
<style>
  [data-testid="stAppViewContainer"] {{ background: {BG_DARK}; }}
  [data-testid="stSidebar"] {{
    background: linear-gradient(180deg, {BLUE} 0%, #1D4ED8 100%) !important;
  }}
  [data-testid="stSidebar"] .stMarkdown p,
  [data-testid="stSidebar"] .stMarkdown span,
  [data-testid="stSidebar"] .stCaption {{ color: rgba(255,255,255,0.85) !important; }}
  [data-testid="stSidebar"] hr {{ border-color: rgba(255,255,255,0.2) !important; }}
  [data-testid="stSidebar"] .stButton > button {{
    background: rgba(255,255,255,0.1) !important; border: none !important;
    color: #fff !important; border-radius: 8px !important;
  }}
  .doc-card {{
    background: {BG_CARD}; border: 1px solid {BORDER}; border-radius: 8px;
    padding: 14px 18px; margin-bottom: 10px;
  }}
  .mentor-card {{
    background: {BG_CARD}; border: 1px solid {BORDER}; border-left: 4px solid {BLUE};
    border-radius: 6px; padding: 10px 14px; margin: 6px 0;
  }}
</style>
""", unsafe_allow_html=True)


# ─── Shared resources ────────────────────────────────────────────────────────

@st.cache_resource
def _bootstrap() -> ChatFlow:
    """Create tables, seed the mentor directory and build the flow once per process."""
    database.init_db()
    database.seed_demo_mentors()
    return ChatFlow()


flow = _bootstrap()


def _user_id(name: str, email: str) -> str:
    """Stable id so a returning user sees their earlier sessions."""
    key = (email or name).strip().lower()
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"startup-companion:{key}"))


# ─── Login gate ──────────────────────────────────────────────────────────────

if "ctx" not in st.session_state:
    st.markdown(f"""
    <div style="max-width:520px;margin:60px auto 0;text-align:center;">
      <div style="font-size:3rem;">🚀</div>
      <h1 style="color:{TEXT_PRIMARY};margin:8px 0 4px;">StartUP Companion</h1>
      <p style="color:{TEXT_MUTED};font-size:1rem;">
        Answer six quick questions and get your registration, branding,
        compliance and HR guides as ready-to-download PDFs.
      </p>
    </div>
    """, unsafe_allow_html=True)

    _l, _c, _r = st.columns([1, 2, 1])
    with _c:
        with st.form("login_form", clear_on_submit=False):
            _name  = st.text_input("Your name", placeholder="Priya Sharma")
            _email = st.text_input("Email (optional)", placeholder="priya@example.com")
            _submitted = st.form_submit_button("Start chatting →", use_container_width=True)
        if _submitted:
            if not _name.strip():
                st.error("Please enter your name to continue.")
            else:
                _user = UserIdentity(id=_user_id(_name, _email), name=_name.strip(), email=_email.strip())
                st.session_state["ctx"] = flow.start(_user)
                st.rerun()
    st.stop()


ctx: ConversationContext = st.session_state["ctx"]


# ─── Sidebar ─────────────────────────────────────────────────────────────────
with st.sidebar:
    st.markdown("""
    <div style="text-align:center;padding:12px 0;">
      <div style="font-size:1.8rem;line-height:1;">🚀</div>
      <div style="color:#fff;font-size:1.1rem;font-weight:700;margin-top:6px;">StartUP Companion</div>
      <div style="color:rgba(255,255,255,0.6);font-size:0.7rem;">Your Business Launch Partner</div>
    </div>
    """, unsafe_allow_html=True)
    st.markdown("---")
    st.markdown(f"👤 **{html.escape(ctx.user.name)}**")
    if ctx.user.email:
        st.caption(ctx.user.email)

    _stage_label = ctx.stage.value.replace("_", " ").title()
    if ctx.stage is FlowStage.QUESTIONING:
        _stage_label += f" ({ctx.question_index + 1}/{len(QUESTIONS)})"
    st.caption(f"Stage: {_stage_label}")

    _past = database.get_user_sessions(ctx.user.id)
    st.caption(f"Sessions so far: {len(_past)}")

    st.markdown("---")
    st.page_link("pages/1_Admin_Dashboard.py", label="🔐 Admin Dashboard")
    if st.button("🚪  Sign Out", key="sidebar_signout", use_container_width=True):
        flow.abandon(ctx)
        for k in list(st.session_state.keys()):
            del st.session_state[k]
        st.rerun()

    st.markdown("---")
    for _svc, _status in get_settings().status_summary().items():
        st.caption(f"{_svc}: {_status}")


# ─── Rendering helpers ───────────────────────────────────────────────────────

def _mentor_card_html(card: MentorCard) -> str:
    phone = f"<br/>📱 {html.escape(card.phone)}" if card.phone else ""
    return (
        f'<div class="mentor-card"><b>{html.escape(card.name)}</b> · {html.escape(card.service)}'
        f'<br/><span style="color:{TEXT_MUTED};font-size:0.85rem;">{html.escape(card.expertise)}</span>'
        f'<br/>✉️ {html.escape(card.email)}{phone}</div>'
    )


def _pdf_bytes(doc: GeneratedDocument) -> bytes:
    """Stored PDF when it is on local disk, otherwise a fresh render."""
    if doc.pdf_url and not doc.pdf_url.startswith("http"):
        path = Path(doc.pdf_url)
        if path.exists():
            return path.read_bytes()
    business = ctx.profile.get("business_name") or "Business"
    return render_guide_pdf(doc.full_content, doc.document_type, business)


def _render_document(doc: GeneratedDocument) -> None:
    colour = DOCUMENT_META[doc.document_type]["colour"]
    label, badge_colour = STATUS_BADGE[doc.status]
    st.markdown(f"""
    <div class="doc-card" style="border-top:4px solid {colour};">
      <div style="display:flex;justify-content:space-between;align-items:center;">
        <span style="color:{colour};font-weight:700;font-size:1.05rem;">{html.escape(doc.title)}</span>
        <span style="color:{badge_colour};font-size:0.8rem;font-weight:600;">{label}</span>
      </div>
    </div>
    """, unsafe_allow_html=True)
    if doc.status is not GenerationStatus.COMPLETED:
        if doc.status is GenerationStatus.FAILED:
            st.caption("This guide could not be generated. Start a new session to try again.")
        return

    for point in doc.key_points:
        st.markdown(f"- {point}")
    with st.expander("Read full guide"):
        st.markdown(doc.full_content)
    if doc.pdf_url and doc.pdf_url.startswith("http"):
        st.link_button("📄 Open PDF", doc.pdf_url, use_container_width=True)
    else:
        st.download_button(
            "⬇️ Download PDF",
            data=_pdf_bytes(doc),
            file_name=f"{doc.document_type.value}-guide.pdf",
            mime="application/pdf",
            key=f"dl_{doc.document_type.value}",
            use_container_width=True,
        )


# ─── Main area ───────────────────────────────────────────────────────────────
tab_chat, tab_docs = st.tabs(["💬 Chat", "📄 Documents"])

with tab_chat:
    for msg in ctx.messages:
        with st.chat_message("user" if msg.role is MessageRole.USER else "assistant",
                             avatar=None if msg.role is MessageRole.USER else "🚀"):
            st.markdown(msg.content)
            if msg.mentor_cards:
                st.markdown("".join(_mentor_card_html(c) for c in msg.mentor_cards),
                            unsafe_allow_html=True)

with tab_docs:
    if not ctx.documents:
        st.info("Your guides will appear here once you have answered all six questions.")
    else:
        _cols = st.columns(2)
        for _i, _doc in enumerate(ctx.documents):
            with _cols[_i % 2]:
                _render_document(_doc)

# Generation finishes inside handle_input; the spinner stands in for the in-flight view.
prompt = st.chat_input("Type your message…")
if prompt:
    _last_question = (
        ctx.stage is FlowStage.QUESTIONING and ctx.question_index == len(QUESTIONS) - 1
    )
    if _last_question:
        with st.spinner("Generating your business documents… this may take a minute."):
            flow.handle_input(ctx, prompt)
    else:
        flow.handle_input(ctx, prompt)
    st.rerun()
