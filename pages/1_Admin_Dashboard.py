"""
pages/1_Admin_Dashboard.py – Admin-only session inspector.

Lists every guided session with its rating, feedback, generated documents
and transcript.  Protected by a session-scoped login gate.

Credentials  →  ADMIN_USERNAME / ADMIN_PASSWORD (defaults: admin / companion2026)
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from startup_companion import database
from startup_companion.config import get_settings
from startup_companion.models import (
    DOCUMENT_META,
    DOCUMENT_TYPES,
    GenerationStatus,
    SessionStatus,
    get_service_display_name,
)

# ─── Page config ─────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Admin Dashboard – StartUP Companion",
    page_icon="🔐",
    layout="wide",
)

# ─── Theme constants ──────────────────────────────────────────────────────────
CARD_BG = "#FFFFFF"
BLUE    = "#3B82F6"
PURPLE  = "#9333EA"
GREEN   = "#10B981"
ORANGE  = "#F97316"
RED     = "#DC2626"
GREY    = "#6B7280"

STATUS_COLORS = {
    GenerationStatus.GENERATING.value: ORANGE,
    GenerationStatus.COMPLETED.value:  GREEN,
    GenerationStatus.FAILED.value:     RED,
}


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _card(label: str, value: str, color: str = BLUE) -> str:
    return f"""
    <div style="background:{CARD_BG};border-left:4px solid {color};border-radius:4px;
                padding:10px 16px;width:100%;margin-bottom:8px;box-sizing:border-box;
                border:1px solid #E5E7EB;box-shadow:0 1px 2px rgba(0,0,0,0.04);">
      <div style="color:{GREY};font-size:0.7rem;font-weight:600;text-transform:uppercase;
                  letter-spacing:.06em;margin-bottom:3px;">{label}</div>
      <div style="color:#1F2937;font-size:1rem;font-weight:700;">{value}</div>
    </div>"""


def _section_header(title: str, icon: str = "") -> None:
    st.markdown(
        f"""<h3 style="color:#1F2937;border-bottom:1px solid #E5E7EB;
                        padding-bottom:6px;margin-top:28px;">{icon} {title}</h3>""",
        unsafe_allow_html=True,
    )


# ─── Login gate ───────────────────────────────────────────────────────────────

_app_cfg = get_settings().app

if "admin_logged_in" not in st.session_state:
    st.session_state["admin_logged_in"] = False


def _show_login() -> None:
    st.markdown("""
    <div style="max-width:400px;margin:80px auto 0;text-align:center;">
      <span style="font-size:3rem;">🔐</span>
      <h2 style="color:#1F2937;margin-top:8px;">Admin Access</h2>
      <p style="color:#6B7280;font-size:0.9rem;">
        This dashboard is restricted to administrators.
      </p>
    </div>
    """, unsafe_allow_html=True)

    col_l, col_c, col_r = st.columns([1, 2, 1])
    with col_c:
        with st.form("admin_login_form", clear_on_submit=False):
            username = st.text_input("Username", placeholder="admin")
            password = st.text_input("Password", type="password", placeholder="••••••••••")
            submitted = st.form_submit_button("🔓  Sign in", use_container_width=True)

        if submitted:
            if username == _app_cfg.admin_username and password == _app_cfg.admin_password:
                st.session_state["admin_logged_in"] = True
                st.rerun()
            else:
                st.error("Invalid credentials. Please try again.")


if not st.session_state["admin_logged_in"]:
    _show_login()
    st.stop()


# ─── Authenticated: sidebar logout ────────────────────────────────────────────
with st.sidebar:
    st.markdown("### 🔐 Admin Panel")
    st.markdown(f"Signed in as **{_app_cfg.admin_username}**")
    if st.button("Sign Out", use_container_width=True):
        st.session_state["admin_logged_in"] = False
        st.rerun()
    st.markdown("---")
    st.page_link("streamlit_app.py", label="🏠 ← Back to Chat")


# ─── Page header ──────────────────────────────────────────────────────────────
st.markdown("""
<h1 style="color:#1F2937;margin:0;font-size:1.9rem;">🚀 Session Dashboard</h1>
<p style="color:#6B7280;margin:0;font-size:0.9rem;">
  Every guided session, the guides it produced, and how founders rated the experience.
</p>
""", unsafe_allow_html=True)
st.markdown("---")

database.init_db()
_sessions = database.get_all_sessions()
_ratings  = database.get_all_ratings()


# ═════════════════════════════════════════════════════════════════════════════
# SECTION 1 – Overview KPIs
# ═════════════════════════════════════════════════════════════════════════════
_section_header("Overview", "📊")

_completed = [s for s in _sessions if s.status is SessionStatus.COMPLETED]
_rated     = [s.rating for s in _sessions if s.rating]
_avg       = f"{sum(_rated) / len(_rated):.1f} ⭐" if _rated else "—"

_k1, _k2, _k3, _k4 = st.columns(4)
with _k1:
    st.markdown(_card("Total Sessions", str(len(_sessions)), BLUE), unsafe_allow_html=True)
with _k2:
    st.markdown(_card("Completed", str(len(_completed)), GREEN), unsafe_allow_html=True)
with _k3:
    st.markdown(_card("Average Rating", _avg, PURPLE), unsafe_allow_html=True)
with _k4:
    _mentored = sum(1 for s in _sessions if s.mentor_assigned)
    st.markdown(_card("Mentor Referrals", str(_mentored), ORANGE), unsafe_allow_html=True)


# ═════════════════════════════════════════════════════════════════════════════
# SECTION 2 – Sessions table
# ═════════════════════════════════════════════════════════════════════════════
_section_header("All Sessions", "👥")

if not _sessions:
    st.info("No sessions yet. Start a conversation in the main app.")
    st.stop()

_session_rows = [{
    "Session":   s.id[:8],
    "User":      s.user_id[:8],
    "Service":   get_service_display_name(s.service_type),
    "Status":    s.status.value.title(),
    "Rating":    s.rating or "—",
    "Feedback":  s.rating_feedback or "—",
    "Mentor":    "✅" if s.mentor_assigned else "—",
    "Started":   s.started_at[:16],
    "Completed": (s.completed_at or "—")[:16],
} for s in _sessions]

st.dataframe(pd.DataFrame(_session_rows), use_container_width=True, hide_index=True)


# ═════════════════════════════════════════════════════════════════════════════
# SECTION 3 – Ratings & document outcomes
# ═════════════════════════════════════════════════════════════════════════════
_section_header("Ratings & Document Outcomes", "⭐")

_c1, _c2 = st.columns(2)

with _c1:
    _dist = [sum(1 for r in _ratings if r["rating"] == star) for star in range(1, 6)]
    rating_fig = go.Figure(go.Bar(
        x=[f"{n}⭐" for n in range(1, 6)],
        y=_dist,
        marker_color=[RED, ORANGE, GREY, BLUE, GREEN],
        hovertemplate="<b>%{x}</b><br>%{y} ratings<extra></extra>",
    ))
    rating_fig.update_layout(
        paper_bgcolor=CARD_BG, plot_bgcolor=CARD_BG,
        height=320, margin=dict(l=10, r=10, t=30, b=30),
        title=dict(text="Rating distribution", font=dict(size=13)),
        yaxis=dict(title="Ratings", gridcolor="#E5E7EB"),
        showlegend=False,
    )
    st.plotly_chart(rating_fig, use_container_width=True)

_doc_rows = []
for s in _sessions:
    for d in database.get_documents_by_session(s.id):
        _doc_rows.append({
            "Session":    s.id[:8],
            "Type":       d.document_type.value,
            "Title":      d.title,
            "Status":     d.status.value,
            "Key points": len(d.key_points),
            "PDF":        d.pdf_file_name or "—",
        })
_docs_df = pd.DataFrame(_doc_rows)

with _c2:
    doc_fig = go.Figure()
    for _status, _colour in STATUS_COLORS.items():
        _counts = [
            int(((_docs_df["Type"] == t.value) & (_docs_df["Status"] == _status)).sum())
            if not _docs_df.empty else 0
            for t in DOCUMENT_TYPES
        ]
        doc_fig.add_trace(go.Bar(
            name=_status.title(),
            x=[DOCUMENT_META[t]["title"] for t in DOCUMENT_TYPES],
            y=_counts,
            marker_color=_colour,
        ))
    doc_fig.update_layout(
        barmode="stack",
        paper_bgcolor=CARD_BG, plot_bgcolor=CARD_BG,
        height=320, margin=dict(l=10, r=10, t=30, b=30),
        title=dict(text="Guides by status", font=dict(size=13)),
        yaxis=dict(gridcolor="#E5E7EB"),
    )
    st.plotly_chart(doc_fig, use_container_width=True)

if not _docs_df.empty:
    st.dataframe(_docs_df, use_container_width=True, hide_index=True)


# ═════════════════════════════════════════════════════════════════════════════
# SECTION 4 – Session drill-down
# ═════════════════════════════════════════════════════════════════════════════
_section_header("Session Detail", "🔎")

_by_label = {f"{s.id[:8]} · {s.status.value} · {s.started_at[:16]}": s for s in _sessions}
_picked = _by_label[st.selectbox("Session", list(_by_label))]

_profile = database.get_business_profile(_picked.id) or {}
_d1, _d2 = st.columns([1, 2])
with _d1:
    st.markdown("**Business profile**")
    if _profile:
        st.json(_profile)
    else:
        st.caption("No answers recorded.")
with _d2:
    st.markdown("**Transcript**")
    for _m in database.get_session_messages(_picked.id):
        _who = "🧑" if _m["message_type"] == "user" else "🚀"
        st.markdown(f"{_who} {_m['content']}")
        for _card_data in _m["mentor_cards"]:
            st.caption(f"↳ {_card_data['name']} ({_card_data['service']}) – {_card_data['email']}")
