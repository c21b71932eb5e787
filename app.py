import hashlib
import html
import logging

import streamlit as st

from analyzer.agents import AnalysisError, RateLimitError, run_risk_review
from analyzer.config import MAX_INPUT_CHARS, MAX_UPLOAD_MB, MIN_INPUT_CHARS, configure_logging, ensure_dirs
from analyzer.guardrails import get_warning_message, is_input_safe
from analyzer.highlight import annotate_document
from analyzer.ingest import extract_upload_text
from analyzer.models import MODELS, get_default_model, get_model_ids
from analyzer.schemas import AnalyzeRequest
from analyzer.storage import get_preference, init_db, load_last_analysis, save_analysis, set_preference

configure_logging()
logger = logging.getLogger("analyzer.app")

st.set_page_config(page_title="Coco - Contract Risk Analyzer", layout="wide")

# Ensure data dirs exist and DB is ready
ensure_dirs()
init_db()

st.title("Coco — Contract Risk Analyzer")
st.caption("Decision-support tool. Not legal advice.")

SAMPLES = {
    "tos": "Terms of Service\n\nBy using our services you agree to resolve disputes exclusively by binding arbitration and waive the right to participate in class actions. We limit liability to fees paid in the last 12 months.",
    "nda": "Non-Disclosure Agreement\n\nRecipient agrees to maintain confidentiality of Discloser's proprietary information. No reverse engineering. Injunctive relief available in case of breach.",
    "saas_agreement": "SaaS Agreement\n\nCustomer agrees to pay subscription fees. Uptime SLA is 99.9%. Data is retained for 30 days after termination and then deleted.",
}

HIGHLIGHT_STYLES = {
    "HIGH RISK": ("#fee2e2", "#dc2626"),
    "CAUTION": ("#fef9c3", "#ca8a04"),
    "REVIEW": ("#dbeafe", "#2563eb"),
}
RISK_BADGE = {"high": "🔴 HIGH", "medium": "🟡 MEDIUM", "low": "🟢 LOW"}

# Sidebar controls
st.sidebar.header("Settings")
model_ids = get_model_ids()
preferred = get_preference("preferred_model", get_default_model())
model_id = st.sidebar.selectbox(
    "Model",
    model_ids,
    index=model_ids.index(preferred) if preferred in model_ids else 0,
    format_func=lambda m: next((x["label"] for x in MODELS if x["id"] == m), m),
)
if model_id != preferred:
    set_preference("preferred_model", model_id)
contract_type = st.sidebar.selectbox("Contract type", ["tos", "nda", "employment_offer", "saas_agreement", "lease", "other"])
jurisdiction = st.sidebar.selectbox("Jurisdiction", ["us_general", "ca", "ny", "other"])
persona = st.sidebar.selectbox("Perspective", ["company", "founder", "user", "employee"])

if st.sidebar.button("Load previous analysis"):
    last = load_last_analysis()
    if last:
        st.session_state["contract_id"], st.session_state["contract_text"], st.session_state["analysis"] = last
        st.session_state["metrics"] = None
    else:
        st.sidebar.info("No saved analysis yet.")

# --- INPUT ---
st.subheader("Contract")
col_sample, col_upload = st.columns([1, 2])
with col_sample:
    sample = st.selectbox("Load a sample", [""] + list(SAMPLES.keys()))
    if sample and st.button("Use sample"):
        st.session_state["contract_text"] = SAMPLES[sample]
with col_upload:
    uploaded = st.file_uploader("Upload contract (PDF or TXT)", type=["pdf", "txt"])
    if uploaded is not None and st.session_state.get("uploaded_name") != uploaded.name:
        if uploaded.size > MAX_UPLOAD_MB * 1024 * 1024:
            st.error(f"File too large. Maximum size is {MAX_UPLOAD_MB} MB.")
        else:
            try:
                st.session_state["contract_text"] = extract_upload_text(uploaded.name, uploaded.getvalue())
                st.session_state["uploaded_name"] = uploaded.name
            except Exception as e:
                logger.warning("Text extraction failed for %s: %s", uploaded.name, e)
                st.error(f"Could not extract text: {e}")

contract_text = st.text_area(
    "Paste contract text",
    value=st.session_state.get("contract_text", ""),
    height=260,
)
st.caption(f"{len(contract_text)} / {MAX_INPUT_CHARS} characters")

if st.button("Analyze Risks", type="primary"):
    safe, hits = is_input_safe(contract_text)
    if not safe:
        st.warning(get_warning_message(hits))
        st.stop()
    if len(contract_text) > MAX_INPUT_CHARS:
        st.error("Input too long. Please trim for faster results.")
        st.stop()
    if len(contract_text.strip()) < MIN_INPUT_CHARS:
        st.error(f"Please provide at least {MIN_INPUT_CHARS} characters of contract text.")
        st.stop()

    req = AnalyzeRequest(
        contract_text=contract_text,
        contract_type=contract_type,
        jurisdiction=jurisdiction,
        persona=persona,
        model_id=model_id,
    )
    try:
        with st.spinner(f"Running risk review ({model_id})..."):
            response = run_risk_review(req)
    except RateLimitError as e:
        logger.warning("Rate limited on %s: %s", model_id, e)
        st.error("Rate limit reached. Please wait 60 seconds and try again.")
        with st.expander("Error details"):
            st.code(str(e), language="text")
        st.stop()
    except AnalysisError as e:
        logger.error("Analysis failed on %s after %d retries: %s", model_id, e.retry_count, e)
        st.error(f"Analysis failed after {e.retry_count} retries.")
        with st.expander("Error details", expanded=True):
            st.code(str(e), language="text")
        st.stop()

    contract_id = hashlib.sha1(contract_text.encode("utf-8")).hexdigest()[:12]
    save_analysis(contract_id, contract_text, response)
    st.session_state["contract_id"] = contract_id
    st.session_state["contract_text"] = contract_text
    st.session_state["analysis"] = response.analysis
    st.session_state["metrics"] = response

analysis = st.session_state.get("analysis")
if analysis:
    doc_text = st.session_state.get("contract_text", "")
    st.divider()

    overall = analysis.overall
    col1, col2, col3 = st.columns(3)
    col1.metric("Risk Score", f"{overall.risk_score}/100")
    col2.metric("Risk Level", overall.risk_level.upper())
    col3.metric("Confidence", f"{overall.confidence:.0%}")
    if overall.confidence < 0.6:
        st.warning("Low confidence. Review by a qualified lawyer is recommended.")

    col_doc, col_report = st.columns(2)

    # --- ORIGINAL DOCUMENT WITH HIGHLIGHTS ---
    with col_doc:
        st.subheader("Original Document")
        blocks = []
        for paragraph, note in annotate_document(doc_text, analysis.clauses):
            text = html.escape(paragraph) or "&nbsp;"
            if note is None:
                blocks.append(f"<p style='margin:0 0 12px 0'>{text}</p>")
                continue
            bg, border = HIGHLIGHT_STYLES[note.risk_label]
            blocks.append(
                f"<div style='background:{bg};border-left:6px solid {border};padding:10px 14px;margin-bottom:12px'>"
                f"<p style='margin:0;font-weight:600'>{text}</p>"
                f"<div style='font-size:10px;font-weight:700;color:{border};margin-top:6px;text-transform:uppercase'>"
                f"{note.icon} {note.risk_label}: {html.escape(note.source_clause_title)}</div></div>"
            )
        st.markdown("\n".join(blocks), unsafe_allow_html=True)

    # --- RISK REPORT ---
    with col_report:
        st.subheader("Risk Report")
        sev_rank = {"high": 3, "medium": 2, "low": 1}
        clauses = sorted(analysis.clauses, key=lambda c: sev_rank.get(c.risk, 0), reverse=True)
        for i, c in enumerate(clauses, start=1):
            with st.expander(f"{i}. [{RISK_BADGE.get(c.risk, c.risk)}] {c.display_title}", expanded=(c.risk == "high")):
                if c.plain_english:
                    st.markdown(f"**What it means:** {c.plain_english}")
                if c.why_risky:
                    st.markdown(f"**Why risky:** {c.why_risky}")
                st.caption(f"Category: {c.category} · Benefits: {c.who_benefits}")
                for ev in c.evidence_quotes:
                    st.markdown(f"> *\"{ev.quote}\"*  \n> — {ev.location}")
                if c.pushback:
                    st.markdown(f"**Push back:** {c.pushback}")
                if c.suggested_revision:
                    st.markdown(f"**Suggested revision:** `{c.suggested_revision}`")
                for q in c.missing_info_questions:
                    st.markdown(f"- {q}")

        if analysis.missing_or_weak_clauses:
            st.subheader("Missing or Weak Protections")
            for m in analysis.missing_or_weak_clauses:
                with st.expander(m.category):
                    st.markdown(m.why_it_matters)
                    st.markdown(f"**Recommended language:** {m.recommended_language}")

        if analysis.recommendations:
            st.subheader("Recommendations")
            for r in analysis.recommendations:
                st.markdown(f"- {r}")

    metrics = st.session_state.get("metrics")
    if metrics:
        st.divider()
        m1, m2, m3, m4, m5 = st.columns(5)
        m1.metric("Model", metrics.model_used)
        m2.metric("Latency", f"{metrics.processing_time_ms / 1000:.1f}s")
        m3.metric("Tokens", f"{metrics.tokens_used.input} in / {metrics.tokens_used.output} out")
        m4.metric("Est. cost", f"${metrics.estimated_cost:.4f}")
        m5.metric("Retries", metrics.retry_count)
