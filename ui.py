import html

import streamlit as st

from use_cases.domain_models import SuggestionStatus
from utils import session_manager

STATUS_COLORS = {
    SuggestionStatus.PENDIENTE: "#f5b041",
    SuggestionStatus.EN_PROCESO: "#5dade2",
    SuggestionStatus.FINALIZADO: "#58d68d",
}


def setup_style():
    st.markdown("""
    <style>
        @import url('https://fonts.googleapis.com/css2?family=Manrope:wght@400;600;700;800&display=swap');

        :root {
            --card-bg: rgba(120, 170, 140, 0.10);
            --card-border: rgba(200, 235, 215, 0.30);
            --text-soft: rgba(40, 60, 50, 0.70);
            --accent: #2e8b57;
            --ease-soft: cubic-bezier(0.25, 0.9, 0.3, 1);
        }

        html, body, .stApp {
            font-family: 'Manrope', sans-serif;
        }

        .bs-card {
            background: var(--card-bg);
            border: 1px solid var(--card-border);
            border-radius: 14px;
            padding: 14px 18px;
            margin-bottom: 10px;
            transition: transform 220ms var(--ease-soft);
        }

        .bs-card:hover {
            transform: translateY(-2px);
        }

        .bs-badge {
            display: inline-block;
            padding: 2px 10px;
            border-radius: 999px;
            font-size: 0.8rem;
            font-weight: 700;
            color: #10241a;
        }

        .bs-meta {
            color: var(--text-soft);
            font-size: 0.85rem;
        }

        .bs-loading {
            display: flex;
            align-items: center;
            justify-content: center;
            min-height: 40vh;
            flex-direction: column;
            gap: 12px;
        }

        .bs-loading-orb {
            width: 42px;
            height: 42px;
            border-radius: 50%;
            border: 4px solid var(--card-border);
            border-top-color: var(--accent);
            animation: bs-spin 0.9s linear infinite;
        }

        @keyframes bs-spin {
            to { transform: rotate(360deg); }
        }

        .skeleton-line {
            background: linear-gradient(90deg, rgba(0,0,0,0.06) 25%, rgba(0,0,0,0.12) 37%, rgba(0,0,0,0.06) 63%);
            background-size: 400% 100%;
            animation: bs-shimmer 1.4s ease infinite;
            border-radius: 6px;
            height: 14px;
            margin: 8px 0;
        }

        @keyframes bs-shimmer {
            0% { background-position: 100% 50%; }
            100% { background-position: 0 50%; }
        }
    </style>
    """, unsafe_allow_html=True)


def show_loading_overlay(message="Verificando sesión..."):
    st.markdown(
        f"""
        <div class="bs-loading">
          <div class="bs-loading-orb"></div>
          <div class="bs-meta">{html.escape(message)}</div>
        </div>
        """,
        unsafe_allow_html=True
    )


def render_flash():
    for level, message in session_manager.pop_flash():
        getattr(st, level, st.info)(message)


def status_badge(status: SuggestionStatus) -> str:
    color = STATUS_COLORS.get(status, "#d5d8dc")
    return f'<span class="bs-badge" style="background:{color}">{status.label}</span>'


def render_suggestion_card(suggestion):
    area = f" · {html.escape(suggestion.area_name)}" if suggestion.area_name else ""
    created = (suggestion.created_at or "")[:10]
    st.markdown(
        f"""
        <div class="bs-card">
          {status_badge(suggestion.status)}
          <div><b>{html.escape(suggestion.zona)}</b>{area}</div>
          <div class="bs-meta">{html.escape(suggestion.reporter)} · {created}</div>
        </div>
        """,
        unsafe_allow_html=True
    )


def render_skeleton_cards(num_cards=3):
    """Placeholders animados mientras se cargan las sugerencias."""
    for _ in range(num_cards):
        st.markdown('''
        <div class="bs-card">
            <div class="skeleton-line" style="width: 20%;"></div>
            <div class="skeleton-line" style="width: 60%;"></div>
            <div class="skeleton-line" style="width: 40%;"></div>
        </div>
        ''', unsafe_allow_html=True)
