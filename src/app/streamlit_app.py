"""
İşletme Bulucu -- Streamlit UI
==============================

Pick a province, district, neighborhood and business category; the app
asks the configured LLM to list matching businesses and streams them
into a table that can be downloaded as XLSX or copied to the clipboard.

Run with::

    streamlit run src/app/streamlit_app.py
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Ensure project root is on sys.path (needed for Streamlit Cloud deployment)
_PROJECT_ROOT = str(Path(__file__).resolve().parent.parent.parent)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

import streamlit as st

# ---------------------------------------------------------------------------
# Project imports
# ---------------------------------------------------------------------------

from core.providers.base import LLMConfig, LLMError
from core.providers.registry import get_models_for_provider, get_provider, get_providers
from core.storage import LocalStore
from src.app.version import version_label
from src.config.locations import ALL_NEIGHBORHOODS_LABEL, ALL_SUB_CATEGORIES_LABEL, get_catalog
from src.config.models import AppSettings, Business, SearchCriteria, SearchHistoryItem
from src.export.table import ExportError, display_dataframe, to_clipboard_text
from src.export.xlsx import DEFAULT_FILENAME, XLSX_MIME, BusinessExcelExporter
from src.search.finder import BusinessFinder, SearchResult, SearchValidationError
from src.search.prompts import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE
from src.state.history import SearchHistory
from src.state.settings import SettingsStore, theme_label

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

FORM_KEYS = ["province", "district", "neighborhood", "main_category", "sub_category"]

RATE_LIMIT_DOCS_URL = "https://ai.google.dev/gemini-api/docs/rate-limits"
RATE_LIMIT_USAGE_URL = "https://ai.dev/usage?tab=rate-limit"

DARK_CSS = """
<style>
.stApp, [data-testid="stSidebar"] { background-color: #18181b; color: #e4e4e7; }
.stApp h1, .stApp h2, .stApp h3, .stApp p, .stApp label { color: #e4e4e7; }
</style>
"""
LIGHT_CSS = """
<style>
.stApp, [data-testid="stSidebar"] { background-color: #f3f4f6; color: #111827; }
</style>
"""


# ---------------------------------------------------------------------------
# Session-state initialisation
# ---------------------------------------------------------------------------

def _init_session_state() -> None:
    """Ensure every required session-state key exists."""
    defaults = {
        # Form
        "province": "",
        "district": "",
        "neighborhood": "",
        "main_category": "",
        "sub_category": "",
        # Results
        "results": [],
        "last_result": None,
        "error_message": "",
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default


def _store() -> LocalStore:
    return LocalStore()


def _criteria_from_state() -> SearchCriteria:
    return SearchCriteria(**{k: st.session_state[k] for k in FORM_KEYS})


# ---------------------------------------------------------------------------
# Callbacks (run before widgets are re-rendered)
# ---------------------------------------------------------------------------

def _on_province_change() -> None:
    st.session_state["district"] = ""
    st.session_state["neighborhood"] = ""


def _on_district_change() -> None:
    st.session_state["neighborhood"] = ""


def _on_main_category_change() -> None:
    st.session_state["sub_category"] = ""


def _restore_history_item(item: SearchHistoryItem) -> None:
    for key in FORM_KEYS:
        st.session_state[key] = getattr(item.criteria, key)
    st.session_state["error_message"] = ""


def _clear_history() -> None:
    SearchHistory(_store()).clear()


def _cycle_theme() -> None:
    SettingsStore(_store()).next_theme()


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------

def _select(label: str, key: str, options, placeholder: str, *, disabled: bool = False,
            on_change=None) -> None:
    """Selectbox over ``Option`` values with ``""`` as the placeholder entry."""
    labels = {"": placeholder}
    labels.update({opt.value: opt.label for opt in options})
    if st.session_state.get(key, "") not in labels:
        st.session_state[key] = ""
    st.selectbox(
        label,
        options=list(labels.keys()),
        format_func=lambda v: labels[v],
        key=key,
        disabled=disabled,
        on_change=on_change,
    )


def _apply_theme(theme: str) -> None:
    if theme == "dark":
        st.markdown(DARK_CSS, unsafe_allow_html=True)
    elif theme == "light":
        st.markdown(LIGHT_CSS, unsafe_allow_html=True)


def _render_error(message: str) -> None:
    st.error(message)
    if "kota" in message.lower():
        st.caption(
            "Bu durum genellikle ücretsiz kullanım katmanındaki istek limitlerinden "
            f"kaynaklanır. [Oran limitleri]({RATE_LIMIT_DOCS_URL}) hakkında daha fazla "
            f"bilgi alabilir veya [kullanımınızı buradan]({RATE_LIMIT_USAGE_URL}) "
            "izleyebilirsiniz."
        )


def _render_table(placeholder, businesses: List[Business]) -> None:
    with placeholder.container():
        st.markdown(f"**Arama Sonuçları ({len(businesses)} işletme bulundu)**")
        st.dataframe(
            display_dataframe(businesses),
            use_container_width=True,
            hide_index=True,
            column_config={
                "Harita": st.column_config.LinkColumn(
                    "Harita", display_text="Google Haritalar'da Görüntüle",
                ),
            },
        )


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------

def _render_settings(settings_store: SettingsStore) -> AppSettings:
    settings = settings_store.load()
    with st.expander("Ayarlar", expanded=not settings_store.api_key(settings.provider)):
        providers = get_providers()
        provider_ids = [p["id"] for p in providers]
        provider = st.selectbox(
            "Sağlayıcı",
            options=provider_ids,
            index=provider_ids.index(settings.provider),
            format_func=lambda pid: next(p["label"] for p in providers if p["id"] == pid),
        )
        models = [m["model_id"] for m in get_models_for_provider(provider)]
        model_index = models.index(settings.model) if settings.model in models else 0
        model = st.selectbox("Model", options=models, index=model_index)
        api_key = st.text_input(
            "API Anahtarı",
            value=settings_store.api_key(provider) or "",
            type="password",
        )
        max_results = st.number_input(
            "Görev başına en fazla sonuç",
            min_value=1, max_value=500, value=settings.max_results_per_task,
        )
        grounding = st.checkbox(
            "Google Arama ile doğrula (yalnızca Gemini)",
            value=settings.use_search_grounding,
            disabled=provider != "google",
        )
        if st.button("Kaydet", key="btn_save_settings"):
            settings = AppSettings(
                provider=provider,
                model=model,
                max_results_per_task=int(max_results),
                use_search_grounding=grounding and provider == "google",
                history_limit=settings.history_limit,
                temperature=settings.temperature,
            )
            settings_store.save(settings)
            settings_store.set_api_key(provider, api_key)
            st.success("Ayarlar kaydedildi.")
    return settings


def _render_advanced() -> Dict[str, str]:
    """Editable prompts; only changed ones are returned as overrides."""
    with st.expander("Gelişmiş"):
        system = st.text_area("Sistem istemi", value=SYSTEM_PROMPT, height=200,
                              key="prompt_system")
        user_template = st.text_area(
            "Kullanıcı istemi şablonu", value=USER_PROMPT_TEMPLATE, height=300,
            key="prompt_user_template",
            help="Alanlar: {location}, {province}, {district}, {neighborhood}, "
                 "{main_category}, {sub_category}, {max_results}, {field_guide}",
        )
    overrides: Dict[str, str] = {}
    if system.strip() and system != SYSTEM_PROMPT:
        overrides["system"] = system
    if user_template.strip() and user_template != USER_PROMPT_TEMPLATE:
        overrides["user_template"] = user_template
    return overrides


def _render_history(history: SearchHistory) -> None:
    items = history.items()
    if not items:
        return
    st.divider()
    col_title, col_clear = st.columns([3, 2])
    with col_title:
        st.markdown("**Geçmiş Aramalar**")
    with col_clear:
        st.button("Geçmişi Temizle", key="btn_clear_history", on_click=_clear_history)
    for item in items:
        st.button(
            f"{item.sub_category_label}\n\n{item.location_text()}\n\n"
            f"{item.formatted_timestamp()} · {item.result_count} sonuç",
            key=f"history_{item.id}",
            on_click=_restore_history_item,
            args=(item,),
            use_container_width=True,
        )


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def _run_search(criteria: SearchCriteria, settings: AppSettings,
                settings_store: SettingsStore, history: SearchHistory,
                prompt_overrides: Dict[str, str]) -> None:
    st.session_state["error_message"] = ""
    st.session_state["results"] = []
    st.session_state["last_result"] = None

    provider = get_provider(
        settings.provider,
        model=settings.model,
        api_key=settings_store.api_key(settings.provider),
    )
    finder = BusinessFinder(
        provider,
        config=LLMConfig(
            model=settings.model,
            temperature=settings.temperature,
            use_search_grounding=settings.use_search_grounding,
        ),
        max_results=settings.max_results_per_task,
        prompt_overrides=prompt_overrides,
    )

    progress = st.progress(0, text="Hazırlanıyor...")
    table_area = st.empty()
    businesses: List[Business] = []
    result: Optional[SearchResult] = None

    for event in finder.iter_search(criteria):
        if event.kind == "task_started":
            progress.progress(
                event.task_index / max(event.task_count, 1),
                text=f"Aranıyor ({event.task_index + 1}/{event.task_count}): {event.task.label()}",
            )
        elif event.kind == "business":
            businesses.append(event.business)
            _render_table(table_area, businesses)
        elif event.kind == "task_failed":
            st.warning(f"{event.task.label()}: {event.error}")
        elif event.kind == "finished":
            result = event.result

    progress.progress(1.0, text="Tamamlandı")
    st.session_state["results"] = businesses
    st.session_state["last_result"] = result
    if result is not None and result.aborted:
        st.session_state["error_message"] = result.error or "Bir hata oluştu."
    if result is not None and not result.aborted:
        history.add(criteria, result_count=len(businesses))


def _render_exports(businesses: List[Business]) -> None:
    col_xlsx, col_copy = st.columns(2)
    with col_xlsx:
        try:
            exporter = BusinessExcelExporter(businesses)
        except ExportError as exc:
            st.info(str(exc))
        else:
            summary = exporter.get_summary()
            rating = summary["average_rating"]
            st.caption(
                f"{summary['total']} işletme, {summary['with_phone']} telefonlu"
                + (f", ortalama puan {rating:.1f}" if rating is not None else "")
            )
            data = exporter.to_bytes()
            st.download_button(
                "XLSX İndir",
                data=data,
                file_name=DEFAULT_FILENAME,
                mime=XLSX_MIME,
                key="btn_download_xlsx",
            )
    with col_copy:
        with st.expander("Panoya Kopyala"):
            try:
                st.code(to_clipboard_text(businesses), language=None)
            except ExportError as exc:
                st.info(str(exc))


# ===================================================================
# Main application
# ===================================================================

def main() -> None:
    """Entry point for the Streamlit business finder."""

    st.set_page_config(
        page_title="İşletme Bulucu",
        page_icon="🔎",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    _init_session_state()
    store = _store()
    settings_store = SettingsStore(store)
    catalog = get_catalog()

    # -- Sidebar -----------------------------------------------------------
    with st.sidebar:
        st.title("İşletme Bulucu")
        st.caption(version_label())

        theme = settings_store.theme
        st.button(f"Tema: {theme_label(theme)}", key="btn_theme", on_click=_cycle_theme)

        settings = _render_settings(settings_store)
        prompt_overrides = _render_advanced()
        history = SearchHistory(store, limit=settings.history_limit)
        _render_history(history)

    _apply_theme(theme)

    # -- Main area ---------------------------------------------------------
    st.title("İşletme Bulucu")
    st.caption("Türkiye'deki işletmeleri kategori ve konuma göre bulun")

    c1, c2, c3 = st.columns(3)
    with c1:
        _select("İl", "province", catalog.provinces, "İl Seçin",
                on_change=_on_province_change)
    with c2:
        _select("İlçe", "district",
                catalog.get_district_options(st.session_state["province"]),
                "İlçe Seçin", disabled=not st.session_state["province"],
                on_change=_on_district_change)
    with c3:
        _select("Mahalle", "neighborhood",
                catalog.get_neighborhood_options(
                    st.session_state["province"], st.session_state["district"],
                ),
                ALL_NEIGHBORHOODS_LABEL, disabled=not st.session_state["district"])

    c4, c5 = st.columns(2)
    with c4:
        _select("Ana Kategori", "main_category", catalog.main_categories,
                "Ana Kategori Seçin", on_change=_on_main_category_change)
    with c5:
        _select("Alt Kategori", "sub_category",
                catalog.get_sub_category_options(st.session_state["main_category"]),
                ALL_SUB_CATEGORIES_LABEL, disabled=not st.session_state["main_category"])

    criteria = _criteria_from_state()
    if st.button("Bul", type="primary", disabled=not criteria.is_complete(), key="btn_search"):
        try:
            _run_search(criteria, settings, settings_store, history, prompt_overrides)
        except SearchValidationError as exc:
            st.session_state["error_message"] = str(exc)
        except LLMError as exc:
            logger.exception("Search failed")
            st.session_state["error_message"] = str(exc)

    if st.session_state["error_message"]:
        _render_error(st.session_state["error_message"])

    businesses: List[Business] = st.session_state["results"]
    last_result: Optional[SearchResult] = st.session_state["last_result"]
    if last_result is not None:
        _render_table(st.empty(), businesses)
        if last_result.skipped_lines:
            st.caption(f"{last_result.skipped_lines} okunamayan satır atlandı.")
        _render_exports(businesses)
    else:
        st.subheader("Aramaya Hazır")
        st.caption("Sonuçları görmek için yukarıdaki filtreleri kullanarak bir arama yapın.")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
