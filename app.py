import asyncio
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from a11y_core.charts import touchpoint_level_chart
from a11y_core.data import build_client, load_details, load_overview, load_touchpoints, trigger_refresh
from a11y_core.details import compute_details
from a11y_core.errors import ConfigError
from a11y_core.filters import normalize_filters
from a11y_core.overview import compute_overview
from a11y_core.settings import VIEW_NAMES, DashboardSettings, load_settings
from a11y_core.touchpoints import compute_touchpoints
from a11y_core.views import ViewController, bind_loader

TONE_STYLES = {
    "danger": "background-color: #fee2e2; color: #991b1b;",
    "warning": "background-color: #fef9c3; color: #854d0e;",
    "success": "background-color: #dcfce7; color: #166534;",
    "neutral": "background-color: #f3f4f6; color: #1f2937;",
}

SORT_OPTIONS = {
    "Totale ↓": ("total", "desc"),
    "Totale ↑": ("total", "asc"),
    "A ↓": ("A", "desc"),
    "A ↑": ("A", "asc"),
    "AA ↓": ("AA", "desc"),
    "AA ↑": ("AA", "asc"),
    "AAA ↓": ("AAA", "desc"),
    "AAA ↑": ("AAA", "asc"),
    "Nome A→Z": ("name", "asc"),
    "Nome Z→A": ("name", "desc"),
}


# ---------- formatting ----------
def fmt(n: Optional[float]) -> str:
    """Italian grouping: 1234 -> "1.234", 12.5 -> "12,5"."""
    if n is None:
        return "N/A"
    if float(n).is_integer():
        return f"{int(n):,}".replace(",", ".")
    return f"{n:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")


def pct(n: float) -> str:
    return f"{n:.1f}%".replace(".", ",")


# ---------- UI / layout helpers ----------
def inject_base_styles():
    # Emitted on every run: Streamlit clears markdown left by earlier runs.
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .legend {display: flex;gap: 12px;font-size: 0.8rem;color: #374151;}
        .legend span::before {content: "";display: inline-block;width: 12px;height: 8px;border-radius: 2px;margin-right: 4px;}
        .legend .lvl-a::before {background: #dc2626;}
        .legend .lvl-aa::before {background: #f97316;}
        .legend .lvl-aaa::before {background: #fbbf24;}
        </style>
        """,
        unsafe_allow_html=True,
    )


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body


def render_page_header(title: str, breadcrumb: str, view_name: str, export_df: Optional[pd.DataFrame] = None):
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Esporta CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=f"{view_name.lower()}.csv",
                mime="text/csv",
            )


# ---------- view controllers ----------
def build_controllers(settings: DashboardSettings) -> Dict[str, ViewController]:
    return {
        "Panoramica": ViewController("Panoramica", bind_loader(load_overview, settings)),
        "Touchpoint": ViewController("Touchpoint", bind_loader(load_touchpoints, settings)),
        "Dettagli": ViewController("Dettagli", bind_loader(load_details, settings)),
    }


def get_controller(view_name: str) -> ViewController:
    return st.session_state["controllers"][view_name]


def open_view(view_name: str):
    previous = st.session_state.get("current_view")
    if previous and previous != view_name:
        get_controller(previous).close()
    st.session_state["current_view"] = view_name
    controller = get_controller(view_name)
    if st.session_state.pop("reload_requested", None) == view_name:
        return asyncio.run(controller.reload())
    return asyncio.run(controller.open())


async def _run_refresh(settings: DashboardSettings):
    async with build_client(settings) as client:
        return await trigger_refresh(client, settings)


# ---------- UI setup ----------
st.set_page_config(page_title="Dashboard Accessibilità A11Y", layout="wide")
inject_base_styles()
st.title("Dashboard Accessibilità A11Y")
st.caption("Banca Etica – Monitoraggio segnalazioni touchpoint")

try:
    settings = load_settings()
except ConfigError as exc:
    st.error(f"Configurazione non valida: {exc}")
    st.stop()

if "controllers" not in st.session_state:
    st.session_state["controllers"] = build_controllers(settings)

enabled_views = [v for v in VIEW_NAMES if v not in settings.disabled_views]

with st.sidebar:
    st.markdown("### Navigazione")
    nav_choice = st.radio("Vista", enabled_views, index=0)
    if st.button("Ricarica vista", help="Scarica di nuovo i dati della vista corrente."):
        st.session_state["reload_requested"] = nav_choice
    for disabled in settings.disabled_views:
        st.caption(f"{disabled} (non disponibile)")

    st.markdown("---")
    if st.button("Aggiorna dati", help="Rigenera l'export del foglio di calcolo."):
        with st.spinner("Aggiornamento in corso…"):
            outcome = asyncio.run(_run_refresh(settings))
        if outcome.ok:
            st.success(outcome.message)
        else:
            st.error(outcome.message)


# ----- Page renderers -----

def render_overview_page():
    state = open_view("Panoramica")
    payload = compute_overview(state.data) if state.data is not None else None
    export_df = pd.DataFrame(payload["touchpoints"]) if payload else None
    render_page_header("📊 Panoramica", "Home / Panoramica", "Panoramica", export_df=export_df)

    if state.error:
        st.error(state.error)
        return
    if payload is None:
        return

    with card("Indicatori principali"):
        kpis: List[Dict[str, Any]] = payload["kpis"]
        if not kpis:
            st.info("Nessun indicatore trovato nel foglio.")
        else:
            cols = st.columns(len(kpis))
            for col, kpi in zip(cols, kpis):
                col.metric(kpi["title"], fmt(kpi["value"]))
        if payload["coverage"] is not None:
            st.markdown(f"**Copertura test** {pct(payload['coverage'])}")
            st.progress(max(0.0, payload["coverage"] / 100))
            st.caption(
                f"Sono stati testati {fmt(payload['tested'])} touchpoint su {fmt(payload['to_test'])} "
                f"({pct(payload['coverage'])} di copertura)."
            )

    with card("Distribuzione per livello di conformità"):
        st.caption("Percentuali calcolate sul totale dei livelli rilevati.")
        levels = payload["levels"]
        if not levels:
            st.info("Nessun dato disponibile")
        else:
            cols = st.columns(min(3, len(levels)))
            for i, lvl in enumerate(levels):
                with cols[i % len(cols)]:
                    st.markdown(f"{lvl['level']} · **{fmt(lvl['count'])}** · {pct(lvl['share'])}")
                    st.progress(min(1.0, max(0.0, lvl["share"] / 100)))

    with card("Distribuzione segnalazioni per touchpoint"):
        st.caption("Ordinati per numero di segnalazioni.")
        if not payload["touchpoints"]:
            st.info("Nessun dato disponibile")
        else:
            st.dataframe(
                export_df.rename(columns={"name": "Touchpoint", "count": "Segnalazioni", "share": "Distribuzione"}),
                hide_index=True,
                use_container_width=True,
                column_config={
                    "Distribuzione": st.column_config.ProgressColumn("Distribuzione", format="%.1f%%", min_value=0, max_value=100),
                },
            )


def render_touchpoint_page():
    state = open_view("Touchpoint")
    c1, c2 = st.columns([3, 2])
    query = c1.text_input("Cerca touchpoint…", "")
    sort_label = c2.selectbox("Ordina per", list(SORT_OPTIONS), index=0)
    sort_by, direction = SORT_OPTIONS[sort_label]
    filters = normalize_filters({"query": query, "sort_by": sort_by, "direction": direction})

    payload = compute_touchpoints(state.data, filters) if state.data is not None else None
    export_df = pd.DataFrame(payload["rows"]) if payload else None
    render_page_header("🔥 Touchpoint per livello", "Home / Touchpoint", "Touchpoint", export_df=export_df)
    st.caption("Segnalazioni classificate per livello (A, AA, AAA) su ciascun touchpoint.")

    if state.error:
        st.error(state.error)
        return
    if payload is None:
        return

    totals = payload["totals"]
    cols = st.columns(5)
    cols[0].metric("Totale A", fmt(totals["A"]))
    cols[1].metric("Totale AA", fmt(totals["AA"]))
    cols[2].metric("Totale AAA", fmt(totals["AAA"]))
    cols[3].metric("Totale livelli", fmt(totals["total"]))
    cols[4].metric("Segnalazioni non risolte", fmt(totals["unresolved"]))
    st.markdown(
        "<div class='legend'><span class='lvl-a'>A</span><span class='lvl-aa'>AA</span><span class='lvl-aaa'>AAA</span></div>",
        unsafe_allow_html=True,
    )

    if payload["empty"]:
        st.info("Nessun dato disponibile")
        return

    rows = payload["rows"]
    with card("Distribuzione livelli"):
        if rows:
            st.altair_chart(touchpoint_level_chart(rows), use_container_width=True)
        else:
            st.info("Nessun touchpoint corrisponde alla ricerca.")

    table = pd.DataFrame(
        [
            {
                "Touchpoint": r["name"],
                "A": r["A"],
                "AA": r["AA"],
                "AAA": r["AAA"],
                "Conteggio WCAG": r["total"],
                "Non risolte": r.get("unresolved", 0),
                "In attesa di recheck": r.get("recheck", 0),
                "Risolte": r.get("resolved", 0),
            }
            for r in rows
        ]
    )
    st.dataframe(table, hide_index=True, use_container_width=True, height=min(600, 38 + 35 * max(1, len(table))))


def render_details_page():
    state = open_view("Dettagli")
    payload = compute_details(state.data) if state.data is not None else None
    export_df = pd.DataFrame([r["cells"] for r in payload["rows"]]) if payload and not payload["empty"] else None
    render_page_header("📋 Dettaglio Segnalazioni", "Home / Dettagli", "Dettagli", export_df=export_df)

    if state.error:
        st.error(state.error)
        return
    if payload is None:
        return
    if payload["empty"]:
        st.info(payload["message"])
        return

    df = pd.DataFrame([r["cells"] for r in payload["rows"]], columns=payload["headers"])
    status_column = payload["status_column"]
    if status_column is not None:
        tones = [r["status_tone"] for r in payload["rows"]]
        styled = df.style.apply(lambda _: [TONE_STYLES[t] for t in tones], subset=[status_column])
        st.dataframe(styled, hide_index=True, use_container_width=True)
    else:
        st.dataframe(df, hide_index=True, use_container_width=True)


if nav_choice == "Panoramica":
    render_overview_page()
elif nav_choice == "Touchpoint":
    render_touchpoint_page()
else:
    render_details_page()
