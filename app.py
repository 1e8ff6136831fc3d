"""Streamlit front-end for bulk interest recompute and reconciliation worksheets."""
from __future__ import annotations

from datetime import date
from io import BytesIO

import pandas as pd
import streamlit as st

from notice_engine import (
    BulkInterestRecomputeUseCase,
    CaseContext,
    JsonCaseRepository,
    JsonReconciliationRepository,
    ReconciliationDiffEngine,
)
from notice_engine.application.dto import BulkRecomputeRequest
from notice_engine.application.reconciliation.use_cases import SaveWorksheetUseCase
from notice_engine.config import SETTINGS
from notice_engine.domain.reconciliation.entities import (
    ReconciliationRecord,
    ReconciliationType,
    new_worksheet,
)
from notice_engine.exceptions import NoticeEngineError
from notice_engine.infrastructure.audit.jsonl_audit_trail import JsonLinesAuditTrail
from notice_engine.infrastructure.parsing.worksheet import worksheet_to_imported_rows
from notice_engine.presentation.notice_report import notices_to_rows
from notice_engine.presentation.worksheet_export import export_filename, render_xlsx, worksheet_to_rows


st.set_page_config(page_title="Notice Engine", layout="wide")
st.title("Tax Notice Interest & Reconciliation")

engine = ReconciliationDiffEngine()
audit_trail = JsonLinesAuditTrail(SETTINGS.audit_log_path)


def worksheet_dataframe(record: ReconciliationRecord) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "period": row.period,
                "source_a": float(row.source_a),
                "source_b": float(row.source_b),
                "diff": float(row.diff),
                "remarks": row.remarks,
            }
            for row in record.rows
        ]
    )


def apply_editor(record: ReconciliationRecord, edited: pd.DataFrame) -> ReconciliationRecord:
    for index, row in edited.reset_index(drop=True).iterrows():
        for field in ("source_a", "source_b", "remarks"):
            record = engine.set_cell(record, int(index), field, row[field])
    return record


if "view" not in st.session_state:
    st.session_state["view"] = "interest"
if "worksheet" not in st.session_state:
    st.session_state["worksheet"] = None

view = st.sidebar.radio(
    "View",
    ["interest", "reconciliation", "report"],
    format_func=lambda key: {"interest": "Bulk Interest Updater", "reconciliation": "Reconciliation", "report": "Notice Report"}[key],
    key="view",
)

if view == "interest":
    st.subheader("Bulk Interest Updater")
    st.caption("Recalculate interest for all open notices in one click.")
    col1, col2 = st.columns(2)
    with col1:
        till_today = st.checkbox("Calculate till today", value=True)
        target_date = date.today() if till_today else st.date_input("Target date", value=date.today())
    with col2:
        rate = st.number_input(
            "Annual Interest Rate (%)",
            min_value=0.01,
            value=float(SETTINGS.default_interest_rate),
            step=0.5,
        )
    st.warning(
        "This will overwrite existing 'Interest' amounts for all defects in notices where Status is not 'Closed'."
    )
    confirmed = st.checkbox("I understand existing interest values will be overwritten")
    if st.button("Run Bulk Update", disabled=not confirmed):
        context = CaseContext(repository=JsonCaseRepository(SETTINGS.store_path), audit_trail=audit_trail)
        with st.spinner("Processing..."):
            try:
                result = BulkInterestRecomputeUseCase(context).execute(
                    BulkRecomputeRequest(target_date=target_date, annual_rate_percent=str(rate))
                )
            except NoticeEngineError as exc:
                st.error(f"Error during bulk update: {exc}")
            else:
                if result.updated_count:
                    st.success(f"Success! Updated interest for {result.updated_count} notices.")
                else:
                    st.info("No notices required updates.")

elif view == "reconciliation":
    repository = JsonReconciliationRepository(SETTINGS.store_path)
    worksheets = repository.list_worksheets()

    col_new1, col_new2, col_new3 = st.columns([2, 2, 1])
    with col_new1:
        gstin = st.text_input("GSTIN", key="new_ws_gstin")
    with col_new2:
        ws_type = st.selectbox("Type", [member.value for member in ReconciliationType], key="new_ws_type")
    with col_new3:
        financial_year = st.text_input("FY", value="2023-24", key="new_ws_fy")
    if st.button("New worksheet", disabled=not gstin):
        st.session_state["worksheet"] = new_worksheet(gstin.strip().upper(), ws_type, financial_year)
        st.rerun()

    if worksheets:
        options = {f"#{ws.id} {ws.gstin} {ws.type.value} {ws.financial_year}": ws for ws in worksheets}
        picked = st.selectbox("Open worksheet", list(options.keys()))
        if st.button("Open"):
            st.session_state["worksheet"] = options[picked]
            st.rerun()

    record: ReconciliationRecord | None = st.session_state.get("worksheet")
    if record is None:
        st.info("Create or open a worksheet to start editing.")
    else:
        st.subheader(f"{record.type.value}: {record.gstin} {record.financial_year}")
        upload = st.file_uploader("Import from Excel/CSV", type=["xlsx", "csv"])
        if upload is not None and st.button("Import"):
            try:
                imported = worksheet_to_imported_rows(BytesIO(upload.read()), filename=upload.name)
            except NoticeEngineError as exc:
                st.error(str(exc))
            else:
                merged = engine.merge_import(record, imported)
                st.session_state["worksheet"] = merged.record
                st.success(f"Imported {len(merged.matched)} periods. Please verify the mapped values.")
                st.rerun()

        edited = st.data_editor(
            worksheet_dataframe(record),
            disabled=["period", "diff"],
            hide_index=True,
            key="worksheet_editor",
            use_container_width=True,
        )
        record = apply_editor(record, edited)
        totals = engine.totals(record)
        col_t1, col_t2, col_t3 = st.columns(3)
        col_t1.metric("Source A", f"{totals.sum_a:,}")
        col_t2.metric("Source B", f"{totals.sum_b:,}")
        col_t3.metric("Difference", f"{totals.sum_diff:,}")

        col_s1, col_s2 = st.columns(2)
        with col_s1:
            if st.button("Save"):
                saved = SaveWorksheetUseCase(repository, audit_trail).execute(record)
                st.session_state["worksheet"] = saved
                st.success("Worksheet saved")
        with col_s2:
            st.download_button(
                "Download Excel",
                data=render_xlsx(record),
                file_name=export_filename(record),
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            )
        st.dataframe(pd.DataFrame(worksheet_to_rows(record)))

else:
    rows = notices_to_rows(JsonCaseRepository(SETTINGS.store_path))
    if not rows:
        st.info("No notices in the store.")
    else:
        st.dataframe(pd.DataFrame(rows))
