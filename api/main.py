from __future__ import annotations

from dataclasses import asdict
import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder
from fastapi.concurrency import run_in_threadpool

from api.schemas import MetaColumnsResponse, ViewSelectionModel
from paydash.config import setup_logging
from paydash.errors import DashboardError, ExportRefused
from paydash.export import ExportFile
from paydash.selection import ViewSelection, normalize_selection
from paydash.session import DashboardSession


setup_logging()

app = FastAPI(title="Payment Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

session = DashboardSession()


def _selection_from_model(model: ViewSelectionModel) -> ViewSelection:
    return normalize_selection(model.model_dump())


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _status_response(exc: DashboardError) -> JSONResponse:
    # Refusals are a state conflict; everything else reaching here is a failed export.
    code = 409 if isinstance(exc, ExportRefused) else 500
    return _json({"status": asdict(exc.status()), "exports_enabled": session.exports_enabled}, status_code=code)


def _download(out: ExportFile) -> Response:
    return Response(
        content=out.content,
        media_type=out.media_type,
        headers={"Content-Disposition": f'attachment; filename="{out.filename}"'},
    )


@app.get("/meta/columns")
def meta_columns():
    try:
        body = MetaColumnsResponse(
            columns=session.available_columns,
            source=session.source_name,
            exports_enabled=session.exports_enabled,
        )
        return _json(body.model_dump())
    except Exception as exc:
        logger.exception("meta_columns failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/status")
def status():
    return _json({"status": asdict(session.status), "exports_enabled": session.exports_enabled})


@app.post("/upload")
async def upload(file: UploadFile = File(...)):
    current = session
    try:
        # Exports stay off from the first byte read until the new dataset is committed.
        with current.busy():
            try:
                data = await file.read()
            except OSError as exc:
                logger.warning("reading upload failed: %s", exc)
                result = current.fail_upload()
            else:
                result = await run_in_threadpool(current.load_upload, file.filename, data)
        payload = result.to_payload()
        payload["exports_enabled"] = current.exports_enabled
        payload["row_count"] = len(current.records)
        payload["columns"] = current.available_columns
        return _json(payload)
    except Exception as exc:
        logger.exception("upload failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.post("/render")
def render(selection: ViewSelectionModel):
    try:
        result = session.render(_selection_from_model(selection))
        return _json(result.to_payload())
    except Exception as exc:
        logger.exception("render failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/export/xlsx")
def export_xlsx():
    try:
        return _download(session.export_xlsx())
    except DashboardError as exc:
        return _status_response(exc)
    except Exception as exc:
        logger.exception("export_xlsx failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/export/pdf")
def export_pdf():
    try:
        return _download(session.export_pdf())
    except DashboardError as exc:
        return _status_response(exc)
    except Exception as exc:
        logger.exception("export_pdf failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})
