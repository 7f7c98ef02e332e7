import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import Response, StreamingResponse

from config import get_settings
from database import init_db
from schemas import ImportSummary, Transaction, TransactionIn, TransactionPatch
from services import (
    ExportService,
    ImportService,
    InsightsService,
    TransactionService,
    local_now,
)
from store import SQLTransactionRepository, TransactionNotFound, TransactionStore
from summary import TransactionFilters, build_summary, filter_transactions


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Finance Insights")


PYPROJECT_PATH = Path(__file__).resolve().parent / "pyproject.toml"


def _load_app_version() -> str:
    try:
        import tomllib
    except ImportError:
        return "unknown"
    try:
        with PYPROJECT_PATH.open("rb") as fh:
            project = tomllib.load(fh).get("project", {})
    except (OSError, ValueError):
        return "unknown"
    return str(project.get("version", "unknown"))


APP_VERSION = _load_app_version()


@app.on_event("startup")
def startup_event():
    init_db()
    app.state.store = TransactionStore(SQLTransactionRepository())
    logger.info(f"startup: transactions_loaded={len(app.state.store)}")


def get_store(request: Request) -> TransactionStore:
    return request.app.state.store


def get_insights_service() -> InsightsService:
    return InsightsService(get_settings())


def _date_param(request: Request, name: str) -> Optional[date]:
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=400, detail=f"{name} must be YYYY-MM-DD"
        ) from exc


def filters_from_request(request: Request) -> TransactionFilters:
    return TransactionFilters(
        month=request.query_params.get("month") or None,
        category=request.query_params.get("category") or None,
        date_from=_date_param(request, "date_from"),
        date_to=_date_param(request, "date_to"),
        query=request.query_params.get("q") or None,
    )


async def read_upload(file: UploadFile) -> str:
    raw = await file.read()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="File must be UTF-8 text") from exc


def download(content: str, media_type: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


@app.get("/transactions", response_model=list[Transaction])
def list_transactions(
    store: TransactionStore = Depends(get_store),
    filters: TransactionFilters = Depends(filters_from_request),
):
    return filter_transactions(TransactionService(store).list_all(), filters)


@app.post("/transactions", response_model=Transaction, status_code=201)
def create_transaction(
    payload: TransactionIn, store: TransactionStore = Depends(get_store)
):
    try:
        return TransactionService(store).create(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.patch("/transactions/{transaction_id}", response_model=Transaction)
def update_transaction(
    transaction_id: str,
    payload: TransactionPatch,
    store: TransactionStore = Depends(get_store),
):
    try:
        return TransactionService(store).update(transaction_id, payload)
    except TransactionNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: str, store: TransactionStore = Depends(get_store)):
    try:
        TransactionService(store).delete(transaction_id)
    except TransactionNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.delete("/transactions", status_code=204)
def clear_transactions(store: TransactionStore = Depends(get_store)):
    TransactionService(store).clear()
    return Response(status_code=204)


@app.post("/transactions/import", response_model=ImportSummary)
async def import_transactions(
    file: UploadFile = File(...), store: TransactionStore = Depends(get_store)
):
    content = await read_upload(file)
    return ImportService(store).import_file(
        content, filename=file.filename, content_type=file.content_type
    )


@app.post("/backup/restore", response_model=ImportSummary)
async def restore_backup(
    file: UploadFile = File(...), store: TransactionStore = Depends(get_store)
):
    content = await read_upload(file)
    return ImportService(store).restore_backup(content)


@app.get("/transactions/export.csv")
def export_transactions_csv(store: TransactionStore = Depends(get_store)):
    return download(ExportService(store).csv(), "text/csv", "transactions.csv")


@app.get("/transactions/export.json")
def export_transactions_json(store: TransactionStore = Depends(get_store)):
    return download(
        ExportService(store).json(), "application/json", "transactions.json"
    )


@app.get("/backup")
def export_backup(store: TransactionStore = Depends(get_store)):
    stamp = datetime.now().strftime("%Y-%m-%d")
    return download(
        ExportService(store).backup(), "application/json", f"backup-{stamp}.json"
    )


@app.get("/stats")
def stats(
    store: TransactionStore = Depends(get_store),
    insights: InsightsService = Depends(get_insights_service),
    filters: TransactionFilters = Depends(filters_from_request),
):
    view = filter_transactions(store.all(), filters)
    return insights.stats(view, local_now(insights.settings)).as_dict()


@app.get("/insights")
def insights(
    store: TransactionStore = Depends(get_store),
    service: InsightsService = Depends(get_insights_service),
    filters: TransactionFilters = Depends(filters_from_request),
):
    result = service.get_insights(filter_transactions(store.all(), filters))
    payload = result.model_dump(mode="json")
    payload.update(result.bands())
    return payload


@app.get("/summary")
def summary(
    store: TransactionStore = Depends(get_store),
    filters: TransactionFilters = Depends(filters_from_request),
):
    return build_summary(store.all(), filters)
