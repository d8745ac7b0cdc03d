# routerbench/main.py
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from routerbench.core.config import settings
from routerbench.models import PersistedReport
from routerbench.services.report_repository import ReportRepository

# --- Application State ---
repository = ReportRepository(settings.results_dir)

# --- FastAPI App Initialization ---
app = FastAPI(
    title="routerbench results",
    description="Serves the persisted router performance comparison reports.",
    version="1.0.0",
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


# --- API Endpoints ---
@app.get("/api/reports/latest", response_model=PersistedReport, response_model_by_alias=True)
def latest_report():
    """
    Returns the report of the most recent benchmark run.
    """
    report = repository.load_latest()
    if report is None:
        raise HTTPException(status_code=404, detail="No report available yet. Run `routerbench` first.")
    return report


@app.get("/api/reports/history", response_model=List[str])
def list_history():
    """
    Lists the history report file names, oldest first.
    """
    return [path.name for path in repository.list_history()]


@app.get("/api/reports/history/{name}", response_model=PersistedReport, response_model_by_alias=True)
def history_report(name: str):
    path = repository.find_history(name)
    if path is None:
        raise HTTPException(status_code=404, detail=f"History report '{name}' not found.")
    return repository.load(path)


@app.get("/api/download-report")
def download_latest_report():
    """
    Allows the user to download the raw JSON of the latest report.
    """
    if not repository.latest_path.is_file():
        raise HTTPException(status_code=404, detail="No report available to download.")

    return Response(
        content=repository.latest_path.read_text(encoding="utf-8"),
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=latest-browser-results.json"},
    )


# A simple root endpoint to confirm the API is running
@app.get("/")
def read_root():
    return {"message": "Welcome to the routerbench results API"}
