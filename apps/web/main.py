"""FastAPI web application for NuGetSync."""

from datetime import datetime
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import BaseModel

from nugetsync.engine import build_rows
from nugetsync.errors import InvalidVersion, InventoryError, RulesError
from nugetsync.inventory import inventory_from_dict
from nugetsync.models import ReportRow
from nugetsync.report import format_report
from nugetsync.rules import parse_rules

app = FastAPI(
    title="NuGetSync",
    description="Classify NuGet package usage against upgrade and removal rules",
    version="0.1.0",
)


class ReportRequest(BaseModel):
    """Request model for building a report."""
    inventory: dict[str, Any]
    rules: dict[str, Any]


class ReportRowModel(BaseModel):
    """One report row."""
    project_url: str
    repo_ref: str
    csproj_path: str
    frameworks: str
    nuget_name: str
    is_transitive: bool
    action: str
    target_version: str
    comment: str
    date_updated: Optional[datetime] = None


class ReportResponse(BaseModel):
    """Response model for a built report."""
    rows: list[ReportRowModel]
    actionable: int
    projects: int


@app.get("/", response_class=HTMLResponse)
async def home():
    """Serve the landing page."""
    return get_index_html()


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


def _build(request: ReportRequest) -> list[ReportRow]:
    """Run the engine, mapping its errors onto HTTP status codes."""
    try:
        rule_set = parse_rules(request.rules)
        inventory = inventory_from_dict(request.inventory)
        return build_rows(inventory, rule_set)
    except RulesError as e:
        raise HTTPException(status_code=400, detail=f"Invalid rules: {e}")
    except InventoryError as e:
        raise HTTPException(status_code=400, detail=f"Invalid inventory: {e}")
    except InvalidVersion as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/api/report", response_model=ReportResponse)
async def build_report(request: ReportRequest):
    """Build report rows from an inventory and a rules document."""
    rows = _build(request)
    return ReportResponse(
        rows=[ReportRowModel(**vars(row)) for row in rows],
        actionable=sum(1 for row in rows if row.nuget_name),
        projects=len({row.csproj_path for row in rows}),
    )


@app.post("/api/report.tsv", response_class=PlainTextResponse)
async def build_report_tsv(request: ReportRequest):
    """Build the report and return it as tab-separated text."""
    rows = _build(request)
    return PlainTextResponse(
        content=format_report(rows),
        media_type="text/tab-separated-values",
        headers={"Content-Disposition": 'attachment; filename="NugetSync.Report.tsv"'},
    )


def get_index_html() -> str:
    """Return the landing page."""
    return """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <title>NuGetSync - Package Rule Report</title>
    </head>
    <body>
        <h1>NuGetSync</h1>
        <p>POST an inventory and a rules document to <code>/api/report</code>
        (JSON rows) or <code>/api/report.tsv</code> (tab-separated report).</p>
        <p>API docs: <a href="/docs">/docs</a></p>
    </body>
    </html>
    """


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
