import html
import json
import logging
import re
import shutil
import time
import uuid
from datetime import date, datetime, timedelta

from fastapi import FastAPI, UploadFile, File, Form
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, HTMLResponse, Response

from config import settings
from engine import results_filename
from pdf_report import (
    build_compliance_outputs,
    RESULTS_CSV,
    PASS_FAIL_PNG,
    REPORT_PDF,
)
from validator import EMPTY_FILE_MESSAGE, REQUIRED_COLUMNS

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

RUNS_DIR = settings.runs_dir
RUNS_DIR.mkdir(parents=True, exist_ok=True)

RUN_ID_PATTERN = re.compile(r"^\d{8}_\d{6}_[0-9a-f]{8}$")
SUMMARY_JSON = "summary.json"

COLUMN_HINTS = {
    "DriverId": "Unique identifier for each driver",
    "driverName": "Full name of the driver",
    "DateofBirth": "Date of birth",
    "DLExpirationDate": "Driver's License expiration date",
    "DOTExpirationDate": "DOT expiration date",
    "LastDrugTest": "Last drug test date",
    "BackgroundCheck": "Background check date",
    "PUCFingerPrints": "Fingerprints expiration date",
    "MVRLastRan": "Last motor vehicle record check",
    "LastTrained": "Last training date",
}

app = FastAPI(title=settings.app_name)


# -------------------------
# Helpers
# -------------------------

def cleanup_runs(older_than_hours: int | None = None):
    hours = settings.run_ttl_hours if older_than_hours is None else older_than_hours
    cutoff = time.time() - hours * 3600
    for p in RUNS_DIR.iterdir():
        if not p.is_dir():
            continue
        try:
            if p.stat().st_mtime < cutoff:
                shutil.rmtree(p)
                logger.debug("Removed expired run %s", p.name)
        except OSError as e:
            logger.warning("Could not remove run folder %s: %s", p, e)


def run_dir_for(run_id: str):
    if not RUN_ID_PATTERN.match(run_id):
        return None
    path = RUNS_DIR / run_id
    return path if path.is_dir() else None


def friendly_error(e: Exception) -> str:
    s = str(e)
    if "Missing required columns" in s:
        return s + " Please use the template CSV."
    if s.startswith("Duplicate columns"):
        return s + " Each header may appear only once."
    if "DriverId is missing" in s:
        return s + " Every driver needs an ID."
    if s == EMPTY_FILE_MESSAGE:
        return s + " Please upload a CSV with a header row."
    return s


def template_row(today: date) -> list:
    """An example driver that passes every rule as of ``today``."""
    return [
        "1001",
        "Jane Doe",
        (today - timedelta(days=30 * 365 + 8)).isoformat(),
        (today + timedelta(days=365)).isoformat(),
        (today + timedelta(days=180)).isoformat(),
        (today - timedelta(days=60)).isoformat(),
        (today - timedelta(days=30)).isoformat(),
        (today + timedelta(days=365)).isoformat(),
        (today - timedelta(days=14)).isoformat(),
        (today - timedelta(days=45)).isoformat(),
    ]


def html_page(message: str = "", success: bool = False) -> str:
    color = "#0a7a2f" if success else "#b00020"
    columns = "\n".join(
        f"        <li><code>{c}</code> - {COLUMN_HINTS[c]}</li>" for c in REQUIRED_COLUMNS
    )
    return f"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>Driver Compliance Checker</title>
  <style>
    body {{ font-family: Arial, sans-serif; max-width: 900px; margin: 40px auto; padding: 0 16px; }}
    h1 {{ margin-bottom: 6px; }}
    .row {{ display:flex; gap:20px; flex-wrap:wrap; }}
    .card {{ flex:1; min-width:280px; border:1px solid #eee; border-radius:14px; padding:18px; box-shadow:0 2px 10px rgba(0,0,0,0.04); }}
    label {{ display:block; margin-top:12px; font-weight:600; }}
    input[type="text"], input[type="date"] {{ width:100%; padding:10px; border-radius:10px; border:1px solid #ddd; }}
    input[type="file"] {{ margin-top:6px; }}
    button {{ margin-top:16px; padding:10px 14px; border-radius:12px; border:0; cursor:pointer; }}
    ul {{ margin:8px 0 0 18px; }}
    .hint {{ color:#666; font-size:14px; line-height:1.5; }}
    .msg {{ margin-top:12px; color:{color}; }}
    code {{ background:#f5f5f5; padding:2px 6px; border-radius:6px; }}
  </style>
</head>
<body>

<h1>Driver Compliance Checker</h1>
<p class="hint">
Upload your driver roster and see who passes age, license, DOT, drug test, background check,
fingerprint, MVR and training requirements.
</p>

<div class="row">

  <div class="card">
    <h3>1) Upload CSV</h3>
    <form action="/check" method="post" enctype="multipart/form-data">
      <label>CSV file</label>
      <input name="file" type="file" accept=".csv,text/csv" required />

      <label>Check as of (optional, defaults to today)</label>
      <input name="as_of" type="date"/>

      <label>Report title (optional)</label>
      <input name="report_title" type="text" placeholder="{html.escape(settings.report_title)}"/>

      <label>Company name (optional)</label>
      <input name="company_name" type="text" placeholder="Your Company"/>

      <button type="submit">Check Drivers</button>
    </form>

    <div class="msg">{html.escape(message)}</div>
  </div>

  <div class="card">
    <h3>2) CSV format</h3>
    <div class="hint">
      Required columns:
      <ul>
{columns}
      </ul>
      Dates in <code>YYYY-MM-DD</code> or <code>MM/DD/YYYY</code> format.
      <p style="margin-top:10px;">
        <a href="/template">Download template CSV</a>
      </p>
    </div>
  </div>

</div>

</body>
</html>
""".strip()


def results_page(run_id: str, summary: dict) -> str:
    rule_rows = "\n".join(
        f"<tr><td>{html.escape(msg.rstrip(';'))}</td><td style='text-align:right'>{n}</td></tr>"
        for msg, n in summary["rule_failures"].items()
    )
    return f"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8"/>
  <title>Driver Compliance Results</title>
  <style>
    body {{ font-family: Arial, sans-serif; max-width: 900px; margin: 40px auto; padding: 0 16px; }}
    .row {{ display:flex; gap:16px; flex-wrap:wrap; }}
    .info-card {{ flex:1; min-width:180px; background:#3498db; color:white; padding:20px; border-radius:8px; text-align:center; }}
    .info-card h3 {{ margin:0; font-size:24px; }}
    .info-card p {{ margin:0; font-size:18px; }}
    table {{ border-collapse:collapse; margin-top:8px; }}
    td, th {{ border:1px solid #eee; padding:6px 10px; }}
  </style>
</head>
<body>
<h2>Results as of {summary["as_of"]}</h2>
<div class="row">
  <div class="info-card"><h3 id="total">{summary["total"]}</h3><p>Total Drivers</p></div>
  <div class="info-card"><h3 id="passed">{summary["pass_count"]}</h3><p>Passed Drivers</p></div>
  <div class="info-card"><h3 id="failed">{summary["fail_count"]}</h3><p>Failed Drivers</p></div>
</div>

<p><img src="/chart/{run_id}" alt="Pass/Fail Distribution" style="max-width:100%;margin-top:20px;"/></p>

<h3>Failures by rule</h3>
<table>
<tr><th>Rule</th><th>Drivers</th></tr>
{rule_rows}
</table>

<p><a href="/download/{run_id}">Download Results (CSV)</a></p>
<p><a href="/report/{run_id}">Download Report (PDF)</a></p>
<p><a href="/">Check another file</a></p>
</body>
</html>
""".strip()


# -------------------------
# Routes
# -------------------------

@app.get("/", response_class=HTMLResponse)
def home():
    return html_page()


@app.get("/template")
def template_csv():
    content = ",".join(REQUIRED_COLUMNS) + "\n" + ",".join(template_row(date.today())) + "\n"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="template.csv"'},
    )


@app.post("/check")
async def check(
    file: UploadFile = File(...),
    as_of: str = Form(""),
    report_title: str = Form(""),
    company_name: str = Form(""),
):
    cleanup_runs()

    if not (file.filename or "").lower().endswith(".csv"):
        logger.warning("Rejected upload %r: not a CSV", file.filename)
        return HTMLResponse(html_page("Please upload a .csv file."), status_code=400)

    content = await file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        logger.warning("Rejected upload %r: %d bytes", file.filename, len(content))
        return HTMLResponse(
            html_page(f"File too large (max {settings.max_upload_mb}MB)."), status_code=400
        )

    today = date.today()
    if as_of.strip():
        try:
            today = date.fromisoformat(as_of.strip())
        except ValueError:
            return HTMLResponse(html_page("The 'as of' date must be YYYY-MM-DD."), status_code=400)

    run_id = datetime.now().strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:8]
    run_dir = RUNS_DIR / run_id
    run_dir.mkdir(parents=True, exist_ok=True)

    csv_path = run_dir / "input.csv"
    csv_path.write_bytes(content)

    try:
        # pandas, matplotlib and reportlab are blocking; keep them off the event loop
        _, summary = await run_in_threadpool(
            build_compliance_outputs,
            csv_path=str(csv_path),
            out_dir=str(run_dir),
            today=today,
            report_title=report_title.strip() or settings.report_title,
            company_name=company_name.strip() or None,
        )
    except ValueError as e:
        logger.warning("Could not check %r: %s", file.filename, e)
        shutil.rmtree(run_dir)
        return HTMLResponse(html_page("Error: " + friendly_error(e)), status_code=400)
    except Exception:
        shutil.rmtree(run_dir, ignore_errors=True)
        raise

    (run_dir / SUMMARY_JSON).write_text(json.dumps(summary))
    return HTMLResponse(results_page(run_id, summary), status_code=200)


def _not_found():
    return HTMLResponse(html_page("Results not found or expired."), status_code=404)


@app.get("/download/{run_id}")
def download(run_id: str):
    run_dir = run_dir_for(run_id)
    if run_dir is None or not (run_dir / SUMMARY_JSON).exists():
        return _not_found()
    summary = json.loads((run_dir / SUMMARY_JSON).read_text())
    return FileResponse(
        path=str(run_dir / RESULTS_CSV),
        media_type="text/csv",
        filename=results_filename(date.fromisoformat(summary["as_of"])),
    )


@app.get("/report/{run_id}")
def report(run_id: str):
    run_dir = run_dir_for(run_id)
    if run_dir is None or not (run_dir / REPORT_PDF).exists():
        return _not_found()
    return FileResponse(
        path=str(run_dir / REPORT_PDF),
        media_type="application/pdf",
        filename="driver-compliance-report.pdf",
    )


@app.get("/chart/{run_id}")
def chart(run_id: str):
    run_dir = run_dir_for(run_id)
    if run_dir is None or not (run_dir / PASS_FAIL_PNG).exists():
        return _not_found()
    return FileResponse(path=str(run_dir / PASS_FAIL_PNG), media_type="image/png")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
