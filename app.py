from __future__ import annotations
from typing import Optional, Any, Dict, List
import logging
from fastapi import FastAPI, File, UploadFile, Form, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from pydantic import BaseModel, Field
from gaitcore.pipeline.pipeline import run_gait_pipeline, to_json_safe
from gaitcore.pipeline.io_utils import read_session_bytes
from gaitcore.pipeline.synthetic import synthetic_run_session
from gaitcore.pipeline.legacy.quick_steps import quick_analysis
from gaitcore.config.settings import settings

log = logging.getLogger(__name__)

MODES = {"full", "quick"}

app = FastAPI(
    title=settings.app_name,
    docs_url=("/docs" if settings.docs_enabled else None),
    redoc_url=("/redoc" if settings.docs_enabled else None),
    openapi_url=("/openapi.json" if settings.openapi_enabled else None),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_credentials=settings.allow_credentials,
    allow_methods=list(settings.allowed_methods),
    allow_headers=list(settings.allowed_headers),
)

# Compression for large per-sample series
app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_min_size)

# Restrict Host headers when ALLOWED_HOSTS is set to specific values
if settings.allowed_hosts and settings.allowed_hosts != ("*",):
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=list(settings.allowed_hosts))


class AnalyzeRequest(BaseModel):
    """JSON analysis request: raw entries as captured plus the runner's mass."""
    samples: List[Dict[str, Any]] = Field(description="Raw entries ({timestamp, type, data, position?})")
    mass_kg: Optional[float] = Field(default=None, gt=0, description="Runner mass (kg)")
    mode: str = Field(default="full", description="'full' pipeline or 'quick' legacy estimator")
    options: Optional[Dict[str, float]] = Field(default=None, description="Pipeline tunables")


def _parse_upload(data_bytes: bytes, filename: str) -> List[dict]:
    try:
        return read_session_bytes(data_bytes, filename)
    except (ValueError, KeyError) as e:
        raise HTTPException(status_code=400, detail=f"Could not parse session file: {e}")


def _analyze(raw: List[Any], mass_kg: Optional[float], mode: str, options: dict) -> dict:
    mode = (mode or "full").strip().lower()
    if mode not in MODES:
        raise HTTPException(status_code=400, detail=f"Unknown mode '{mode}'; expected one of {sorted(MODES)}")
    mass = mass_kg if mass_kg is not None else settings.default_mass_kg
    if mode == "quick":
        out = quick_analysis(raw, mass)
        if out is None:
            raise HTTPException(status_code=422, detail="insufficient_data")
        out["mode"] = "quick"
        return out
    res = run_gait_pipeline(raw, mass, options)
    if res is None:
        raise HTTPException(status_code=422, detail="insufficient_data")
    out = res.to_dict()
    out["mode"] = "full"
    return out


@app.post("/api/analyze/")
async def analyze_data(
    mass_kg: Optional[float] = Form(None),
    mode: str = Form("full"),
    origin_lat: Optional[float] = Form(None),
    origin_lng: Optional[float] = Form(None),
    file: Optional[UploadFile] = File(None),
):
    """Analyse an uploaded session (.json / .csv) or a generated demo run if none provided."""
    options: dict = {
        "origin_lat": origin_lat if origin_lat is not None else settings.origin_lat,
        "origin_lng": origin_lng if origin_lng is not None else settings.origin_lng,
    }
    source = "demo"
    if file is not None and getattr(file, "filename", ""):
        data_bytes = await file.read()
        if len(data_bytes) > int(settings.max_upload_mb) * 1024 * 1024:
            raise HTTPException(status_code=413, detail=f"Upload exceeds limit of {settings.max_upload_mb} MB")
        raw = await run_in_threadpool(_parse_upload, data_bytes, file.filename or "")
        source = file.filename or "upload"
    else:
        raw = synthetic_run_session()

    log.info("analyze request: source=%s entries=%d mode=%s", source, len(raw), mode)
    results = await run_in_threadpool(_analyze, raw, mass_kg, mode, options)
    results.setdefault("meta", {})
    results["meta"]["source"] = source
    return JSONResponse(content=to_json_safe(results))


@app.post("/api/analyze/json")
def analyze_json(req: AnalyzeRequest):
    options: dict = {"origin_lat": settings.origin_lat, "origin_lng": settings.origin_lng}
    options.update(req.options or {})
    results = _analyze(req.samples, req.mass_kg, req.mode, options)
    return JSONResponse(content=to_json_safe(results))


@app.get("/")
async def read_index():
    return JSONResponse({"status": "ok", "app": settings.app_name})


# Quiet Chrome/Edge DevTools probes (prevent 404 spam in logs)
@app.get("/.well-known/appspecific/com.chrome.devtools.json")
async def chrome_devtools_probe():
    return Response(status_code=204)


# Simple health check endpoint for local probes
@app.get("/health")
async def health():
    return JSONResponse({"status": "ok"})
