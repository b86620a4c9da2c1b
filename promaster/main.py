import logging
import math
import uuid
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from promaster.analysis import analyze_track
from promaster.audio import TrackFile
from promaster.batch import BatchOrchestrator, MasterResult, export_results
from promaster.chain import BassSettings, build_chain, intensity_multiplier
from promaster.config import Settings, get_settings
from promaster.errors import AnalysisError
from promaster.models import (
    AnalysisResponse,
    ChainResponse,
    MasteredFile,
    MasterResponse,
    PresetResponse,
    StageResponse,
)
from promaster.presets import list_presets


def log_level(name: str) -> int:
    """Numeric level for ``name``; unknown names fall back to INFO."""

    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


logging.basicConfig(level=log_level(get_settings().log_level))
logger = logging.getLogger("promaster")

app = FastAPI(title="Pro Master DSP Engine")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _finite(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def _bass_settings(impact: str, punch: str, weight: str, club_safe: bool, phone_safe: bool) -> BassSettings:
    try:
        return BassSettings(
            impact=impact,  # type: ignore[arg-type]
            punch=punch,  # type: ignore[arg-type]
            weight=weight,  # type: ignore[arg-type]
            club_safe=club_safe,
            phone_safe=phone_safe,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail={"error": "INVALID_BASS_SETTINGS", "message": str(exc)}) from exc


@app.get("/health")
async def health():
    """Static payload so monitors can check the service without rendering audio."""

    return {"status": "ok"}


@app.get("/presets", response_model=List[PresetResponse])
async def presets(family: Optional[str] = Query(default=None)):
    """Catalog of mastering presets, optionally filtered to ``advanced`` or ``legacy``."""

    normalized = family if family in {"advanced", "legacy"} else None
    return [PresetResponse(**asdict(p)) for p in list_presets(family=normalized)]  # type: ignore[arg-type]


@app.get("/presets/{preset}/chain", response_model=ChainResponse)
async def preview_chain(
    preset: str,
    intensity: int = Query(50),
    impact: str = Query("Heavy"),
    punch: str = Query("Tight"),
    weight: str = Query("Deep"),
    club_safe: bool = Query(True),
    phone_safe: bool = Query(True),
    humanize: bool = Query(True),
):
    """Show the stage list a master would run, without touching audio."""

    bass = _bass_settings(impact, punch, weight, club_safe, phone_safe)
    try:
        chain = build_chain(preset, intensity, bass, humanize=humanize)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail={"error": "INVALID_CHAIN", "message": str(exc)}) from exc

    stages = []
    for stage in chain.to_dicts():
        kind = stage.pop("type")
        stages.append(StageResponse(type=kind, params=stage))
    return ChainResponse(
        preset=preset,
        intensity=intensity,
        multiplier=intensity_multiplier(intensity),
        stages=stages,
    )


@app.post("/analyze", response_model=AnalysisResponse)
async def analyze(file: UploadFile = File(...), settings: Settings = Depends(get_settings)):
    """Quick diagnostic report for one uploaded track."""

    raw = await file.read()
    name = file.filename or "upload"
    try:
        report = await analyze_track(name, len(raw), delay=settings.analysis_delay)
    except AnalysisError as exc:
        raise HTTPException(status_code=400, detail={"error": exc.code, "message": str(exc)}) from exc
    finally:
        await file.close()

    return AnalysisResponse(
        file=name,
        lufs=report.lufs,
        true_peak=report.true_peak,
        dynamic_range=report.dynamic_range,
        clipping=report.clipping,
        bass_balance=report.bass_balance,
        stereo_width=report.stereo_width,
        ai_artifacts=report.ai_artifacts,
        issues=list(report.issues),
        fixes=list(report.fixes),
    )


@app.post("/master", response_model=MasterResponse)
async def master(
    files: List[UploadFile] = File(...),
    preset: str = Form("youtube_rap"),
    intensity: int = Form(50),
    impact: str = Form("Heavy"),
    punch: str = Form("Tight"),
    weight: str = Form("Deep"),
    club_safe: bool = Form(True),
    phone_safe: bool = Form(True),
    humanize: bool = Form(True),
    settings: Settings = Depends(get_settings),
):
    """Analyze and master every uploaded track, then export the successes as WAV.

    A track that fails is reported with its error code; the rest of the batch
    still completes.
    """

    bass = _bass_settings(impact, punch, weight, club_safe, phone_safe)
    try:
        build_chain(preset, intensity, bass, humanize=humanize)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail={"error": "INVALID_CHAIN", "message": str(exc)}) from exc

    tracks: List[TrackFile] = []
    for upload in files:
        raw = await upload.read()
        await upload.close()
        tracks.append(TrackFile.from_bytes(upload.filename or f"track_{len(tracks) + 1}", raw))

    def log_progress(index: int, total: int, percent: int, label: str) -> None:
        logger.debug("[%d/%d] %3d%% %s", index + 1, total, percent, label)

    orchestrator = BatchOrchestrator(settings=settings, humanize=humanize)
    try:
        results = await orchestrator.run(tracks, preset, intensity, bass, on_progress=log_progress)
    except Exception as exc:  # pragma: no cover - per-file errors never reach here
        logger.exception("[DSP] Batch failed: %s", exc)
        raise HTTPException(
            status_code=500, detail={"error": "DSP_PROCESSING_FAILED", "message": str(exc)}
        ) from exc

    out_dir = Path(settings.output_dir) / f"promaster_{uuid.uuid4().hex}"
    written = export_results(results, out_dir)

    entries: List[MasteredFile] = []
    for name, res in results.items():
        if isinstance(res, MasterResult):
            entries.append(
                MasteredFile(
                    file=name,
                    status="mastered",
                    output_file=str(written[name]),
                    processing_chain=res.report.processing_chain,
                    loudness_before=_finite(res.report.loudness_before),
                    loudness_after=_finite(res.report.loudness_after),
                    true_peak_after=_finite(res.report.true_peak_after),
                )
            )
        else:
            entries.append(MasteredFile(file=name, status="failed", error=res.code, message=str(res)))

    mastered = sum(1 for e in entries if e.status == "mastered")
    return MasterResponse(
        status="done",
        preset=preset,
        intensity=intensity,
        mastered=mastered,
        failed=len(entries) - mastered,
        files=entries,
    )
