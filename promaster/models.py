"""Pydantic response models for the HTTP service."""

from typing import Dict, List, Optional

from pydantic import BaseModel


class PresetResponse(BaseModel):
    key: str
    name: str
    family: str
    description: str
    humanize: bool


class StageResponse(BaseModel):
    type: str
    params: Dict[str, float]


class ChainResponse(BaseModel):
    preset: str
    intensity: int
    multiplier: float
    stages: List[StageResponse]


class AnalysisResponse(BaseModel):
    file: str
    lufs: float
    true_peak: float
    dynamic_range: float
    clipping: bool
    bass_balance: str
    stereo_width: str
    ai_artifacts: bool
    issues: List[str]
    fixes: List[str]


class MasteredFile(BaseModel):
    file: str
    status: str
    output_file: Optional[str] = None
    processing_chain: List[str] = []
    loudness_before: Optional[float] = None
    loudness_after: Optional[float] = None
    true_peak_after: Optional[float] = None
    error: Optional[str] = None
    message: Optional[str] = None


class MasterResponse(BaseModel):
    status: str
    preset: str
    intensity: int
    mastered: int
    failed: int
    files: List[MasteredFile]
