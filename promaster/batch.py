"""Batch orchestration: analyze, then master, a queue of tracks.

Files are handled strictly one at a time in input order. A failure on one
file is recorded against its name and the batch moves on, so a batch
always finishes in the ``done`` state.

``BatchOrchestrator`` is the only writer of ``BatchState``; observers get
``BatchSnapshot`` copies through ``state`` or the progress sink tuples.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from promaster.analysis import AudioAnalysis, analyze_track
from promaster.audio import AudioBuffer, TrackFile, decode, encode, master_filename
from promaster.chain import BassSettings, build_chain
from promaster.config import Settings, get_settings
from promaster.dsp_engine.loudness import LoudnessStats, measure_buffer
from promaster.dsp_engine.render import RenderEngine
from promaster.errors import AnalysisError, DecodeError, MasteringError, RenderError
from promaster.progress import ProgressEstimator

logger = logging.getLogger(__name__)

BatchStatus = Literal["idle", "analyzing", "ready", "processing", "done"]
ProgressSink = Callable[[int, int, int, str], None]

INITIAL_LABEL = "Initializing..."


@dataclass(frozen=True)
class MasteringReport:
    track_name: str
    preset: str
    intensity: int
    processing_chain: List[str]
    loudness_before: float
    loudness_after: float
    true_peak_after: float
    bass: BassSettings


@dataclass(frozen=True)
class MasterResult:
    name: str
    original: AudioBuffer
    processed: AudioBuffer
    wav: bytes
    report: MasteringReport

    @property
    def download_name(self) -> str:
        return master_filename(self.name)


@dataclass(frozen=True)
class FileOutcome:
    analysis: Optional[AudioAnalysis] = None
    analysis_error: Optional[AnalysisError] = None
    result: Optional[MasterResult] = None
    error: Optional[MasteringError] = None

    @property
    def ok(self) -> bool:
        return self.result is not None and self.error is None


@dataclass(frozen=True)
class BatchSnapshot:
    status: BatchStatus
    files: Mapping[str, FileOutcome]
    current_index: int
    total: int
    current_file_progress_percent: int
    current_stage_label: str

    @property
    def overall_progress_percent(self) -> float:
        if self.total == 0:
            return 0.0
        return 100.0 * self.current_index / self.total


@dataclass
class BatchState:
    status: BatchStatus = "idle"
    files: Dict[str, FileOutcome] = field(default_factory=dict)
    current_index: int = 0
    total: int = 0
    current_file_progress_percent: int = 0
    current_stage_label: str = ""

    def snapshot(self) -> BatchSnapshot:
        return BatchSnapshot(
            status=self.status,
            files=MappingProxyType(dict(self.files)),
            current_index=self.current_index,
            total=self.total,
            current_file_progress_percent=self.current_file_progress_percent,
            current_stage_label=self.current_stage_label,
        )

    def update_file(self, name: str, **changes) -> None:
        self.files[name] = replace(self.files.get(name, FileOutcome()), **changes)


def _read_and_decode(file: TrackFile, decoder: Callable[[bytes], AudioBuffer]) -> AudioBuffer:
    try:
        raw = file.read()
    except OSError as exc:
        raise DecodeError(f"Could not read {file.name}: {exc}") from exc
    return decoder(raw)


def _encode_and_measure(
    original: AudioBuffer,
    processed: AudioBuffer,
    encoder: Callable[[AudioBuffer], bytes],
) -> Tuple[bytes, LoudnessStats, LoudnessStats]:
    wav = encoder(processed)
    before = measure_buffer(original)
    after = measure_buffer(processed)
    return wav, before, after


class BatchOrchestrator:
    def __init__(
        self,
        engine: Optional[RenderEngine] = None,
        decoder: Callable[[bytes], AudioBuffer] = decode,
        encoder: Callable[[AudioBuffer], bytes] = encode,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        humanize: bool = True,
    ) -> None:
        self.settings = settings or get_settings()
        self.engine = engine or RenderEngine(
            ProgressEstimator(interval=self.settings.progress_interval, cap=self.settings.progress_cap)
        )
        self.decoder = decoder
        self.encoder = encoder
        self.rng = rng or random.Random()
        self.humanize = humanize
        self._state = BatchState()

    @property
    def state(self) -> BatchSnapshot:
        return self._state.snapshot()

    def reset(self) -> None:
        """Start a new session: forget every analysis and result."""
        self._state = BatchState()

    async def analyze(self, files: Sequence[TrackFile]) -> Dict[str, Union[AudioAnalysis, AnalysisError]]:
        state = self._state
        state.status = "analyzing"
        state.total = len(files)

        out: Dict[str, Union[AudioAnalysis, AnalysisError]] = {}
        for file in files:
            try:
                analysis = await analyze_track(
                    file.name, file.size, rng=self.rng, delay=self.settings.analysis_delay
                )
            except AnalysisError as exc:
                logger.warning("Analysis failed for %s: %s", file.name, exc)
                state.update_file(file.name, analysis_error=exc)
                out[file.name] = exc
                continue
            state.update_file(file.name, analysis=analysis)
            out[file.name] = analysis

        state.status = "ready"
        return out

    async def process(
        self,
        files: Sequence[TrackFile],
        preset: str,
        intensity: int,
        bass: BassSettings,
        on_progress: Optional[ProgressSink] = None,
    ) -> Dict[str, Union[MasterResult, MasteringError]]:
        # invalid preset / intensity is a caller error, not a per-file failure
        build_chain(preset, intensity, bass, humanize=self.humanize)

        state = self._state
        state.status = "processing"
        state.total = len(files)
        state.current_index = 0
        total = len(files)
        logger.info("Mastering %d file(s) with preset=%s intensity=%d", total, preset, intensity)

        out: Dict[str, Union[MasterResult, MasteringError]] = {}
        for i, file in enumerate(files):
            state.current_index = i

            def on_tick(percent: int, label: str, _i: int = i) -> None:
                state.current_file_progress_percent = percent
                state.current_stage_label = label
                if on_progress is None:
                    return
                try:
                    on_progress(_i, total, percent, label)
                except Exception:
                    logger.exception("Progress sink failed at %d%% (%s)", percent, label)

            on_tick(0, INITIAL_LABEL)
            try:
                result = await self._master_one(file, preset, intensity, bass, on_tick)
            except MasteringError as exc:
                logger.exception("Mastering failed for %s", file.name)
                state.update_file(file.name, error=exc)
                out[file.name] = exc
            except Exception as exc:
                logger.exception("Unexpected failure mastering %s", file.name)
                err = RenderError(f"{type(exc).__name__}: {exc}")
                err.__cause__ = exc
                state.update_file(file.name, error=err)
                out[file.name] = err
            else:
                state.update_file(file.name, result=result, error=None)
                out[file.name] = result

        state.current_index = total
        state.status = "done"
        ok = sum(1 for r in out.values() if isinstance(r, MasterResult))
        logger.info("Batch done: %d/%d mastered", ok, total)
        return out

    async def run(
        self,
        files: Sequence[TrackFile],
        preset: str,
        intensity: int,
        bass: BassSettings,
        on_progress: Optional[ProgressSink] = None,
    ) -> Dict[str, Union[MasterResult, MasteringError]]:
        """Analyze every file, then master every file, in input order."""
        build_chain(preset, intensity, bass, humanize=self.humanize)
        await self.analyze(files)
        return await self.process(files, preset, intensity, bass, on_progress)

    async def _master_one(
        self,
        file: TrackFile,
        preset: str,
        intensity: int,
        bass: BassSettings,
        on_tick: Callable[[int, str], None],
    ) -> MasterResult:
        chain = build_chain(preset, intensity, bass, humanize=self.humanize)
        original = await asyncio.to_thread(_read_and_decode, file, self.decoder)
        processed = await self.engine.render(original, chain, on_tick)
        wav, before, after = await asyncio.to_thread(_encode_and_measure, original, processed, self.encoder)

        report = MasteringReport(
            track_name=file.name,
            preset=preset,
            intensity=intensity,
            processing_chain=chain.names(),
            loudness_before=before.integrated_lufs,
            loudness_after=after.integrated_lufs,
            true_peak_after=after.true_peak_dbfs,
            bass=bass,
        )
        return MasterResult(name=file.name, original=original, processed=processed, wav=wav, report=report)

    def results(self) -> Dict[str, MasterResult]:
        """Successful results only; failed files are left out."""
        return {name: o.result for name, o in self._state.files.items() if o.ok and o.result is not None}


def export_results(results: Mapping[str, Union[MasterResult, MasteringError]], out_dir: str | Path) -> Dict[str, Path]:
    """Write every successful master as ``<stem>_Master.wav``; skip failures.

    Names that collide within one export (``beat.mp3`` and ``beat.wav``)
    get a numeric suffix: ``beat_Master_2.wav``.
    """

    target = Path(out_dir)
    target.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}
    used: set = set()
    for name, res in results.items():
        if not isinstance(res, MasterResult):
            continue
        filename = res.download_name
        n = 1
        while filename in used:
            n += 1
            filename = f"{Path(res.download_name).stem}_{n}.wav"
        used.add(filename)
        path = target / filename
        path.write_bytes(res.wav)
        written[name] = path
    return written
