#!/usr/bin/env python3
"""
demo_cli.py — Standalone command-line replay
=============================================
Replays a recorded JSON file of samples through the batcher and the
stress engine WITHOUT any server, printing one line per chunk.

Usage:
    python demo_cli.py --input recording.json --sampling-hz 130 --chunk-size 300

The input is a JSON array of sample objects in the phone app's format:
    [{"Device": "Polar Sense", "uuid": "…", "HR": 72, "PPG": 1834.0,
      "ibiMsList": [812, 798]}, …]

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool — NOT a medical device.
"""

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from engine.schemas import Sample
from engine.stress_engine import validate_sampling_hz
from session.batcher import ChunkBatcher
from session.live_bus import LiveBus
from session.manager import SessionManager
from config import DEFAULT_BASELINE_FREQUENCY_HZ, DEFAULT_PPG_SAMPLING_HZ, MAX_BATCH
from utils.logger import get_logger, set_level

logger = get_logger("demo_cli")


def pretty_print(label: str, value, unit: str = "") -> None:
    """Colourised terminal output."""
    print(f"  \033[1;36m{label:<28}\033[0m \033[1;33m{value}\033[0m {unit}")


def _fmt(value, digits: int = 1) -> str:
    return "—" if value is None else f"{value:.{digits}f}"


def load_samples(path: str, strict: bool = False) -> list[Sample]:
    """Read and validate a JSON array of samples."""
    with open(path, encoding="utf-8") as fh:
        records = json.load(fh)
    if not isinstance(records, list):
        raise ValueError("Expected a JSON array of samples.")
    return Sample.parse_many(records, strict=strict)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="HRV Stress Engine — replay demo")
    parser.add_argument("--input", required=True, help="JSON file with an array of samples")
    parser.add_argument("--sampling-hz", type=int, default=DEFAULT_PPG_SAMPLING_HZ,
                        help="PPG sampling rate (Hz)")
    parser.add_argument("--freq-hz", type=int, default=DEFAULT_BASELINE_FREQUENCY_HZ,
                        help="Baseline frequency; baseline rows = 600 / freq")
    parser.add_argument("--chunk-size", type=int, default=MAX_BATCH, help="Samples per chunk")
    parser.add_argument("--strict", action="store_true", help="Fail on the first invalid sample")
    parser.add_argument("--verbose", action="store_true", help="Log per-chunk engine details")
    args = parser.parse_args(argv)

    if args.verbose:
        set_level(logging.DEBUG)

    try:
        samples = load_samples(args.input, strict=args.strict)
    except (OSError, ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        print(f"ERROR: {e}")
        return 1

    if not samples:
        print("ERROR: No valid samples in input.")
        return 1

    bus = LiveBus()
    try:
        validate_sampling_hz(args.sampling_hz)
        manager = SessionManager(sink=bus, freq_hz=args.freq_hz)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    print("\n" + "=" * 60)
    print("  HRV STRESS ENGINE — REPLAY")
    print("=" * 60)
    print("  ⚠️  This is a WELLNESS ESTIMATION tool — NOT medical grade.")
    print("=" * 60 + "\n")

    # Replay: time is meaningless here, so chunk purely by count
    batcher = ChunkBatcher(flush_every_s=float("inf"), max_batch=args.chunk_size)
    started: dict[str, tuple[str, str]] = {}
    warnings = 0
    chunks = 0

    def _run(chunk: list[Sample]) -> None:
        nonlocal warnings, chunks
        key = chunk[0].session_key
        if key not in started:
            manager.start_session(chunk[0].device, chunk[0].session_id)
            started[key] = (chunk[0].device, chunk[0].session_id)
        result = manager.submit(chunk, sampling_hz=args.sampling_hz)
        chunks += 1
        warnings += result.is_warning
        print(
            f"  #{chunks:<4} {key:<40} HR={_fmt(result.hr_mean):>6}  "
            f"RMSSD={_fmt(result.rmssd):>6}  pNN50={_fmt(result.pnn50):>5}  "
            f"{result.status_basic:<14} {result.status_sliding:<16} "
            f"ML={_fmt(result.ml_score, 3)} ({result.ml_label or '—'})"
        )

    current_key = None
    for sample in samples:
        # A session change closes the running chunk
        if current_key is not None and sample.session_key != current_key:
            pending = batcher.flush()
            if pending:
                _run(pending)
        current_key = sample.session_key
        chunk = batcher.add(sample, now=0.0)
        if chunk:
            _run(chunk)

    pending = batcher.flush()
    if pending:
        _run(pending)

    print("\n" + "=" * 60)
    print("  SUMMARY")
    print("=" * 60)
    pretty_print("Samples", len(samples))
    pretty_print("Chunks", chunks)
    pretty_print("Stress warnings", warnings)
    for key, (device, session_id) in sorted(started.items()):
        info = manager.info(device, session_id)
        pretty_print(f"{key[:26]}", f"{info.total_count} points, baseline "
                     f"{info.baseline_size}/{info.baseline_rows}, model {info.model_version}")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
