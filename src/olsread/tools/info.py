#!/usr/bin/env python3
"""
Command-line summary of OLS capture files.

Decodes each file given on the command line and prints its sample count,
rate, channel layout and timing range::

    olsread-info capture.ols other.ols --json

The exit status is 1 when any file fails to decode; the decode error message
is written to stderr unchanged.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from ..config.runtime import load_config
from ..core.errors import DecodeError
from ..core.models import AcquisitionResult
from ..dataio.ols_loader import load_ols


def summarize(result: AcquisitionResult) -> dict[str, Any]:
    """Return a JSON-friendly description of ``result``."""
    timestamps = result.timestamps
    return {
        "samples": result.size,
        "sample_rate": result.sample_rate,
        "channels": result.channel_count,
        "enabled_mask": f"{result.unsigned_enabled_mask:#010x}",
        "enabled_channels": list(result.enabled_channels),
        "trigger_position": result.trigger_position if result.has_trigger_data else None,
        "absolute_length": result.absolute_length if result.absolute_length >= 0 else None,
        "first_timestamp": int(timestamps[0]) if result.size else None,
        "last_timestamp": int(timestamps[-1]) if result.size else None,
    }


def format_summary(path: Path, summary: dict[str, Any]) -> str:
    lines = [f"{path}:"]
    for key, value in summary.items():
        lines.append(f"  {key:<17} {'-' if value is None else value}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="olsread-info",
        description="Summarize OpenBench LogicSniffer (.ols) capture files.",
    )
    parser.add_argument("files", nargs="+", type=Path, help="capture files to decode")
    parser.add_argument("--config", type=Path, default=None, help="reader settings (YAML)")
    parser.add_argument("--json", action="store_true", help="emit one JSON object per file")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config)

    status = 0
    for path in args.files:
        try:
            result = load_ols(path, config=config)
        except (DecodeError, OSError) as exc:
            print(f"{path}: {exc}", file=sys.stderr)
            status = 1
            continue

        summary = summarize(result)
        if args.json:
            print(json.dumps({"file": str(path), **summary}))
        else:
            print(format_summary(path, summary))
    return status


if __name__ == "__main__":
    sys.exit(main())
