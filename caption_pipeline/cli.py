"""Command-line interface for the caption pipeline.

WHY: Operators need to caption a single video from the terminal, to
backfill older uploads or to check a video that failed in production,
without going through the portal.

HOW: Uses argparse to accept a video path, language, output directory and
deadline. Runs generate_captions() via asyncio.run(). Status messages go
to stderr; with --json the result mapping is printed to stdout.

RULES:
- Positional argument: input video path
- Output files land next to the video unless --output-dir is given
- Status output goes to stderr (not stdout)
- Exit code 1 on pipeline or configuration errors, 130 on Ctrl-C
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from caption_pipeline.config import DEFAULT_LANGUAGE_CODE, SUPPORTED_VIDEO_FORMATS, PipelineConfig
from caption_pipeline.core.ir import CaptionOutput
from caption_pipeline.core.pipeline import (
    derive_output_paths,
    generate_captions,
    output_dir_resolver,
)
from caption_pipeline.errors import CaptionError


def _status(msg: str) -> None:
    """Print a status message to stderr.

    RULES:
    - All status messages go to stderr
    - Always flush after writing
    """
    print(msg, file=sys.stderr, flush=True)


async def _run_pipeline(args: argparse.Namespace) -> CaptionOutput:
    """Build the config from arguments and run one pipeline."""
    video_path = Path(args.input_file).resolve()

    if args.output_dir:
        output_dir = Path(args.output_dir).resolve()
        if not output_dir.is_dir():
            raise ValueError("Output directory does not exist: {}".format(output_dir))
        resolver = output_dir_resolver(output_dir)
    else:
        resolver = derive_output_paths

    config = PipelineConfig.from_env(
        language_code=args.language,
        transcription_timeout_s=args.timeout,
    )

    return await generate_captions(
        video_path,
        config,
        path_resolver=resolver,
        on_status=_status,
    )


def _positive_seconds(raw: str) -> float:
    """argparse type for --timeout: a number of seconds greater than zero."""
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError("not a number: {!r}".format(raw)) from None
    if value <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0, got {:g}".format(value))
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Positional: input_file (required)
    - Optional: --language, --output-dir, --timeout, --json, --verbose
    """
    parser = argparse.ArgumentParser(
        prog="caption_pipeline",
        description="Generate SRT and WebVTT captions for a video "
                    "(supported: {}).".format(", ".join(sorted(SUPPORTED_VIDEO_FORMATS))),
    )

    parser.add_argument(
        "input_file",
        help="Path to the video file to caption.",
    )

    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE_CODE,
        help="Spoken language ISO 639-1 code (default: %(default)s).",
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for the caption files (default: next to the video).",
    )

    parser.add_argument(
        "--timeout",
        type=_positive_seconds,
        default=None,
        help="Give up on transcription after this many seconds.",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON on stdout.",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        result = asyncio.run(_run_pipeline(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except CaptionError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        # Config errors (missing API key, bad output dir, etc.)
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    _status("")
    _status("Done! Confidence {:.2f}%, {} words".format(result.confidence * 100, result.word_count))
    _status("  {}".format(result.srt_path))
    _status("  {}".format(result.vtt_path))
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
