"""Command line front end.

Usage:
    imagetoolkit compress photo.jpg --target-kb 200 --output small.jpg
    imagetoolkit compress photo.jpg --analyze
    imagetoolkit compress photo.jpg --quality 70
    imagetoolkit analyze photo.jpg
"""

import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Column, Table

from .compression import (
    ContentAdvisor,
    ContentHint,
    FileSizeProbe,
    JpegFileEncoder,
    SmartCompressor,
)
from .compression.result import CompressionResult
from .config import load_config
from .errors import ImageToolkitError, OperationError
from .log import setup_logging
from .utils import format_file_size, validate_image_file

console = Console()


class RichProgress:
    """Progress observer drawing one bar step per attempt."""

    def __init__(self, progress: Progress, total: int):
        self.progress = progress
        self.task_id = progress.add_task("Compressing", total=total)

    def on_attempt(self, quality: int, attempt: int) -> None:
        self.progress.update(
            self.task_id,
            completed=attempt,
            description=f"Attempt {attempt}: quality {quality}",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imagetoolkit",
        description="Smart JPEG compression and image tools.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to imagetoolkit.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=Path, default=None, help="Write logs to this file")

    sub = parser.add_subparsers(dest="command", required=True)

    compress = sub.add_parser("compress", help="Compress an image")
    compress.add_argument("source", type=Path, help="Image to compress")
    compress.add_argument(
        "--target-kb", type=float, default=0,
        help="Target size in KB (0 = choose by strategy)",
    )
    compress.add_argument(
        "--quality", type=int, default=None,
        help="Compress once at this quality instead of searching",
    )
    compress.add_argument(
        "--analyze", action="store_true",
        help="Classify the image first and use the recommendation as a hint",
    )
    compress.add_argument("-o", "--output", type=Path, default=None, help="Where to copy the result")

    analyze = sub.add_parser("analyze", help="Classify an image and show the recommendation")
    analyze.add_argument("source", type=Path, help="Image to analyze")

    return parser


def _print_result(result: CompressionResult) -> None:
    table = Table(title="Compression result")
    table.add_column("Original", justify="right")
    table.add_column("Compressed", justify="right")
    table.add_column("Saved", justify="right")
    table.add_column("Quality", justify="right")
    table.add_column("Attempts", justify="right")
    table.add_column("Strategy")
    table.add_row(
        format_file_size(result.original_size_bytes),
        format_file_size(result.size_bytes),
        f"{result.compression_ratio * 100:.1f}%",
        str(result.quality),
        str(result.iterations),
        result.strategy.value,
    )
    console.print(table)
    console.print(result.message)


def _run_compress(args, config) -> int:
    if not validate_image_file(args.source):
        raise OperationError(f"Not a readable image: {args.source}")

    advisor = ContentAdvisor(config.advisor)
    compressor = SmartCompressor(JpegFileEncoder(), FileSizeProbe(), config.compressor)

    if args.quality is not None:
        result = compressor.compress_at_quality(args.source, args.quality)
    else:
        hint: Optional[ContentHint] = None
        if args.analyze:
            hint = ContentHint.from_analysis(advisor.analyze(args.source))
            if hint is not None:
                console.print(
                    f"[bold]{hint.image_type}[/bold]: {hint.strategy.value}, "
                    f"suggested quality {hint.suggested_quality}. {hint.reason}"
                )

        budget = config.compressor.iteration_budget(args.target_kb > 0)
        progress = Progress(
            TextColumn("{task.description}", table_column=Column(ratio=1)),
            BarColumn(bar_width=40, table_column=Column(ratio=2)),
            console=console,
            transient=True,
        )
        with progress:
            result = compressor.compress(
                args.source,
                args.target_kb,
                RichProgress(progress, budget),
                hint,
            )

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(result.image, args.output)
        console.print(f"Saved to {args.output}")
    else:
        console.print(f"Result: {result.image}")

    _print_result(result)
    return 0


def _run_analyze(args, config) -> int:
    analysis = ContentAdvisor(config.advisor).analyze(args.source)
    recommendation = analysis['recommendation']

    table = Table(title=f"Analysis of {args.source.name}")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Success", str(analysis['success']))
    table.add_row("Type", str(analysis.get('image_type')))
    table.add_row("Strategy", recommendation['strategy'])
    table.add_row("Quality", str(recommendation['suggested_quality']))
    table.add_row("Reason", recommendation['reason'])
    if recommendation.get('tips'):
        table.add_row("Tips", recommendation['tips'])
    console.print(table)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    try:
        config = load_config(args.config)
        if args.command == "compress":
            return _run_compress(args, config)
        return _run_analyze(args, config)
    except (ImageToolkitError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
