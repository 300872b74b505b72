"""
Command line interface for SlideReel.

Examples:
  slidereel renderers                          # Show renderer availability
  slidereel render deck.pptx --outdir out/     # Render slides to PNG files
  slidereel preflight snapshot.json            # Readiness verdict for a snapshot
  slidereel providers                          # Show video provider configuration
  slidereel job-status avatar <job_id>         # Poll one provider job
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from functools import lru_cache
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from slidereel.configs.config import config
from slidereel.configs.logging_config import setup_logging
from slidereel.errors import SlideReelError
from slidereel.preflight.models import (
    CheckStatus,
    PreflightCheckRequest,
    PreflightCheckResponse,
    PreflightStatus,
)
from slidereel.preflight.service import PreflightCheckService
from slidereel.rendering.selector import build_default_selector
from slidereel.rendering.service import SlideRenderingService
from slidereel.repository.memory import InMemoryRepository
from slidereel.video.models import VideoProviderType
from slidereel.video.registry import build_default_registry

EXIT_CODES = {
    PreflightStatus.READY: 0,
    PreflightStatus.HAS_WARNINGS: 0,
    PreflightStatus.INCOMPLETE: 1,
    PreflightStatus.ERROR: 2,
}

STATUS_STYLES = {
    CheckStatus.PASSED: "bold green",
    CheckStatus.WARNING: "yellow",
    CheckStatus.IN_PROGRESS: "cyan",
    CheckStatus.FAILED: "bold red",
    CheckStatus.NOT_FOUND: "red",
    CheckStatus.NOT_APPLICABLE: "dim",
    CheckStatus.CHECKING: "cyan",
}

VERDICT_STYLES = {
    PreflightStatus.READY: "bold green",
    PreflightStatus.HAS_WARNINGS: "bold yellow",
    PreflightStatus.INCOMPLETE: "bold red",
    PreflightStatus.ERROR: "bold magenta",
    PreflightStatus.CHECKING: "cyan",
}


@lru_cache(maxsize=1)
def get_console() -> Console:
    """Return a shared stdout console instance."""
    return Console()


@lru_cache(maxsize=1)
def get_err_console() -> Console:
    """Return a shared stderr console instance."""
    return Console(stderr=True)


def status_label(label: str, style: str) -> Text:
    """Create a styled status label wrapped in brackets."""
    text = Text(f"[{label}]")
    text.stylize(style)
    return text


def cmd_renderers(args: argparse.Namespace) -> int:
    selector = build_default_selector()
    table = Table(title="Slide renderers")
    table.add_column("Renderer")
    table.add_column("Available")
    table.add_column("Default")
    for name, available in selector.available_renderers().items():
        table.add_row(
            name,
            status_label("yes", "green") if available else status_label("no", "red"),
            "*" if name == selector.default else "",
        )
    get_console().print(table)
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    deck = Path(args.deck)
    if not deck.exists():
        get_err_console().print(f"Deck not found: {deck}")
        return 2

    priority = (
        [name.strip() for name in args.priority.split(",") if name.strip()]
        if args.priority
        else None
    )
    service = SlideRenderingService()
    try:
        result = service.render_presentation(
            deck.read_bytes(),
            deck.name,
            priority_list=priority,
            width=args.width,
            height=args.height,
        )
    except SlideReelError as e:
        get_err_console().print(status_label("failed", "bold red"), e.reason)
        return 1

    outdir = Path(args.outdir) if args.outdir else config.output_dir / deck.stem
    paths = result.save_all(outdir)
    console = get_console()
    console.print(
        status_label("ok", "bold green"),
        f"Rendered {len(paths)} slides with {result.renderer} into {outdir}",
    )
    if result.failed_renderers:
        console.print(f"Skipped after failure: {', '.join(result.failed_renderers)}")
    metrics = result.metrics
    console.print(
        f"Average {metrics.average_render_time_ms:.0f} ms per slide, "
        f"success rate {metrics.success_rate:.0f}%"
    )
    return 0


def _print_preflight(response: PreflightCheckResponse) -> None:
    console = get_console()
    table = Table(title=f"Preflight: {response.presentation_id}")
    for column in ("#", "Title", "Narrative", "Enhanced", "Audio", "Avatar", "Issues"):
        table.add_column(column)
    for result in response.slide_results:
        table.add_row(
            str(result.slide_number),
            result.slide_title or "-",
            *(
                status_label(status.value, STATUS_STYLES[status])
                for status in result.aspect_statuses()
            ),
            "; ".join(result.issues) or "-",
        )
    console.print(table)

    summary = response.summary
    console.print(
        f"Slides ready: {summary.slides_ready}/{summary.total_slides}  "
        f"missing narrative: {summary.slides_missing_narrative}  "
        f"missing audio: {summary.slides_missing_audio}  "
        f"missing video: {summary.slides_missing_video}  "
        f"unpublished: {summary.slides_with_unpublished_assets}  "
        f"in progress: {summary.slides_in_progress}"
    )
    intro = summary.intro_video_status
    console.print("Intro video:", status_label(intro.value, STATUS_STYLES[intro]))
    console.print(
        "Overall:",
        status_label(
            response.overall_status.value, VERDICT_STYLES[response.overall_status]
        ),
    )
    if response.error_message:
        console.print(f"Error: {response.error_message}")


def cmd_preflight(args: argparse.Namespace) -> int:
    snapshot = Path(args.snapshot)
    try:
        repository, presentation_id = InMemoryRepository.load_snapshot(snapshot)
    except (OSError, ValueError, KeyError) as e:
        get_err_console().print(f"Could not load snapshot {snapshot}: {e}")
        return EXIT_CODES[PreflightStatus.ERROR]

    service = PreflightCheckService(repository)
    response = service.run_check(
        presentation_id,
        PreflightCheckRequest(
            check_enhanced_narrative=args.enhanced,
            check_intro_video=not args.no_intro,
        ),
    )
    if args.json:
        get_console().print_json(response.model_dump_json())
    else:
        _print_preflight(response)
    return EXIT_CODES.get(response.overall_status, 2)


def cmd_providers(args: argparse.Namespace) -> int:
    registry = build_default_registry()
    table = Table(title="Video providers")
    table.add_column("Type")
    table.add_column("Provider")
    table.add_column("Max duration (s)")
    table.add_column("Formats")
    for provider_type in VideoProviderType:
        provider = registry.find(provider_type)
        if provider is None:
            table.add_row(provider_type.name, status_label("not configured", "dim"))
            continue
        name = provider.provider_name
        if provider_type is registry.default_type:
            name = f"{name} (default)"
        table.add_row(
            provider_type.name,
            name,
            str(provider.max_render_duration),
            ", ".join(provider.supported_formats),
        )
    get_console().print(table)
    return 0


async def _job_status(provider_type: VideoProviderType, job_id: str) -> int:
    registry = build_default_registry()
    try:
        provider = registry.get(provider_type)
        report = await provider.get_status(job_id)
    except SlideReelError as e:
        get_err_console().print(status_label("failed", "bold red"), e.reason)
        return 1
    finally:
        await registry.aclose()
    get_console().print_json(report.model_dump_json())
    return 0


def cmd_job_status(args: argparse.Namespace) -> int:
    try:
        provider_type = VideoProviderType.parse(args.provider)
    except ValueError as e:
        get_err_console().print(str(e))
        return 2
    return asyncio.run(_job_status(provider_type, args.job_id))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slidereel",
        description="SlideReel rendering, generation and preflight tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    renderers = subparsers.add_parser("renderers", help="Show renderer availability")
    renderers.set_defaults(func=cmd_renderers)

    render = subparsers.add_parser("render", help="Render a deck to PNG files")
    render.add_argument("deck", help="Path to the .pptx deck")
    render.add_argument(
        "--outdir", help="Output directory (default: OUTPUT_DIR/<deck>)"
    )
    render.add_argument("--priority", help="Comma-separated renderer priority list")
    render.add_argument("--width", type=int, default=None)
    render.add_argument("--height", type=int, default=None)
    render.set_defaults(func=cmd_render)

    preflight = subparsers.add_parser(
        "preflight", help="Check readiness of a presentation snapshot"
    )
    preflight.add_argument("snapshot", help="Path to the JSON snapshot")
    preflight.add_argument(
        "--no-intro", action="store_true", help="Skip the intro video check"
    )
    preflight.add_argument(
        "--enhanced", action="store_true", help="Check enhanced narratives"
    )
    preflight.add_argument("--json", action="store_true", help="Print raw JSON")
    preflight.set_defaults(func=cmd_preflight)

    providers = subparsers.add_parser("providers", help="Show video providers")
    providers.set_defaults(func=cmd_providers)

    job_status = subparsers.add_parser("job-status", help="Poll one provider job")
    job_status.add_argument("provider", help="composer, avatar or generative")
    job_status.add_argument("job_id")
    job_status.set_defaults(func=cmd_job_status)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    setup_logging(
        args.log_level or config.log_level,
        enable_file_logging=bool(config.log_file),
        log_file=config.log_file,
        component="cli",
    )
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
