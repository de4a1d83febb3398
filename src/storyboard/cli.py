"""CLI entry point for the storyboard maker."""

import asyncio
import logging
import signal
import typer
from pathlib import Path
from typing import Callable, List, Optional

from . import __version__
from .config import config
from .models import Scene, SceneStatus, Storyboard

app = typer.Typer(
    name="storyboard",
    help="AI storyboard generator: script in, illustrated scenes out",
    no_args_is_help=True
)

STATUS_ICONS = {
    SceneStatus.IDLE: "⏳",
    SceneStatus.PENDING: "⏳",
    SceneStatus.GENERATING: "🎨",
    SceneStatus.RETRYING: "🔁",
    SceneStatus.SUCCESS: "✅",
    SceneStatus.ERROR: "❌",
}

DEFAULT_STORYBOARD = "storyboard.yaml"
DEFAULT_IMAGES = "images"
DEFAULT_ARCHIVE = "storyboard.zip"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"storyboard version {__version__}")
        raise typer.Exit()


def _in_workspace(path: Optional[Path], default: str) -> Path:
    """Return the given path, or the default file name inside the workspace."""
    return path if path is not None else config.workspace / default


def _storyboard_option() -> Optional[Path]:
    return typer.Option(
        None,
        "--storyboard",
        "-s",
        help=f"Path to storyboard YAML file (default: $STORYBOARD_WORKSPACE/{DEFAULT_STORYBOARD})",
        file_okay=True,
        dir_okay=False
    )


def _load_storyboard(path: Path) -> Storyboard:
    if not path.exists():
        typer.echo(f"❌ No storyboard found at {path}")
        typer.echo("   Run 'storyboard analyze SCRIPT' to create one")
        raise typer.Exit(1)
    try:
        return Storyboard.from_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error loading storyboard: {e}")
        raise typer.Exit(1)


def _preview(text: str, width: int = 60) -> str:
    text = " ".join(text.split())
    return text[:width] + "..." if len(text) > width else text


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Storyboard Maker - Turn a script into illustrated scenes using AI."""
    pass


@app.command()
def analyze(
    script_file: Path = typer.Argument(
        ...,
        help="Script text file to analyze",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help=f"Output storyboard file path (default: $STORYBOARD_WORKSPACE/{DEFAULT_STORYBOARD})"
    ),
    title: Optional[str] = typer.Option(
        None,
        "--title",
        "-t",
        help="Storyboard title (defaults to the script file name)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Split a script into granular scenes using AI.

    Replaces any existing storyboard at the output path.
    """
    from .agents import ScriptAgent

    output = _in_workspace(output, DEFAULT_STORYBOARD)
    setup_logging(verbose)
    script = script_file.read_text(encoding="utf-8")
    if not script.strip():
        typer.echo("⚠️  Script file is empty")
        raise typer.Exit(1)

    typer.echo(f"🎬 Analyzing script: {script_file} ({len(script)} chars)")

    try:
        config.validate_required()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    try:
        agent = ScriptAgent()
        typer.echo(f"   Using model: {agent.model}")
        scenes = asyncio.run(agent.analyze(script, max_scenes=config.max_scenes))
    except Exception as e:
        typer.echo(f"❌ Analysis failed: {e}")
        raise typer.Exit(1)

    storyboard = Storyboard(
        title=title or script_file.stem,
        script_file=str(script_file),
        scenes=scenes,
    )

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        storyboard.to_yaml(output)
    except Exception as e:
        typer.echo(f"❌ Error saving storyboard: {e}")
        raise typer.Exit(1)

    typer.echo(f"\n✅ Analysis complete: {len(scenes)} scenes saved to {output}")
    with_character = sum(1 for scene in scenes if scene.main_character_visible)
    typer.echo(f"   Main character in {with_character} scene(s)")


@app.command()
def status(
    storyboard_path: Optional[Path] = _storyboard_option(),
) -> None:
    """Show storyboard progress."""
    storyboard_path = _in_workspace(storyboard_path, DEFAULT_STORYBOARD)
    storyboard = _load_storyboard(storyboard_path)
    stats = storyboard.stats()

    typer.echo(f"📁 Storyboard: {storyboard.title}")
    typer.echo(f"   Scenes: {stats.total}")
    typer.echo(f"   Done: {stats.success}  Failed: {stats.error}  Pending: {stats.pending}")
    if storyboard.selected_ids:
        typer.echo(f"   Selected: {len(storyboard.selected_ids)} scene(s)")

    typer.echo("\n📽️  Scenes:")
    selected = set(storyboard.selected_ids)
    for scene in storyboard.scenes:
        icon = STATUS_ICONS[scene.status]
        mark = "*" if scene.id in selected else " "
        typer.echo(f"  {mark}{icon} #{scene.id}: {_preview(scene.english_prompt)}")
        if scene.error_msg:
            typer.echo(f"      → {scene.error_msg}")


@app.command()
def select(
    ids: Optional[List[int]] = typer.Argument(
        None,
        help="Scene ids to add to the selection"
    ),
    all_scenes: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Select every scene"
    ),
    clear: bool = typer.Option(
        False,
        "--clear",
        "-c",
        help="Clear the selection (generation falls back to pending/failed scenes)"
    ),
    remove: Optional[List[int]] = typer.Option(
        None,
        "--remove",
        "-r",
        help="Scene id to remove from the selection (repeatable)"
    ),
    storyboard_path: Optional[Path] = _storyboard_option(),
) -> None:
    """Manage the explicit scene selection used by 'generate'."""
    storyboard_path = _in_workspace(storyboard_path, DEFAULT_STORYBOARD)
    storyboard = _load_storyboard(storyboard_path)

    try:
        if clear:
            storyboard.clear_selection()
        if all_scenes:
            storyboard.select_all()
        if ids:
            storyboard.select(ids)
        if remove:
            storyboard.deselect(remove)
    except ValueError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    storyboard.to_yaml(storyboard_path)

    if storyboard.selected_ids:
        typer.echo(f"✅ {len(storyboard.selected_ids)} scene(s) selected: {storyboard.selected_ids}")
    else:
        typer.echo("✅ Selection cleared")


def _interrupt_handler(processor, task: asyncio.Task) -> Callable[[], None]:
    """First Ctrl-C pauses after the current scene; the second aborts now."""
    def handle() -> None:
        if processor.stop_requested or not processor.is_running:
            typer.echo("\n⛔ Aborting the current scene...")
            task.cancel()
        else:
            typer.echo("\n⏸️  Pausing after the current scene (Ctrl-C again to abort now)")
            processor.request_stop()

    return handle


async def _run_batch(processor, scene_id: Optional[int], retry: bool):
    """Run one batch with Ctrl-C mapped to a cooperative stop."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(
            signal.SIGINT, _interrupt_handler(processor, asyncio.current_task())
        )
        handles_sigint = True
    except (NotImplementedError, RuntimeError):
        handles_sigint = False

    try:
        if scene_id is not None:
            return await processor.retry_one(scene_id)
        if retry:
            return await processor.retry_failed()
        return await processor.start_generation()
    finally:
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)


def _generate(
    storyboard_path: Optional[Path],
    images: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    scene_id: Optional[int] = None,
    retry: bool = False,
) -> None:
    from .logs import LogBuffer
    from .processor import QueueProcessor
    from .rate_limit import RateLimiter
    from .services import ProviderChain, build_providers
    from .storage import ImageStore

    storyboard_path = _in_workspace(storyboard_path, DEFAULT_STORYBOARD)
    images = _in_workspace(images, DEFAULT_IMAGES)
    setup_logging(verbose)
    storyboard = _load_storyboard(storyboard_path)

    try:
        config.validate_generation_required()
        chain = ProviderChain(
            build_providers(config.image_providers),
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay,
            retry_signals=config.retry_signals,
        )
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    def on_update(scene: Scene) -> None:
        # Save after every change so an interrupted run can resume
        storyboard.to_yaml(storyboard_path)
        if scene.status in (SceneStatus.SUCCESS, SceneStatus.ERROR):
            icon = STATUS_ICONS[scene.status]
            detail = scene.image_url if scene.status == SceneStatus.SUCCESS else scene.error_msg
            typer.echo(f"   {icon} #{scene.id}: {detail}")

    processor = QueueProcessor(
        storyboard,
        chain,
        api_key=config.gemini_api_key,
        rate_limiter=RateLimiter(config.rate_limit_delay),
        store=ImageStore(images),
        on_update=on_update,
    )

    buffer = LogBuffer()
    logging.getLogger().addHandler(buffer)

    typer.echo(f"🎨 Generating images for {storyboard.title}")
    typer.echo(f"   Providers: {' → '.join(config.image_providers)}")
    typer.echo(f"   Pause between scenes: {config.rate_limit_delay:.0f}s (Ctrl-C to pause)")

    try:
        result = asyncio.run(_run_batch(processor, scene_id, retry))
    except KeyError as e:
        typer.echo(f"❌ {e.args[0] if e.args else e}")
        raise typer.Exit(1)
    except asyncio.CancelledError:
        storyboard.recover_interrupted()
        typer.echo("⛔ Aborted. Unfinished scenes were reset and will run next time.")
        raise typer.Exit(130)
    finally:
        logging.getLogger().removeHandler(buffer)
        storyboard.to_yaml(storyboard_path)
        if log_file:
            buffer.write_jsonl(log_file)

    typer.echo(f"\n📊 Summary:")
    typer.echo(f"   Processed: {len(result.processed)}")
    typer.echo(f"   Generated: {len(result.succeeded)}")
    typer.echo(f"   Failed: {len(result.failed)}")
    if result.backoffs:
        typer.echo(f"   Rate-limit backoffs: {result.backoffs} ({result.backoff_seconds:.0f}s)")

    if result.stopped:
        typer.echo("\n⏸️  Paused. Run the same command again to resume.")
    elif result.failed:
        typer.echo(f"\n⚠️  {len(result.failed)} scene(s) failed. Use 'storyboard retry' to try again.")
        raise typer.Exit(1)
    elif result.processed:
        typer.echo("\n✅ All scenes generated successfully!")


def _images_option() -> Optional[Path]:
    return typer.Option(
        None,
        "--images",
        "-i",
        help=f"Directory for generated images (default: $STORYBOARD_WORKSPACE/{DEFAULT_IMAGES})"
    )


def _log_file_option() -> Optional[Path]:
    return typer.Option(
        None,
        "--log-file",
        help="Append the activity log to this JSON lines file"
    )


def _verbose_option() -> bool:
    return typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    )


@app.command()
def generate(
    storyboard_path: Optional[Path] = _storyboard_option(),
    images: Optional[Path] = _images_option(),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show which scenes would be generated without calling any API"
    ),
    log_file: Optional[Path] = _log_file_option(),
    verbose: bool = _verbose_option(),
) -> None:
    """Generate images for the selected scenes, or all pending/failed ones.

    Scenes are generated one at a time with a pause between them. Press
    Ctrl-C to stop after the current scene.
    """
    if dry_run:
        storyboard_path = _in_workspace(storyboard_path, DEFAULT_STORYBOARD)
        storyboard = _load_storyboard(storyboard_path)
        targets = storyboard.select_targets()
        source = "selected" if storyboard.selected_ids else "pending/failed"
        typer.echo(f"🔍 Dry run - would generate {len(targets)} {source} scene(s):")
        for scene in targets:
            typer.echo(f"   [{scene.id}] {_preview(scene.english_prompt, 70)}")
        raise typer.Exit(0)

    _generate(storyboard_path, images, verbose, log_file)


@app.command()
def retry(
    scene_id: Optional[int] = typer.Option(
        None,
        "--id",
        help="Retry only this scene (any status)"
    ),
    storyboard_path: Optional[Path] = _storyboard_option(),
    images: Optional[Path] = _images_option(),
    log_file: Optional[Path] = _log_file_option(),
    verbose: bool = _verbose_option(),
) -> None:
    """Retry failed scenes (or one scene) with a simplified prompt."""
    _generate(storyboard_path, images, verbose, log_file, scene_id=scene_id, retry=True)


@app.command()
def report(
    storyboard_path: Optional[Path] = _storyboard_option(),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the report to a file instead of stdout"
    ),
) -> None:
    """Print a per-scene status report."""
    from .export import build_report

    storyboard_path = _in_workspace(storyboard_path, DEFAULT_STORYBOARD)
    storyboard = _load_storyboard(storyboard_path)
    text = build_report(storyboard.scenes)

    if output is None:
        typer.echo(text)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    typer.echo(f"✅ Report saved: {output}")


@app.command()
def export(
    storyboard_path: Optional[Path] = _storyboard_option(),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help=f"Output zip archive path (default: $STORYBOARD_WORKSPACE/{DEFAULT_ARCHIVE})"
    ),
) -> None:
    """Package generated images and the report into a zip archive."""
    from .export import export_archive

    storyboard_path = _in_workspace(storyboard_path, DEFAULT_STORYBOARD)
    output = _in_workspace(output, DEFAULT_ARCHIVE)
    storyboard = _load_storyboard(storyboard_path)

    try:
        count = export_archive(storyboard, output)
    except ValueError as e:
        typer.echo(f"⚠️  {e}")
        raise typer.Exit(1)
    except OSError as e:
        typer.echo(f"❌ Export failed: {e}")
        raise typer.Exit(1)

    typer.echo(f"✅ Exported {count} image(s) to {output}")


if __name__ == "__main__":
    app()
