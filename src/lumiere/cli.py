"""Lumiere CLI - run the talking-objects app and animate still images."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from lumiere import __version__
from lumiere.common.errors import ConfigError, LumiereError
from lumiere.common.events import BUTTON_PRESS, TRANSCRIPTION
from lumiere.common.logging import mask_secret, setup_logging
from lumiere.config import Config, load_config

app = typer.Typer(
    name="lumiere",
    help="Talking objects for AR glasses",
    no_args_is_help=True,
)
console = Console()

DEFAULT_PROMPT = (
    "The object comes alive. On the front of the object, two large, adorable cartoonish "
    "eyes appear, slightly exaggerated for cuteness, with a glossy, animated shine and "
    "long, expressive blinks. The eyes look around curiously, sometimes widening in "
    "surprise or narrowing in playful focus. The object wobbles gently in place, "
    "occasionally doing a tiny hop, tilt, or spin as if reacting with childlike "
    "curiosity. The entire scene is looped, with the object blinking, shifting, rocking, "
    "and glancing around. Lighting and reflections remain realistic, with soft shadows "
    "enhancing its lifelike appearance."
)


def get_config() -> Config:
    """Get configuration."""
    return load_config()


def read_prompt(prompt: Optional[str], prompt_file: Optional[Path]) -> str:
    """Animation instruction from a file, the option, or the default."""
    if prompt_file is None:
        return prompt or DEFAULT_PROMPT
    try:
        return prompt_file.read_text().strip()
    except OSError as e:
        raise LumiereError(f"Failed to read prompt file: {e}") from e


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]Lumiere[/] v{__version__}")


@app.command()
def serve(
    mock: bool = typer.Option(False, "--mock", help="Use local mock chat and detection"),
    port: Optional[int] = typer.Option(None, help="Port (default from config / PORT)"),
    photo: Optional[Path] = typer.Option(None, help="Image file served as the camera photo"),
):
    """Run the session event relay server."""
    from functools import partial

    from lumiere.app import LumiereApp
    from lumiere.server import run_server
    from lumiere.session import MockSession

    cfg = get_config()
    try:
        lumiere_app = LumiereApp(cfg, mock_mode=mock or None)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/] {e}")
        sys.exit(1)

    console.print(
        Panel(
            f"Listening on port [bold]{port or cfg.app.port}[/]\n"
            f"Mock mode: {lumiere_app.mock_mode}",
            title=f"Lumiere v{__version__}",
        )
    )
    run_server(lumiere_app, partial(MockSession, photo_path=photo), port=port)


@app.command()
def chat(
    mock: bool = typer.Option(False, "--mock", help="Use local mock chat and detection"),
    photo: Optional[Path] = typer.Option(None, help="Image file served as the camera photo"),
):
    """Talk to Lumiere from the terminal.

    Typed lines are delivered as final transcriptions; type !press for the
    configured trigger button press and q to quit.
    """
    from lumiere.app import LumiereApp
    from lumiere.session import MockSession

    async def _chat():
        try:
            lumiere_app = LumiereApp(get_config(), mock_mode=mock or None)
        except ConfigError as e:
            console.print(f"[red]Configuration error:[/] {e}")
            sys.exit(1)

        async with lumiere_app:
            session = MockSession("console", photo_path=photo)
            active = lumiere_app.on_session(session)
            console.print("[dim]Say 'awaken' to look around, !press for the button, q to quit.[/]")
            loop = asyncio.get_running_loop()

            while True:
                try:
                    line = await loop.run_in_executor(None, input, "you> ")
                except EOFError:
                    break
                line = line.strip()
                if line.lower() == "q":
                    break
                if not line:
                    continue

                before = len(session.spoken)
                if line == "!press":
                    await active.bus.publish(
                        BUTTON_PRESS, {"press_type": lumiere_app.config.voice.trigger_press_type}
                    )
                else:
                    await active.bus.publish(TRANSCRIPTION, {"text": line, "is_final": True})

                for spoken in session.spoken[before:]:
                    voice = f" [dim]({spoken.voice_id})[/]" if spoken.voice_id else ""
                    console.print(f"[cyan]lumiere>[/] {spoken.text}{voice}")

    asyncio.run(_chat())


@app.command()
def animate(
    image: str = typer.Argument(..., help="Image path or http(s) URL"),
    prompt: Optional[str] = typer.Option(None, help="Animation instruction"),
    prompt_file: Optional[Path] = typer.Option(None, help="Read the instruction from a file"),
    out: Path = typer.Option(Path("output.mp4"), help="Where to save the video"),
    ratio: Optional[str] = typer.Option(None, help="Output ratio, e.g. 1280:720"),
    duration: Optional[int] = typer.Option(None, help="Clip length in seconds"),
    seed: Optional[int] = typer.Option(None, help="Random seed (random if omitted)"),
    model: Optional[str] = typer.Option(None, help="Generation model"),
    diagnostics_dir: Optional[Path] = typer.Option(
        None, help="Directory for request/response JSON records"
    ),
    max_wait: Optional[float] = typer.Option(
        None, help="Give up after this many seconds of polling"
    ),
):
    """Animate a still image with the image-to-video API."""
    from lumiere.video import JobSpec, build_workflow, resolve_image_reference

    cfg = get_config()
    setup_logging(level=cfg.app.log_level, json_output=cfg.app.mode == "production")

    try:
        cfg.require_video()
    except ConfigError as e:
        console.print(f"[red]Error:[/] {e}")
        console.print(
            "[dim]Set RUNWAYML_API_SECRET or RUNWAY_API_KEY, or add it to a .env file.[/]"
        )
        sys.exit(1)

    video_cfg = cfg.video.model_copy()
    if max_wait is not None:
        video_cfg.max_wait_seconds = max_wait

    table = Table(title="Video generation", show_header=False)
    table.add_row("Image", image)
    table.add_row("Output", str(out))
    table.add_row("Ratio", ratio or video_cfg.ratio)
    table.add_row("Duration", f"{duration or video_cfg.duration} seconds")
    table.add_row("Model", model or video_cfg.model)
    table.add_row("API key", mask_secret(video_cfg.api_key))
    console.print(table)

    async def _animate():
        workflow = build_workflow(video_cfg, diagnostics_dir)
        try:
            try:
                spec = JobSpec(
                    prompt_image=resolve_image_reference(image),
                    prompt_text=read_prompt(prompt, prompt_file),
                    model=model or video_cfg.model,
                    ratio=ratio or video_cfg.ratio,
                    duration=duration or video_cfg.duration,
                    seed=seed,
                )
            except LumiereError as e:
                workflow.record_failure(e)
                raise
            return await workflow.run(spec, out)
        finally:
            await workflow.client.aclose()

    try:
        result = asyncio.run(_animate())
    except LumiereError as e:
        console.print(Panel(f"[red]{e}[/]", title="Generation failed"))
        if diagnostics_dir or video_cfg.diagnostics_dir:
            console.print(
                f"[dim]Check {diagnostics_dir or video_cfg.diagnostics_dir} for API responses.[/]"
            )
        sys.exit(1)

    console.print(
        Panel(
            f"Video URL: {result.video_url}\n"
            f"Saved to: {result.path}\n"
            f"Polls: {result.polls}\n"
            f"Total time: {result.elapsed_seconds:.2f} seconds",
            title="[green]Generation complete[/]",
        )
    )


@app.command()
def config(json_output: bool = False):
    """Show configuration (secrets masked)."""
    cfg = get_config()
    data = cfg.model_dump()
    data["app"]["api_key"] = mask_secret(cfg.app.api_key)
    data["llm"]["api_key"] = mask_secret(cfg.llm.api_key)
    data["vision"]["api_key"] = mask_secret(cfg.vision.api_key)
    data["video"]["api_key"] = mask_secret(cfg.video.api_key)

    if json_output:
        print(json.dumps(data, indent=2, default=str))
        return

    console.print("[bold]Configuration[/]")
    console.print(f"  Package: {cfg.app.package_name or '[red]unset[/]'}")
    console.print(f"  Port: {cfg.app.port}")
    console.print(f"  Mock Mode: {cfg.mock_mode}")
    console.print("\n[bold]Conversation[/]")
    console.print(f"  Model: {cfg.llm.model}")
    console.print(f"  Detection workflow: {cfg.vision.workflow_url or '[red]unset[/]'}")
    console.print(f"  Voices: {len(cfg.voice.voice_ids)}")
    console.print(f"  Wake words: {', '.join(cfg.voice.wake_words)}")
    console.print("\n[bold]Video[/]")
    console.print(f"  Model: {cfg.video.model}")
    console.print(f"  Poll interval: {cfg.video.poll_interval_seconds}s")
    console.print(f"  Max wait: {cfg.video.max_wait_seconds or 'unbounded'}")

    missing = cfg.missing_conversation_settings()
    if missing:
        console.print(f"\n[yellow]Missing:[/] {', '.join(missing)}")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
