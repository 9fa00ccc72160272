"""
Command-line interface for the avatar puppeteer.

Replays recorded landmark sessions through the gesture classifier and
animation damper and prints what the avatar would do.
"""

import argparse
from collections import Counter
import logging
from pathlib import Path
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table
import yaml

from avatar_puppet import __version__
from avatar_puppet.config.settings import Settings
from avatar_puppet.core.gesture_classifier import GestureLabel
from avatar_puppet.core.puppeteer import AvatarPuppeteer
from avatar_puppet.data.recording import Recording, RecordingError, load_recording

console = Console()


def setup_logging(verbose: bool = False):
    """Configure logging for the command-line tool."""
    formatter = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.addHandler(handler)

    logging.getLogger('avatar_puppet').setLevel(logging.DEBUG if verbose else logging.WARNING)


def parse_args(argv: Optional[list] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="avatar-puppet",
        description="Gesture-driven avatar puppeteering from body landmarks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Replay a recorded landmark session
  avatar-puppet --replay session.json

  # Replay with custom thresholds, printing every 5th frame
  avatar-puppet --replay session.json --config tuning.yaml --every 5

  # Write the default configuration to a file
  avatar-puppet --write-config tuning.yaml
        """,
    )

    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "--replay", "-r",
        type=Path,
        metavar="RECORDING",
        help="Recorded landmark session (JSON) to replay",
    )

    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file (YAML)",
    )

    parser.add_argument(
        "--write-config",
        type=Path,
        metavar="PATH",
        help="Write the default configuration to PATH and exit",
    )

    parser.add_argument(
        "--every",
        type=int,
        default=1,
        metavar="N",
        help="Print every Nth frame of the replay (default: 1)",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def replay(recording: Recording, settings: Settings, every: int = 1) -> Counter:
    """
    Run a recording through the puppeteer and print a frame table.

    Returns:
        Number of frames each debounced gesture was held
    """
    puppeteer = AvatarPuppeteer(settings)
    held: Counter = Counter()

    table = Table(title=f"Replay: {recording.name}")
    table.add_column("Frame", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Raw")
    table.add_column("Gesture", style="bold green")
    table.add_column("Smile")
    table.add_column("Blink")
    table.add_column("Body z", justify="right")
    table.add_column("L arm z", justify="right")
    table.add_column("R arm z", justify="right")

    elapsed = 0.0
    for index, (frame, delta) in enumerate(recording.iter_deltas()):
        result = puppeteer.on_frame(frame)
        state = puppeteer.update(delta)
        elapsed += delta
        held[result.label] += 1

        if every > 0 and index % every == 0:
            table.add_row(
                str(index),
                f"{elapsed:.2f}",
                result.raw_label.display_name or "-",
                result.label.display_name or "-",
                "yes" if result.flags.is_smiling else "",
                "yes" if result.flags.is_blinking else "",
                f"{state.body.z:+.3f}",
                f"{state.left_arm.z:+.3f}",
                f"{state.right_arm.z:+.3f}",
            )

    console.print(table)
    return held


def print_summary(recording: Recording, held: Counter):
    """Print how long each gesture was held during the replay."""
    summary = Table(title="Gesture summary")
    summary.add_column("Gesture")
    summary.add_column("Frames", justify="right")
    summary.add_column("Share", justify="right")

    total = max(recording.num_frames, 1)
    for label in GestureLabel:
        if held[label]:
            summary.add_row(
                label.display_name or "None",
                str(held[label]),
                f"{held[label] / total:.0%}",
            )

    console.print(summary)
    console.print(f"  Total frames: {recording.num_frames}")
    console.print(f"  Duration: {recording.duration:.2f}s")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)

    if args.version:
        console.print(f"avatar-puppet {__version__}")
        return 0

    setup_logging(args.verbose)

    if args.write_config:
        Settings().to_yaml(args.write_config)
        console.print(f"[green]✓[/green] Wrote default configuration: {args.write_config}")
        return 0

    if not args.replay:
        console.print("[red]Nothing to do:[/red] pass --replay RECORDING or --write-config PATH")
        return 2

    try:
        settings = Settings.from_yaml(args.config) if args.config else Settings()
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        return 1

    issues = settings.validate()
    if issues:
        console.print("[yellow]Configuration warnings:[/yellow]")
        for issue in issues:
            console.print(f"  - {issue}")

    try:
        recording = load_recording(args.replay)
    except RecordingError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    held = replay(recording, settings, every=args.every)
    print_summary(recording, held)
    return 0


if __name__ == "__main__":
    sys.exit(main())
