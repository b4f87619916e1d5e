"""
Push-to-talk terminal client for the Holocron voice assistant.
Records a question, sends it to the assistant service and plays the reply.
"""

import argparse
import asyncio
import sys
from functools import partial
from typing import Optional

from holocron.assistant import VoiceInteraction
from holocron.audio.sounddevice_backend import SoundDeviceAudio
from holocron.cli.logging_utils import (
    ERROR_LOG_LABEL,
    LOGGER,
    SYSTEM_LOG_LABEL,
    set_verbose_logging,
)
from holocron.config import (
    HOLOCRON_API_URL,
    PLATFORM_CHOICES,
    PLATFORM_NAME,
    persist_api_url,
    reset_saved_settings,
)
from holocron.core.state import InteractionStatus
from holocron.diagnostics import test_audio_capture
from holocron.network import TalkClient
from holocron.platforms import select_platform

QUIT_COMMANDS = {"q", "quit", "exit"}


def build_interaction(
    platform_name: Optional[str] = None, api_url: Optional[str] = None
) -> VoiceInteraction:
    """Wire the selected platform, the PortAudio device and the talk client together."""

    platform = select_platform(platform_name)
    device = SoundDeviceAudio(platform)
    overrides = {"base_url": api_url} if api_url else {}
    transport = TalkClient(platform, **overrides)
    return VoiceInteraction(device, platform, transport)


def _format_status(status: InteractionStatus) -> str:
    if status.capturing:
        return "Recording... press Enter to send."
    if status.awaiting_reply:
        return "Consulting the Holocron..."
    if not status.capture_available:
        return "Microphone unavailable."
    return "Ready. Press Enter to speak (q to quit)."


async def _read_command() -> str:
    line = await asyncio.to_thread(sys.stdin.readline)
    if not line:
        return "q"
    return line.strip().lower()


async def run_push_to_talk(
    *, platform_name: Optional[str] = None, api_url: Optional[str] = None
) -> None:
    """Toggle recording with Enter until the user quits."""

    interaction = build_interaction(platform_name, api_url)
    interaction.add_listener(lambda status: LOGGER.log(SYSTEM_LOG_LABEL, _format_status(status)))

    async with interaction:
        LOGGER.log(
            SYSTEM_LOG_LABEL,
            f"Platform: {interaction.platform.name}; {_format_status(interaction.status)}",
        )
        if not interaction.status.capture_available:
            return
        while True:
            command = await _read_command()
            if command in QUIT_COMMANDS:
                break
            if interaction.status.capturing:
                await interaction.stop_capture()
            else:
                await interaction.start_capture()


def parse_args(argv: Optional[list[str]] = None):
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(description="Push-to-talk client for the Holocron assistant.")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["run", "test-audio"],
        default="run",
        help="Select an execution mode (default: run)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed diagnostic logs (state changes, device details, etc.).",
    )
    parser.add_argument(
        "--platform",
        choices=PLATFORM_CHOICES,
        default=None,
        help=(
            "Storage strategy for recordings and replies: 'native' writes to the cache "
            "directory, 'web' keeps everything in memory. "
            f"Default: {PLATFORM_NAME} (override via HOLOCRON_PLATFORM)."
        ),
    )
    parser.add_argument(
        "--api-url",
        help=(
            "Assistant service base URL for this run (requests go to <url>/talk). "
            f"Default: {HOLOCRON_API_URL or 'unset'} (override via HOLOCRON_API_URL)."
        ),
    )
    parser.add_argument(
        "--save-api-url",
        action="store_true",
        help="Persist --api-url to .env and exit.",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove settings saved with --save-api-url from .env and exit.",
    )
    args = parser.parse_args(argv)
    if args.save_api_url and not args.api_url:
        parser.error("--save-api-url requires --api-url")
    return args


def main(argv: Optional[list[str]] = None):
    """Main entry point"""

    args = parse_args(argv)
    if args.reset:
        cleared = sorted(reset_saved_settings())
        if cleared:
            LOGGER.log(SYSTEM_LOG_LABEL, f"Cleared saved settings: {', '.join(cleared)}.")
        else:
            LOGGER.log(SYSTEM_LOG_LABEL, "No saved settings were present.")
        return

    if args.save_api_url:
        if not persist_api_url(args.api_url):
            LOGGER.log(ERROR_LOG_LABEL, "Unable to save HOLOCRON_API_URL to .env", error=True)
            sys.exit(1)
        LOGGER.log(SYSTEM_LOG_LABEL, "Saved HOLOCRON_API_URL to .env")
        return

    set_verbose_logging(args.verbose)
    if args.mode == "test-audio":
        run_func = partial(test_audio_capture, args.platform)
    else:
        run_func = partial(run_push_to_talk, platform_name=args.platform, api_url=args.api_url)

    try:
        asyncio.run(run_func())
    except KeyboardInterrupt:
        LOGGER.log(SYSTEM_LOG_LABEL, "Shutdown requested")
    except Exception as e:
        LOGGER.log(ERROR_LOG_LABEL, f"CLI error: {e}", error=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
