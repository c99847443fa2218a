"""
Voice Notes command line.

    python -m voicenotes serve                 # run the transcription relay
    python -m voicenotes record --source system  # record, transcribe, draft a note
"""

import argparse
import asyncio
import logging
import sys

from voicenotes.core.config import get_settings
from voicenotes.core.models import AudioSource, Notification, NotificationLevel

logger = logging.getLogger(__name__)


def _print_notification(notification: Notification) -> None:
    stream = sys.stderr if notification.level is NotificationLevel.error else sys.stdout
    print(f"[{notification.level}] {notification.title}: {notification.message}", file=stream)


def _print_tick(elapsed: int) -> None:
    minutes, seconds = divmod(elapsed, 60)
    print(f"\r  recording {minutes:02d}:{seconds:02d}", end="", flush=True)


async def _record(source: AudioSource, color: str) -> int:
    """Run one capture session against the configured relay."""
    from voicenotes.services.capture import CaptureController, RelayClient
    from voicenotes.services.capture.sounddevice_backend import SoundDeviceMediaDevices
    from voicenotes.services.notes import NoteDraftCollector

    settings = get_settings()
    collector = NoteDraftCollector(color=color)
    devices = SoundDeviceMediaDevices(system_device=settings.capture_system_device)

    async with (
        RelayClient(settings=settings) as relay,
        CaptureController(
            devices,
            relay,
            on_complete=collector,
            on_tick=_print_tick,
            on_notification=_print_notification,
            settings=settings,
        ) as controller,
    ):
        if not await controller.start(source):
            return 1
        await asyncio.to_thread(input, "Recording... press Enter to stop.\n")
        print()
        print("Transcribing...")
        result = await controller.stop()

    draft = collector.latest
    if draft is None:
        return 0 if result is not None and result.error_code == "EMPTY_TRANSCRIPT" else 1
    print()
    print(f"New note ({draft.color}):")
    print(draft.content)
    return 0


def _serve(host: str | None, port: int | None, reload: bool) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "voicenotes.api.app:app",
        host=host or settings.app_host,
        port=port or settings.app_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="voicenotes",
        description="Voice-to-text capture for notes",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the transcription relay")
    serve.add_argument("--host", default=None, help="Bind address (default: APP_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: APP_PORT)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    record = sub.add_parser("record", help="Record speech and draft a note from it")
    record.add_argument(
        "--source",
        choices=[s.value for s in AudioSource],
        default=None,
        help="Audio source (default: CAPTURE_DEFAULT_SOURCE)",
    )
    record.add_argument("--color", default="blue", help="Color of the drafted note")

    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        return _serve(args.host, args.port, args.reload)

    source = AudioSource(args.source or settings.capture_default_source)
    try:
        return asyncio.run(_record(source, args.color))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
