"""Capture controller: the record -> stop -> transcribe state machine.

States: idle -> acquiring -> recording -> stopping -> processing -> idle,
with any failing stage passing through ``error`` back to ``idle``.

Usage::

    async with CaptureController(devices, relay, on_complete=draft_note) as controller:
        await controller.start(AudioSource.microphone)
        ...
        result = await controller.stop()
"""

import inspect
import logging
from collections.abc import Awaitable, Callable

from voicenotes.core.config import Settings, get_settings
from voicenotes.core.exceptions import (
    DeviceAccessDeniedError,
    EmptyTranscriptError,
    EncodingFailureError,
    InvalidStateTransitionError,
    NoAudioTrackCapturedError,
    RelayInvocationError,
    SourceNotSupportedError,
    VoiceNotesError,
)
from voicenotes.core.models import (
    AudioConstraints,
    AudioSource,
    CaptureState,
    EncodedAudioPayload,
    Notification,
    NotificationLevel,
    TranscriptionResult,
)
from voicenotes.services.audio.codec import encode_payload
from voicenotes.services.audio.recorder import ChunkBuffer
from voicenotes.services.capture.media import MediaDevices, MediaStream
from voicenotes.services.capture.relay_client import RelayClient
from voicenotes.services.capture.session import RecordingSession

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[str], Awaitable[None] | None]
StateCallback = Callable[[CaptureState, CaptureState], Awaitable[None] | None]
TickCallback = Callable[[int], Awaitable[None] | None]
NotificationCallback = Callable[[Notification], Awaitable[None] | None]

_S = CaptureState

_TRANSITIONS: dict[CaptureState, frozenset[CaptureState]] = {
    _S.idle: frozenset({_S.acquiring}),
    # -> idle from the three live states is host teardown
    _S.acquiring: frozenset({_S.recording, _S.error, _S.idle}),
    _S.recording: frozenset({_S.stopping, _S.error, _S.idle}),
    _S.stopping: frozenset({_S.processing, _S.error, _S.idle}),
    _S.processing: frozenset({_S.idle, _S.error}),
    _S.error: frozenset({_S.idle}),
}

_DENIED_MESSAGES = {
    AudioSource.microphone: "Could not access the microphone. Please grant microphone permission.",
    AudioSource.system: (
        "Screen or tab sharing was denied. Please allow sharing and enable audio sharing."
    ),
}

_UNSUPPORTED_MESSAGES = {
    AudioSource.microphone: "Microphone capture is not supported in this environment.",
    AudioSource.system: "System audio capture is not supported in this environment.",
}


async def _invoke(callback: Callable | None, *args) -> None:
    """Call a sync or async collaborator callback; its failures are logged, not raised."""
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Callback %r failed", callback)


class CaptureController:
    """Owns the recording lifecycle for one host view.

    Args:
        devices: Media-device backend used to acquire streams.
        relay: Client for the transcription relay.
        on_complete: Called once with the recognized text of a successful session.
        on_state_change: Called with ``(from_state, to_state)`` on every transition.
        on_tick: Called with elapsed whole seconds while recording.
        on_notification: Receives user-facing success/warning/error messages.
        settings: Optional Settings instance (defaults to get_settings()).
        tick_interval: Seconds between elapsed-time ticks.
    """

    def __init__(
        self,
        devices: MediaDevices,
        relay: RelayClient,
        on_complete: CompletionCallback | None = None,
        on_state_change: StateCallback | None = None,
        on_tick: TickCallback | None = None,
        on_notification: NotificationCallback | None = None,
        settings: Settings | None = None,
        tick_interval: float = 1.0,
    ) -> None:
        settings = settings or get_settings()
        self._devices = devices
        self._relay = relay
        self._on_complete = on_complete
        self._on_state_change = on_state_change
        self._on_tick = on_tick
        self._on_notification = on_notification
        self._tick_interval = tick_interval

        self._default_source = AudioSource(settings.capture_default_source)
        self._mime_type = settings.capture_mime_type
        self._max_chunks = settings.chunk_buffer_max_chunks
        self._constraints = AudioConstraints(
            echo_cancellation=settings.capture_echo_cancellation,
            noise_suppression=settings.capture_noise_suppression,
            auto_gain_control=settings.capture_auto_gain_control,
            sample_rate=settings.capture_sample_rate,
            channels=settings.capture_channels,
        )
        self._system_device = settings.capture_system_device or None

        self._state = CaptureState.idle
        self._session: RecordingSession | None = None
        self._closed = False
        self.last_result: TranscriptionResult | None = None

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def busy(self) -> bool:
        """True whenever a new recording cannot be started."""
        return self._state is not CaptureState.idle or self._closed

    @property
    def elapsed(self) -> int:
        """Whole seconds recorded by the active session, 0 when none."""
        return self._session.elapsed if self._session else 0

    @property
    def session(self) -> RecordingSession | None:
        return self._session

    async def __aenter__(self) -> "CaptureController":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def start(self, source: AudioSource | str | None = None) -> bool:
        """Acquire a stream for ``source`` and start recording.

        Ignored unless the controller is idle.

        Returns:
            True if recording started.
        """
        if self._closed:
            logger.warning("Start ignored: controller has been closed")
            return False
        if self._state is not CaptureState.idle:
            logger.info("Start ignored: controller is %s", self._state)
            return False

        source = AudioSource(source) if source is not None else self._default_source
        await self._transition(CaptureState.acquiring)

        try:
            stream = await self._acquire(source)
        except VoiceNotesError as exc:
            if self._closed:
                logger.info("Acquisition failed after close: [%s] %s", exc.code, exc.detail)
                return False
            await self._fail(exc, "Recording could not start")
            return False

        if self._closed:
            stream.stop_all()
            return False

        session = RecordingSession(source, stream, ChunkBuffer(self._max_chunks))
        self._session = session
        try:
            recorder = self._devices.create_recorder(stream.audio_only(), self._mime_type)
            await session.begin(recorder, self._tick_interval, self._on_tick)
        except Exception as exc:
            session.release()
            self._session = None
            if self._closed:
                return False
            if not isinstance(exc, VoiceNotesError):
                logger.exception("Recorder failed to start for %s", source)
                exc = SourceNotSupportedError(f"{_UNSUPPORTED_MESSAGES[source]} ({exc})")
            await self._fail(exc, "Recording could not start")
            return False

        if self._closed:
            return False
        await self._transition(CaptureState.recording)
        logger.info("Recording started from %s", source)
        return True

    async def stop(self) -> TranscriptionResult | None:
        """Stop recording, then encode, transcribe and deliver the text.

        Ignored unless the controller is recording.

        Returns:
            The outcome of the transcription attempt, or None if ignored.
        """
        session = self._session
        if self._state is not CaptureState.recording or session is None:
            logger.info("Stop ignored: controller is %s", self._state)
            return None

        await self._transition(CaptureState.stopping)
        try:
            payload = await session.finish()
        except Exception as exc:
            logger.exception("Failed to finalize the recording")
            session.release()
            self._session = None
            if self._closed:
                return None
            await self._fail(
                EncodingFailureError(f"Recording could not be finalized: {exc}"),
                "Recording failed",
            )
            return self.last_result

        self._session = None
        if self._closed:
            return None
        await self._transition(CaptureState.processing)
        return await self._process(payload)

    async def close(self) -> None:
        """Host teardown: release any held stream and stop the ticker.

        An in-flight transcription is not cancelled; it finishes on its own.
        """
        if self._closed:
            return
        self._closed = True
        session, self._session = self._session, None
        if session is not None:
            session.release()
        if self._state in (CaptureState.acquiring, CaptureState.recording, CaptureState.stopping):
            await self._transition(CaptureState.idle)
        logger.debug("Capture controller closed")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _acquire(self, source: AudioSource) -> MediaStream:
        """Request a stream and validate it for ``source``.

        Raises:
            DeviceAccessDeniedError: Permission refused or device unusable.
            SourceNotSupportedError: Capture API unavailable.
            NoAudioTrackCapturedError: System capture carried no audio.
        """
        try:
            if source is AudioSource.microphone:
                stream = await self._devices.get_user_media(self._constraints)
            else:
                constraints = self._constraints.model_copy(update={"device": self._system_device})
                stream = await self._devices.get_display_media(constraints)
        except VoiceNotesError:
            raise
        except NotImplementedError as exc:
            raise SourceNotSupportedError(_UNSUPPORTED_MESSAGES[source]) from exc
        except Exception as exc:
            logger.warning("Stream acquisition for %s failed: %s", source, exc)
            raise DeviceAccessDeniedError(_DENIED_MESSAGES[source]) from exc

        if source is AudioSource.system:
            if not stream.get_audio_tracks():
                stream.stop_all()
                raise NoAudioTrackCapturedError()
            # Display capture forces a video track; it is never recorded
            for track in stream.get_video_tracks():
                track.stop()
        return stream

    async def _process(self, payload: EncodedAudioPayload) -> TranscriptionResult:
        """Encode the payload, submit it once and deliver the outcome."""
        try:
            audio = await encode_payload(payload)
            text = await self._relay.transcribe(audio, mime_type=payload.mime_type)
            if not text.strip():
                raise EmptyTranscriptError()
        except EmptyTranscriptError as exc:
            self.last_result = TranscriptionResult.failure(exc.code, exc.detail)
            await self._notify(NotificationLevel.warning, "Nothing transcribed", exc)
            await self._transition(CaptureState.idle)
            return self.last_result
        except VoiceNotesError as exc:
            await self._fail(exc, "Transcription failed")
            return self.last_result
        except Exception as exc:
            logger.exception("Unexpected transcription failure")
            await self._fail(
                RelayInvocationError(str(exc) or "Transcription failed", category="unknown"),
                "Transcription failed",
            )
            return self.last_result

        self.last_result = TranscriptionResult.success(text)
        try:
            await _invoke(self._on_complete, text)
            await _invoke(
                self._on_notification,
                Notification(
                    level=NotificationLevel.success,
                    title="Done!",
                    message="Speech was converted to text.",
                ),
            )
        finally:
            await self._transition(CaptureState.idle)
        return self.last_result

    async def _fail(self, exc: VoiceNotesError, title: str) -> None:
        logger.warning("Capture failed while %s: [%s] %s", self._state, exc.code, exc.detail)
        self.last_result = TranscriptionResult.failure(exc.code, exc.detail)
        await self._transition(CaptureState.error)
        await self._notify(NotificationLevel.error, title, exc)
        await self._transition(CaptureState.idle)

    async def _notify(self, level: NotificationLevel, title: str, exc: VoiceNotesError) -> None:
        await _invoke(
            self._on_notification,
            Notification(level=level, title=title, message=exc.detail, code=exc.code),
        )

    async def _transition(self, to_state: CaptureState) -> None:
        from_state = self._state
        if from_state is to_state:
            return
        if to_state not in _TRANSITIONS[from_state]:
            raise InvalidStateTransitionError(from_state, to_state)
        self._state = to_state
        logger.debug("Capture state %s -> %s", from_state, to_state)
        await _invoke(self._on_state_change, from_state, to_state)
