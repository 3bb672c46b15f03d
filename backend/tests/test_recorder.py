"""
Tests for the voice recording state machine.
"""

import asyncio
import base64

import pytest

from codebricks.client.recorder import AudioRecorder, RecordingState

from conftest import FakeMicrophone


class TestAudioRecorder:

    @pytest.mark.asyncio
    async def test_toggle_start_and_stop(self):
        microphone = FakeMicrophone()
        recorder = AudioRecorder(microphone)

        assert await recorder.toggle() == RecordingState.RECORDING
        microphone.streams[0].emit(b"chunk1-")
        microphone.streams[0].emit(b"chunk2-")

        assert await recorder.toggle() == RecordingState.STOPPED
        assert recorder.has_audio
        prefix, payload = recorder.audio_data_uri.split(",", 1)
        assert prefix == "data:audio/webm;base64"
        assert base64.b64decode(payload) == b"chunk1-chunk2-tail"
        assert microphone.streams[0].stopped
        assert microphone.streams[0].released

    @pytest.mark.asyncio
    async def test_permission_denied(self):
        recorder = AudioRecorder(FakeMicrophone(granted=False))

        assert await recorder.toggle() == RecordingState.IDLE
        assert recorder.permission_denied
        assert not recorder.has_audio

    @pytest.mark.asyncio
    async def test_toggle_ignored_while_requesting_permission(self):
        microphone = FakeMicrophone()
        microphone.gate = asyncio.Event()
        recorder = AudioRecorder(microphone)

        start = asyncio.create_task(recorder.toggle())
        await asyncio.sleep(0)
        assert recorder.state == RecordingState.REQUESTING_PERMISSION

        assert await recorder.toggle() == RecordingState.REQUESTING_PERMISSION

        microphone.gate.set()
        assert await start == RecordingState.RECORDING
        assert len(microphone.streams) == 1

    @pytest.mark.asyncio
    async def test_starting_again_discards_previous_clip(self):
        recorder = AudioRecorder(FakeMicrophone())
        await recorder.toggle()
        await recorder.toggle()
        assert recorder.has_audio

        await recorder.toggle()

        assert recorder.state == RecordingState.RECORDING
        assert recorder.audio_data_uri is None

    @pytest.mark.asyncio
    async def test_empty_recording_returns_to_idle(self):
        recorder = AudioRecorder(FakeMicrophone(final_chunk=b""))
        await recorder.toggle()

        assert await recorder.stop() is None
        assert recorder.state == RecordingState.IDLE

    @pytest.mark.asyncio
    async def test_discard_audio(self):
        recorder = AudioRecorder(FakeMicrophone())
        await recorder.toggle()
        await recorder.toggle()

        recorder.discard_audio()

        assert recorder.state == RecordingState.IDLE
        assert not recorder.has_audio

    @pytest.mark.asyncio
    async def test_close_releases_microphone(self):
        microphone = FakeMicrophone()
        recorder = AudioRecorder(microphone)
        await recorder.toggle()

        recorder.close()

        assert microphone.streams[0].released
        assert recorder.state == RecordingState.IDLE
        assert not recorder.has_audio

    @pytest.mark.asyncio
    async def test_check_permission_releases_stream(self):
        microphone = FakeMicrophone()
        recorder = AudioRecorder(microphone)

        assert await recorder.check_permission() is True
        assert microphone.streams[0].released
        assert recorder.state == RecordingState.IDLE

    @pytest.mark.asyncio
    async def test_check_permission_denied(self):
        recorder = AudioRecorder(FakeMicrophone(granted=False))
        assert await recorder.check_permission() is False
        assert recorder.permission_denied

    @pytest.mark.asyncio
    async def test_permission_granted_after_denial_clears_flag(self):
        microphone = FakeMicrophone(granted=False)
        recorder = AudioRecorder(microphone)
        await recorder.toggle()
        assert recorder.permission_denied

        microphone.granted = True
        assert await recorder.toggle() == RecordingState.RECORDING
        assert not recorder.permission_denied

    @pytest.mark.asyncio
    async def test_failed_stop_returns_to_idle(self):
        microphone = FakeMicrophone(stop_error=RuntimeError("encoder crashed"))
        recorder = AudioRecorder(microphone)
        await recorder.toggle()
        microphone.streams[0].emit(b"partial")

        with pytest.raises(RuntimeError, match="encoder crashed"):
            await recorder.toggle()

        assert recorder.state == RecordingState.IDLE
        assert microphone.streams[0].released
        assert not recorder.has_audio

        microphone.stop_error = None
        assert await recorder.toggle() == RecordingState.RECORDING
        assert len(microphone.streams) == 2

    @pytest.mark.asyncio
    async def test_close_while_waiting_for_permission_releases_late_stream(self):
        microphone = FakeMicrophone()
        microphone.gate = asyncio.Event()
        recorder = AudioRecorder(microphone)

        start = asyncio.create_task(recorder.start())
        await asyncio.sleep(0)
        assert recorder.state == RecordingState.REQUESTING_PERMISSION

        recorder.close()
        microphone.gate.set()

        assert await start is False
        assert microphone.streams[0].released
        assert microphone.streams[0].on_chunk is None
        assert recorder.state == RecordingState.IDLE
        assert not recorder.is_recording

    @pytest.mark.asyncio
    async def test_denial_after_close_leaves_flag_untouched(self):
        microphone = FakeMicrophone(granted=False)
        microphone.gate = asyncio.Event()
        recorder = AudioRecorder(microphone)

        start = asyncio.create_task(recorder.start())
        await asyncio.sleep(0)
        recorder.close()
        microphone.gate.set()

        assert await start is False
        assert not recorder.permission_denied
        assert recorder.state == RecordingState.IDLE
