"""
Playback Tests
==============

Anchor-based pacing, the scheduler state machine and display side effects.
All timing runs against a fake clock; nothing sleeps for real.
"""

import asyncio
import io
import logging

import pytest

from ascii_reel.errors import DecodeError
from ascii_reel.models.header import StreamHeader
from ascii_reel.pipeline import play_stream
from ascii_reel.playback import PlaybackClock, PlaybackScheduler, PlaybackState, target_time
from ascii_reel.stream import StreamEncoder


class TestTargetTime:
    """Tests for the pure timing function."""

    def test_anchor_is_frame_zero(self):
        assert target_time(12.5, 0, 30.0) == 12.5

    def test_frame_offsets(self):
        assert target_time(0.0, 30, 30.0) == pytest.approx(1.0)
        assert target_time(100.0, 999, 30.0) == pytest.approx(100.0 + 999 / 30)

    def test_clock_delay_never_negative(self):
        clock = PlaybackClock(anchor=10.0, frame_rate=10.0)
        assert clock.delay(1, now=10.05) == pytest.approx(0.05)
        assert clock.delay(1, now=11.0) == 0.0

    def test_clock_rejects_zero_rate(self):
        with pytest.raises(ValueError):
            PlaybackClock(anchor=0.0, frame_rate=0.0)


class TestPacing:
    """Drift-free pacing over long runs."""

    def test_thousand_frames_no_drift(self, fake_clock, make_surface, rendered_frames):
        """With 4 ms of display overhead per frame, frame 999 still lands on time."""
        surface = make_surface(print_cost=0.004)
        header = StreamHeader(frame_rate=30.0, width=8, height=2)
        scheduler = PlaybackScheduler(surface, header, now=fake_clock, sleep=fake_clock.sleep)

        metrics = asyncio.run(scheduler.run(rendered_frames(1000, 2)))

        times = surface.print_times
        assert len(times) == 1000
        assert times[999] - times[0] == pytest.approx(999 * 1000 / 30 / 1000, abs=1e-6)
        for n in (1, 10, 500, 999):
            assert times[n] - times[0] == pytest.approx(n / 30, abs=1e-6)
        assert metrics.frames_displayed == 1000
        assert metrics.late_frames == 0

    def test_waits_absorb_overhead(self, fake_clock, make_surface, rendered_frames):
        """Each wait is the frame period minus the display overhead."""
        surface = make_surface(print_cost=0.01)
        header = StreamHeader(frame_rate=20.0, width=8, height=1)
        scheduler = PlaybackScheduler(surface, header, now=fake_clock, sleep=fake_clock.sleep)

        asyncio.run(scheduler.run(rendered_frames(5, 1)))

        assert len(fake_clock.sleeps) == 4
        for slept in fake_clock.sleeps:
            assert slept == pytest.approx(0.05 - 0.01)

    def test_late_frames_shown_not_dropped(self, fake_clock, make_surface, rendered_frames):
        """Display slower than the frame rate: every frame is shown, no waits."""
        surface = make_surface(print_cost=0.05)
        header = StreamHeader(frame_rate=30.0, width=8, height=1)
        scheduler = PlaybackScheduler(surface, header, now=fake_clock, sleep=fake_clock.sleep)

        frames = rendered_frames(100, 1)
        metrics = asyncio.run(scheduler.run(frames))

        assert surface.printed == [f.text for f in frames]
        assert all(slept == 0.0 for slept in fake_clock.sleeps)
        assert metrics.late_frames == 99
        assert metrics.max_lateness > 0

    def test_catches_up_after_stall(self, fake_clock, make_surface, rendered_frames):
        """One slow frame does not shift the schedule of the frames after it."""
        surface = make_surface()
        header = StreamHeader(frame_rate=10.0, width=8, height=1)
        scheduler = PlaybackScheduler(surface, header, now=fake_clock, sleep=fake_clock.sleep)
        frames = rendered_frames(6, 1)

        async def play():
            for i, frame in enumerate(frames):
                if i == 2:
                    fake_clock.advance(0.25)
                await scheduler.show(frame)

        asyncio.run(play())

        t0 = surface.print_times[0]
        offsets = [t - t0 for t in surface.print_times]
        assert offsets[2] == pytest.approx(0.35)
        assert offsets[3] == pytest.approx(0.35)
        assert offsets[4] == pytest.approx(0.4)
        assert offsets[5] == pytest.approx(0.5)


class TestSchedulerStates:
    """State machine and display side effects."""

    def test_state_transitions(self, fake_clock, recording_surface, rendered_frames):
        header = StreamHeader(frame_rate=30.0, width=8, height=2)
        scheduler = PlaybackScheduler(recording_surface, header, now=fake_clock, sleep=fake_clock.sleep)
        frames = rendered_frames(2, 2)

        assert scheduler.state is PlaybackState.IDLE
        asyncio.run(scheduler.show(frames[0]))
        assert scheduler.state is PlaybackState.PLAYING
        assert scheduler.clock.anchor == 1000.0
        assert fake_clock.sleeps == []

        asyncio.run(scheduler.show(frames[1]))
        assert scheduler.state is PlaybackState.PLAYING

        scheduler.finish()
        assert scheduler.state is PlaybackState.DONE
        with pytest.raises(RuntimeError):
            asyncio.run(scheduler.show(frames[0]))

    def test_display_calls(self, fake_clock, recording_surface, rendered_frames):
        header = StreamHeader(frame_rate=30.0, width=8, height=2)
        scheduler = PlaybackScheduler(
            recording_surface,
            header,
            now=fake_clock,
            sleep=fake_clock.sleep,
            cell_width=10,
            cell_height=30,
        )
        frame = rendered_frames(1, 2)[0]

        asyncio.run(scheduler.show(frame))

        assert recording_surface.calls == [
            ("clear",),
            ("print", frame.text),
            ("resize", 80, 61),
            ("resize", 80, 60),
        ]
        assert scheduler.metrics.frames_displayed == 1

    def test_frame_counter_logged_at_debug(self, fake_clock, recording_surface, rendered_frames, caplog):
        header = StreamHeader(frame_rate=30.0, width=8, height=1)
        scheduler = PlaybackScheduler(recording_surface, header, now=fake_clock, sleep=fake_clock.sleep)

        with caplog.at_level(logging.DEBUG, logger="ascii_reel.playback.scheduler"):
            asyncio.run(scheduler.run(rendered_frames(3, 1)))

        messages = [
            r.getMessage() for r in caplog.records
            if r.name == "ascii_reel.playback.scheduler" and r.levelno == logging.DEBUG
        ]
        assert messages == ["frame 0", "frame 1", "frame 2"]
        assert scheduler.metrics.frames_displayed == 3

    def test_empty_run_finishes(self, fake_clock, recording_surface):
        header = StreamHeader(frame_rate=30.0, width=8, height=2)
        scheduler = PlaybackScheduler(recording_surface, header, now=fake_clock, sleep=fake_clock.sleep)

        metrics = asyncio.run(scheduler.run([]))

        assert scheduler.state is PlaybackState.DONE
        assert metrics.frames_displayed == 0
        assert recording_surface.calls == []


class TestPlayStream:
    """Decoder and scheduler wired together."""

    def test_plays_encoded_stream(self, fake_clock, recording_surface, rendered_frames):
        frames = rendered_frames(12, 3)
        sink = io.BytesIO()
        with StreamEncoder(sink) as encoder:
            encoder.write_header(StreamHeader(frame_rate=24.0, width=20, height=3))
            for frame in frames:
                encoder.write_frame(frame)
        sink.seek(0)

        metrics = asyncio.run(play_stream(
            sink, recording_surface, now=fake_clock, sleep=fake_clock.sleep
        ))

        assert metrics.frames_displayed == 12
        assert recording_surface.printed == [f.text for f in frames]

    def test_partial_tail_not_displayed(self, fake_clock, recording_surface, compress_text):
        lines = "".join(f"row{i}\n" for i in range(23))
        source = io.BytesIO(compress_text(f"30\n4 10\n{lines}"))

        metrics = asyncio.run(play_stream(
            source, recording_surface, now=fake_clock, sleep=fake_clock.sleep
        ))

        assert metrics.frames_displayed == 2
        assert "row20" not in "".join(recording_surface.printed)

    def test_decode_error_is_fatal(self, fake_clock, recording_surface, rendered_frames):
        frames = rendered_frames(40, 3)
        sink = io.BytesIO()
        with StreamEncoder(sink) as encoder:
            encoder.write_header(StreamHeader(frame_rate=24.0, width=20, height=3))
            for frame in frames:
                encoder.write_frame(frame)
        truncated = io.BytesIO(sink.getvalue()[:-6])

        with pytest.raises(DecodeError):
            asyncio.run(play_stream(
                truncated, recording_surface, now=fake_clock, sleep=fake_clock.sleep
            ))

    def test_thousand_decoded_frames_no_drift(self, fake_clock, make_surface, rendered_frames):
        """Frames pulled from a decoder keep the anchor schedule, one wait each."""
        frames = rendered_frames(1000, 2)
        sink = io.BytesIO()
        with StreamEncoder(sink) as encoder:
            encoder.write_header(StreamHeader(frame_rate=30.0, width=20, height=2))
            for frame in frames:
                encoder.write_frame(frame)
        sink.seek(0)
        surface = make_surface(print_cost=0.004)

        metrics = asyncio.run(play_stream(
            sink, surface, now=fake_clock, sleep=fake_clock.sleep
        ))

        times = surface.print_times
        assert metrics.frames_displayed == 1000
        assert metrics.late_frames == 0
        assert len(fake_clock.sleeps) == 999
        for n in (1, 10, 500, 999):
            assert times[n] - times[0] == pytest.approx(n / 30, abs=1e-6)
        assert surface.printed == [f.text for f in frames]
