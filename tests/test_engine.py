"""Behavioural tests for PacingEngine on a virtual clock.

WHY: The engine is the only stateful piece of the system. Users pause,
seek and change speed while a timer is pending, and the position and
event stream must stay consistent through all of it.

HOW: Every test drives the engine through the ManualScheduler fixture
and inspects the Recorder sink. ``scheduler.run_next()`` fires exactly
one pending step; ``run_until_idle()`` plays to the end.

RULES:
- No real time passes in these tests
- Expected delays use the 300 wpm sample sentence (300/300/240/160/300)
"""

import pytest

from rsvp_reader.core.engine import EngineState, PacingEngine
from rsvp_reader.core.events import EventQueue, EventType
from rsvp_reader.core.pacing import PacingConfig
from rsvp_reader.core.scheduler import ManualScheduler

from tests.conftest import SAMPLE_TEXT, SAMPLE_WORDS


class _CapturingScheduler(ManualScheduler):
    """ManualScheduler that keeps every callback it was handed."""

    def __init__(self):
        super().__init__()
        self.callbacks = []

    def schedule(self, delay_ms, callback):
        self.callbacks.append(callback)
        return super().schedule(delay_ms, callback)


# ---------------------------------------------------------------------------
# Playback
# ---------------------------------------------------------------------------


class TestPlayback:

    def test_initial_state(self, engine):
        assert engine.current_index == 0
        assert engine.total == 5
        assert engine.state == EngineState.PAUSED
        assert not engine.is_playing

    def test_play_emits_first_chunk_synchronously(self, engine, recorder):
        engine.play()
        assert recorder.contents == ["Hello,"]
        assert recorder.events[0].index == 0
        assert recorder.events[0].total == 5
        assert engine.current_index == 1
        assert engine.state == EngineState.PLAYING

    def test_plays_whole_sentence_with_delays(self, engine, recorder, scheduler):
        engine.play()
        scheduler.run_until_idle()

        assert recorder.contents == SAMPLE_WORDS + [""]
        assert recorder.types == ["word"] * 5 + ["end"]
        assert [e.index for e in recorder.events] == [0, 1, 2, 3, 4, 5]
        assert [e.delay_ms for e in recorder.events[:-1]] == pytest.approx(
            [300.0, 300.0, 240.0, 160.0, 300.0]
        )
        assert scheduler.now_ms() == pytest.approx(1300.0)

    def test_steps_follow_chunk_delays(self, engine, recorder, scheduler):
        engine.play()
        assert scheduler.advance(299) == 0
        assert scheduler.advance(1) == 1
        assert recorder.contents == ["Hello,", "world!"]

    def test_end_event_and_state(self, engine, recorder, scheduler):
        engine.play()
        scheduler.run_until_idle()

        end = recorder.events[-1]
        assert end.type == EventType.END
        assert end.content == ""
        assert end.index == 5
        assert end.total == 5
        assert not engine.is_playing
        assert engine.state == EngineState.IDLE
        assert scheduler.pending == 0

    def test_index_increases_by_one_per_firing(self, engine, recorder, scheduler):
        engine.play()
        seen = [engine.current_index]
        while scheduler.run_next():
            seen.append(engine.current_index)
        assert seen == [1, 2, 3, 4, 5, 5]

    def test_play_while_playing_is_noop(self, engine, recorder, scheduler):
        engine.play()
        engine.play()
        assert recorder.contents == ["Hello,"]
        assert scheduler.pending == 1

    def test_play_at_end_restarts(self, engine, recorder, scheduler):
        engine.play()
        scheduler.run_until_idle()
        recorder.events.clear()

        engine.play()
        assert recorder.contents == ["Hello,"]
        assert recorder.events[0].index == 0

    def test_empty_text_emits_end_immediately(self, make_engine, recorder, scheduler):
        engine = make_engine("")
        engine.play()
        assert len(recorder.events) == 1
        assert recorder.events[0].type == EventType.END
        assert recorder.events[0].index == 0
        assert recorder.events[0].total == 0
        assert not engine.is_playing
        assert scheduler.pending == 0

    def test_chunk_events_for_larger_chunks(self, make_engine, recorder, scheduler):
        engine = make_engine(config=PacingConfig(chunk_size=2))
        engine.play()
        scheduler.run_until_idle()
        assert recorder.contents == ["Hello, world!", "It's a", "test.", ""]
        assert recorder.types == ["chunk", "chunk", "chunk", "end"]

    def test_mapping_config_is_merged_over_defaults(self, scheduler):
        engine = PacingEngine(SAMPLE_TEXT, config={"chunk_size": 5}, scheduler=scheduler)
        assert engine.total == 1
        assert engine.config.words_per_minute == 300


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class TestTransport:

    def test_pause_keeps_position_and_stops_timer(self, engine, recorder, scheduler):
        engine.play()
        scheduler.run_next()
        engine.pause()

        assert engine.current_index == 2
        assert engine.state == EngineState.PAUSED
        assert scheduler.advance(10000) == 0
        assert recorder.contents == ["Hello,", "world!"]

    def test_resume_after_pause_continues(self, engine, recorder, scheduler):
        engine.play()
        engine.pause()
        engine.play()
        assert recorder.contents == ["Hello,", "world!"]

    def test_pause_when_paused_is_harmless(self, engine):
        engine.pause()
        engine.pause()
        assert engine.current_index == 0

    def test_stop_rewinds_without_resuming(self, engine, recorder, scheduler):
        engine.play()
        scheduler.run_next()
        engine.stop()
        assert engine.current_index == 0
        assert not engine.is_playing
        assert scheduler.advance(10000) == 0

    def test_restart_does_not_resume(self, engine, recorder, scheduler):
        engine.play()
        engine.restart()
        assert engine.current_index == 0
        assert not engine.is_playing
        scheduler.run_until_idle()
        assert recorder.contents == ["Hello,"]

    @pytest.mark.parametrize("target,expected", [(-5, 0), (3, 3), (105, 5)])
    def test_seek_to_clamps(self, engine, target, expected):
        engine.seek_to(target)
        assert engine.current_index == expected

    def test_seek_relative(self, engine):
        engine.seek(3)
        engine.seek(-1)
        assert engine.current_index == 2
        engine.seek(-10)
        assert engine.current_index == 0

    def test_seek_pauses_and_emits_nothing(self, engine, recorder, scheduler):
        engine.play()
        engine.seek(2)
        assert not engine.is_playing
        assert engine.current_index == 3
        assert scheduler.advance(10000) == 0
        assert recorder.contents == ["Hello,"]

    def test_play_after_seek_starts_at_new_position(self, engine, recorder):
        engine.seek_to(3)
        engine.play()
        assert recorder.contents == ["a"]
        assert recorder.events[0].index == 3

    def test_single_pending_timer_through_transport(self, engine, scheduler):
        for _ in range(3):
            engine.play()
            engine.pause()
            engine.play()
            assert scheduler.pending == 1
            engine.seek(-1)

    def test_stale_timer_after_pause_does_nothing(self, recorder):
        scheduler = _CapturingScheduler()
        engine = PacingEngine(SAMPLE_TEXT, scheduler=scheduler, sink=recorder)
        engine.play()
        stale = scheduler.callbacks[-1]

        engine.pause()
        stale()
        assert recorder.contents == ["Hello,"]
        assert engine.current_index == 1

    def test_stale_timer_after_resume_does_nothing(self, recorder):
        scheduler = _CapturingScheduler()
        engine = PacingEngine(SAMPLE_TEXT, scheduler=scheduler, sink=recorder)
        engine.play()
        stale = scheduler.callbacks[-1]

        # Resuming makes the engine playing again under a new generation
        engine.pause()
        engine.play()
        stale()
        assert recorder.contents == ["Hello,", "world!"]
        assert engine.current_index == 2
        assert scheduler.pending == 1

    def test_load_replaces_document(self, engine, recorder, scheduler):
        engine.play()
        engine.load("brand new text")
        assert engine.total == 3
        assert engine.current_index == 0
        assert not engine.is_playing
        assert scheduler.advance(10000) == 0

    def test_sink_pausing_from_callback(self, make_engine, scheduler):
        holder = {}
        seen = []

        def sink(event):
            seen.append(event.content)
            if event.content == "world!":
                holder["engine"].pause()

        engine = make_engine()
        engine.set_sink(sink)
        holder["engine"] = engine
        engine.play()
        scheduler.run_until_idle()

        assert seen == ["Hello,", "world!"]
        assert engine.current_index == 2
        assert scheduler.pending == 0

    def test_set_sink_replaces_previous(self, engine, recorder):
        other = []
        engine.set_sink(other.append)
        engine.play()
        assert recorder.events == []
        assert [e.content for e in other] == ["Hello,"]

    def test_no_sink_is_allowed(self, scheduler):
        engine = PacingEngine(SAMPLE_TEXT, scheduler=scheduler)
        engine.play()
        scheduler.run_until_idle()
        assert engine.current_index == 5


# ---------------------------------------------------------------------------
# Live configuration
# ---------------------------------------------------------------------------


class TestUpdateConfig:

    def test_speed_change_applies_to_next_step(self, engine, recorder, scheduler):
        engine.play()
        engine.update_config(words_per_minute=600)
        # The pending step was scheduled at the old speed
        scheduler.run_next()
        assert recorder.events[1].delay_ms == pytest.approx(150.0)
        assert engine.is_playing

    def test_rechunk_keeps_raw_index(self, engine, scheduler):
        engine.seek_to(4)
        engine.update_config({"chunk_size": 2})
        assert engine.total == 3
        assert engine.current_index == 3

    def test_rechunk_keeps_smaller_index(self, engine):
        engine.seek_to(2)
        engine.update_config(chunk_size=2)
        assert engine.current_index == 2
        assert engine.current_text == "test."

    def test_same_chunk_size_does_not_rechunk(self, engine):
        before = engine.chunks
        engine.seek_to(3)
        engine.update_config(words_per_minute=500)
        assert engine.chunks == before
        assert engine.current_index == 3

    def test_unknown_keys_ignored(self, engine):
        engine.update_config({"theme": "dark"})
        assert engine.config == PacingConfig()

    def test_playback_continues_after_rechunk(self, engine, recorder, scheduler):
        engine.play()
        engine.update_config(chunk_size=2)
        scheduler.run_until_idle()
        assert recorder.contents == ["Hello,", "It's a", "test.", ""]


# ---------------------------------------------------------------------------
# Accessors and EventQueue
# ---------------------------------------------------------------------------


class TestAccessors:

    def test_progress(self, engine):
        assert engine.progress == 0.0
        engine.seek_to(2)
        assert engine.progress == pytest.approx(0.4)
        engine.seek_to(5)
        assert engine.progress == 1.0

    def test_progress_of_empty_engine(self, make_engine):
        assert make_engine("").progress == 0.0

    def test_remaining_ms(self, engine):
        assert engine.remaining_ms() == pytest.approx(1300.0)
        engine.seek_to(3)
        assert engine.remaining_ms() == pytest.approx(460.0)

    def test_current_text_at_end(self, engine):
        engine.seek_to(5)
        assert engine.current_chunk is None
        assert engine.current_text == ""
        assert engine.state == EngineState.IDLE

    def test_repr(self, engine):
        assert "index=0" in repr(engine)


class TestEventQueue:

    def test_drain_returns_in_order(self, engine, scheduler):
        queue = EventQueue()
        engine.set_sink(queue)
        engine.play()
        scheduler.run_next()
        assert len(queue) == 2
        assert queue.peek_last().content == "world!"
        assert [e.content for e in queue.drain()] == ["Hello,", "world!"]
        assert len(queue) == 0

    def test_bounded_queue_drops_oldest(self, engine, scheduler):
        queue = EventQueue(maxlen=2)
        engine.set_sink(queue)
        engine.play()
        scheduler.run_until_idle()
        assert queue.dropped == 4
        assert [e.type for e in queue.drain()] == [EventType.WORD, EventType.END]

    def test_event_to_dict(self, engine, recorder):
        engine.play()
        data = recorder.events[0].to_dict()
        assert data == {
            "type": "word",
            "content": "Hello,",
            "index": 0,
            "total": 5,
            "delay_ms": 300.0,
        }
