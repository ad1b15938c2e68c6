"""
이벤트 버퍼 유닛 테스트
"""

from dataclasses import fields

from botdetect.collector.buffer import EventBuffer
from botdetect.collector.config import CollectorConfig


def _mouse(clock, x=0, y=0):
    return {"x": x, "y": y, "t": clock.now_ms()}


class TestMouseThrottle:
    """마우스 이동 스로틀 (50ms)"""

    def test_first_event_always_accepted(self, clock):
        """첫 이벤트는 항상 추가"""
        buffer = EventBuffer(clock)

        assert buffer.add_mouse(_mouse(clock)) is True
        assert len(buffer.mouse_events) == 1

    def test_events_within_throttle_are_dropped(self, clock):
        """50ms 이내 이벤트는 버림"""
        buffer = EventBuffer(clock)

        buffer.add_mouse(_mouse(clock))
        clock.advance(10)
        assert buffer.add_mouse(_mouse(clock)) is False
        clock.advance(39)
        assert buffer.add_mouse(_mouse(clock)) is False
        clock.advance(1)
        assert buffer.add_mouse(_mouse(clock)) is True

        assert len(buffer.mouse_events) == 2

    def test_recorded_events_are_spaced_at_least_throttle_interval(self, clock):
        """기록된 마우스 이벤트 간격은 항상 50ms 이상"""
        buffer = EventBuffer(clock)

        # 7ms 간격으로 200회 이동
        for i in range(200):
            buffer.add_mouse(_mouse(clock, x=i))
            clock.advance(7)

        timestamps = [event["t"] for event in buffer.mouse_events]
        assert len(timestamps) > 1
        assert all(b - a >= 50 for a, b in zip(timestamps, timestamps[1:]))

    def test_throttle_measured_from_last_appended_event(self, clock):
        """스로틀 기준은 마지막으로 추가된 이벤트 (버려진 이벤트 아님)"""
        buffer = EventBuffer(clock)

        buffer.add_mouse(_mouse(clock))
        for _ in range(4):
            clock.advance(12)
            buffer.add_mouse(_mouse(clock))
        # 마지막 추가 후 48ms 경과 시점까지 전부 버려짐
        assert len(buffer.mouse_events) == 1

        clock.advance(2)
        assert buffer.add_mouse(_mouse(clock)) is True


class TestScrollDebounce:
    """스크롤 디바운스 (100ms)"""

    def test_only_last_position_in_quiet_window_is_recorded(self, clock):
        """연속 스크롤 중에는 기록하지 않고 멈춘 뒤 한 번만 기록"""
        buffer = EventBuffer(clock)
        position = {"y": 0}

        def sample():
            return {"x": 0, "y": position["y"], "t": clock.now_ms()}

        for y in (100, 200, 300, 400):
            position["y"] = y
            buffer.signal_scroll(sample)
            clock.advance(30)

        assert buffer.scroll_events == []

        clock.advance(100)
        assert len(buffer.scroll_events) == 1
        assert buffer.scroll_events[0]["y"] == 400

    def test_sample_reads_state_when_timer_fires(self, clock):
        """타이머 만료 시점의 현재 상태를 읽음"""
        buffer = EventBuffer(clock)
        position = {"y": 10}

        buffer.signal_scroll(lambda: {"y": position["y"], "t": clock.now_ms()})
        position["y"] = 999
        clock.advance(100)

        assert buffer.scroll_events[0]["y"] == 999

    def test_cancel_pending(self, clock):
        """대기 중인 디바운스 취소"""
        buffer = EventBuffer(clock)

        buffer.signal_scroll(lambda: {"y": 1, "t": clock.now_ms()})
        buffer.cancel_pending()
        clock.advance(500)

        assert buffer.scroll_events == []

    def test_failing_sample_does_not_raise(self, clock):
        """샘플링 실패는 로그만 남김"""
        buffer = EventBuffer(clock)

        def broken():
            raise RuntimeError("no document")

        buffer.signal_scroll(broken)
        clock.advance(100)

        assert buffer.scroll_events == []


class TestSoftCap:
    """큐 상한 및 트리밍"""

    def test_overflow_trims_to_retention_floor(self, clock):
        """max_events 초과 시 앞쪽을 잘라 보존 개수까지 줄임"""
        buffer = EventBuffer(clock, CollectorConfig(max_events=1000))

        for i in range(1001):
            buffer.add_click({"t": i})

        assert len(buffer.click_events) == 200
        # 최신 이벤트 유지
        assert buffer.click_events[-1]["t"] == 1000
        assert buffer.click_events[0]["t"] == 801

    def test_each_queue_has_its_own_floor(self, clock):
        config = CollectorConfig(max_events=1000)
        buffer = EventBuffer(clock, config)

        for i in range(1001):
            buffer.add_key({"t": i})

        assert len(buffer.key_events) == 300

    def test_page_views_trimmed_to_floor_on_overflow(self, clock):
        """페이지 뷰도 max_events 초과 시 보존 개수(100)까지 줄임"""
        buffer = EventBuffer(clock, CollectorConfig(max_events=1000))

        for i in range(1001):
            buffer.add_page_view({"t": i, "type": "spa_pushstate"})

        assert len(buffer.page_views) == 100
        assert buffer.page_views[-1]["t"] == 1000

    def test_long_lived_spa_tab_page_views_stay_bounded(self, clock):
        """SPA 내비게이션이 계속되어도 페이지 뷰 큐는 max_events 이하"""
        buffer = EventBuffer(clock, CollectorConfig(max_events=1000))

        for i in range(5000):
            buffer.add_page_view({"t": i, "type": "spa_pushstate"})
            assert len(buffer.page_views) <= 1000

        assert buffer.page_views[-1]["t"] == 4999

    def test_trim_after_flush_floors(self, clock):
        """전송 후 보존 개수: mouse 50, click 20, scroll 10, key 30"""
        buffer = EventBuffer(clock)
        buffer.mouse_events.extend({"t": i} for i in range(120))
        buffer.click_events.extend({"t": i} for i in range(40))
        buffer.scroll_events.extend({"t": i} for i in range(15))
        buffer.key_events.extend({"t": i} for i in range(5))
        buffer.page_views.extend({"t": i} for i in range(7))

        buffer.trim_after_flush()

        assert buffer.counts() == {
            "mouse_events": 50,
            "click_events": 20,
            "scroll_events": 10,
            "key_events": 5,
            "page_views": 7,
        }
        assert buffer.mouse_events[0]["t"] == 70

    def test_has_events_ignores_page_views(self, clock):
        buffer = EventBuffer(clock)
        buffer.add_page_view({"type": "initial"})

        assert buffer.has_events() is False

        buffer.add_key({"t": 1})
        assert buffer.has_events() is True

    def test_snapshot_is_shallow_copy(self, clock):
        buffer = EventBuffer(clock)
        buffer.add_click({"t": 1})

        snapshot = buffer.snapshot()
        buffer.add_click({"t": 2})

        assert len(snapshot["click_events"]) == 1


class TestCollectorConfig:
    """수집기 설정"""

    def test_every_queue_has_overflow_floor(self):
        config = CollectorConfig()

        assert set(config.overflow_retain) == {
            "mouse_events",
            "click_events",
            "scroll_events",
            "key_events",
            "page_views",
        }
        assert all(
            floor < config.max_events for floor in config.overflow_retain.values()
        )

    def test_fields(self):
        """설정 항목은 모두 수집 파이프라인에서 사용됨"""
        assert {f.name for f in fields(CollectorConfig)} == {
            "api_endpoint",
            "batch_interval_ms",
            "max_events",
            "mouse_throttle_ms",
            "scroll_debounce_ms",
            "click_text_limit",
            "session_storage_key",
            "overflow_retain",
            "flush_retain",
        }
