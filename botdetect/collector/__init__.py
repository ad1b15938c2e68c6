"""클라이언트 행동 데이터 수집 파이프라인"""

from botdetect.collector.buffer import EventBuffer
from botdetect.collector.clock import AsyncioClock, Clock, RepeatingTimer, TimerHandle
from botdetect.collector.config import CollectorConfig
from botdetect.collector.fingerprint import Fingerprint, collect_fingerprint
from botdetect.collector.scheduler import FlushScheduler
from botdetect.collector.session import get_or_create_session_id
from botdetect.collector.tracker import BehaviorTracker, PageState
from botdetect.collector.transmitter import DeliveryGuarantee, Transmitter
from botdetect.collector.transport import BeaconTransport, KeepaliveTransport, Transport

__all__ = [
    "AsyncioClock",
    "BeaconTransport",
    "BehaviorTracker",
    "Clock",
    "CollectorConfig",
    "DeliveryGuarantee",
    "EventBuffer",
    "Fingerprint",
    "FlushScheduler",
    "KeepaliveTransport",
    "PageState",
    "RepeatingTimer",
    "TimerHandle",
    "Transmitter",
    "Transport",
    "collect_fingerprint",
    "get_or_create_session_id",
]
