"""
핑거프린트 수집 유닛 테스트
"""

from botdetect.collector.fingerprint import (
    ConnectionInfo,
    Fingerprint,
    collect_fingerprint,
    host_environment,
)


class _BrokenNavigator:
    """속성 접근 시 예외를 던지는 환경"""

    def __getattr__(self, name):
        raise PermissionError(f"blocked: {name}")


class TestCollectFingerprint:
    """핑거프린트 수집"""

    def test_full_environment(self):
        env = {
            "userAgent": "Mozilla/5.0",
            "language": "ko-KR",
            "platform": "MacIntel",
            "screen": {"width": 1920, "height": 1080, "colorDepth": 24},
            "timeZone": "Asia/Seoul",
            "maxTouchPoints": 0,
            "cookieEnabled": True,
            "javaEnabled": lambda: False,
            "pdfViewerEnabled": True,
            "doNotTrack": "1",
            "connection": {"effectiveType": "4g", "downlink": 10, "rtt": 50},
            "deviceMemory": 8,
            "hardwareConcurrency": 10,
        }

        fp = collect_fingerprint(env)

        assert fp.ua == "Mozilla/5.0"
        assert fp.scrw == 1920
        assert fp.color == 24
        assert fp.tz == "Asia/Seoul"
        assert fp.cookies is True
        assert fp.java is False
        assert fp.doNotTrack == "1"
        assert fp.connection == ConnectionInfo(effectiveType="4g", downlink=10, rtt=50)
        assert fp.deviceMemory == 8

    def test_defaults_for_missing_attributes(self):
        """누락된 속성은 기본값"""
        fp = collect_fingerprint({})

        assert fp == Fingerprint()
        assert fp.ua == "unknown"
        assert fp.scrw == 0
        assert fp.cookies is False
        assert fp.doNotTrack == "unspecified"
        assert fp.connection is None
        assert fp.deviceMemory == "unknown"
        assert fp.hardwareConcurrency == "unknown"

    def test_none_environment(self):
        assert collect_fingerprint(None) == Fingerprint()

    def test_failing_attributes_never_raise(self):
        """속성 읽기가 실패해도 예외 없이 기본값"""
        fp = collect_fingerprint({"screen": _BrokenNavigator(), "userAgent": "UA"})

        assert fp.ua == "UA"
        assert fp.scrw == 0
        assert fp.scrh == 0

    def test_invalid_numeric_falls_back(self):
        fp = collect_fingerprint({"screen": {"width": "wide"}})

        assert fp.scrw == 0

    def test_to_dict_uses_wire_keys(self):
        data = collect_fingerprint({"timeZone": "UTC"}).to_dict()

        assert data["tz"] == "UTC"
        assert {"ua", "lang", "plat", "scrw", "scrh", "color", "maxTouch"} <= set(data)

    def test_host_environment_is_collectable(self):
        fp = collect_fingerprint(host_environment())

        assert fp.ua.startswith("python/")
        assert fp.maxTouch == 0
