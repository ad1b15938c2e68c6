"""
봇 탐지용 행동 데이터 수집 시스템

- botdetect.collector: 클라이언트 측 이벤트 버퍼링 및 주기 전송 파이프라인
- botdetect.main: 수집/조회 API (FastAPI)
"""

__version__ = "1.0.0"
