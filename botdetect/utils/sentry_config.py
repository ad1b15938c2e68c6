"""
Sentry 에러 트래킹 설정

수집 API의 예외 자동 캡처 및 성능 추적.
SENTRY_DSN이 없으면 아무것도 하지 않는다.
"""

import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration


def init_sentry(
    dsn: Optional[str],
    environment: str = "development",
    release: str = "1.0.0",
    traces_sample_rate: float = 1.0,
) -> bool:
    """
    Sentry SDK 초기화

    수집 엔드포인트는 호출량이 많으므로 프로덕션에서는 샘플링 비율을 낮춘다.

    Returns:
        bool: 초기화 여부
    """
    if not dsn:
        logging.info("Sentry DSN이 설정되지 않았습니다. Sentry 모니터링이 비활성화됩니다.")
        return False

    if environment == "production":
        traces_sample_rate = min(traces_sample_rate, 0.1)
    elif environment == "staging":
        traces_sample_rate = min(traces_sample_rate, 0.5)

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[
            FastApiIntegration(
                transaction_style="endpoint",
                failed_request_status_codes={*range(500, 600)},
            ),
            SqlalchemyIntegration(),
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR,
            ),
        ],
        traces_sample_rate=traces_sample_rate,
        release=release,
        send_default_pii=False,
        before_send=before_send_filter,
        attach_stacktrace=True,
    )

    sentry_sdk.set_tag("service", "behavior-api")

    logging.info(
        f"Sentry 초기화 완료: environment={environment}, "
        f"traces_sample_rate={traces_sample_rate}"
    )
    return True


def before_send_filter(event, hint):
    """
    이벤트 전송 전 필터링

    - 호출자 IP는 마지막 옥텟 마스킹 (1.2.3.* 형태)
    - 요청 본문(행동 데이터 배치)은 전송하지 않음
    """
    request = event.get("request")
    if request:
        env = request.get("env", {})
        ip = env.get("REMOTE_ADDR")
        if ip:
            parts = ip.split(".")
            if len(parts) == 4:
                env["REMOTE_ADDR"] = f"{parts[0]}.{parts[1]}.{parts[2]}.*"

        if "data" in request:
            request["data"] = "[Filtered]"

    return event
