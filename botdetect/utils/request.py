"""요청 메타데이터 추출 유틸"""

from fastapi import Request


def get_client_ip(request: Request) -> str:
    """
    클라이언트 IP 추출

    프록시 뒤에 있을 경우 X-Forwarded-For 헤더의 첫 번째 주소를 사용한다.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
