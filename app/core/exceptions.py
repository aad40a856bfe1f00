# app/core/exceptions.py
"""
인사이트 서비스 공통 예외.

요청 핸들러 경계(app/__init__.py의 errorhandler)에서 HTTP 응답으로 변환됩니다.
재시도는 하지 않으며, 모든 실패는 해당 요청 하나에만 영향을 줍니다.
"""


class InsightError(Exception):
    """모든 서비스 예외의 기반 클래스."""
    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error_code": self.error_code, "message": self.message}


class AuthenticationError(InsightError):
    """Bearer 토큰이 없거나 유효하지 않은 경우 (401)."""
    status_code = 401
    error_code = "UNAUTHORIZED"


class RequestValidationError(InsightError):
    """필수 요청 필드가 누락된 경우 (400)."""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class UpstreamError(InsightError):
    """데이터 저장소 또는 모델 호출 실패 (500). 메시지는 그대로 클라이언트에 전달합니다."""
    status_code = 500
    error_code = "UPSTREAM_ERROR"


class ContextFetchError(UpstreamError):
    """반려동물 컨텍스트 조회 실패. /context 에서는 400으로 변환됩니다."""
    error_code = "CONTEXT_FETCH_FAILED"


class ParseError(UpstreamError):
    """모델 응답이 JSON이 아니거나 필수 키/값이 잘못된 경우."""
    error_code = "ANALYSIS_PARSE_FAILED"

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.details = details

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.details:
            payload["details"] = self.details
        return payload
