import logging
from typing import Dict, Any, Optional
from datetime import datetime

logger = logging.getLogger(__name__)


class NERBackendError(Exception):
    """Remote NER backend could not produce entities"""

    def __init__(self, backend: str, message: str):
        super().__init__(f"[{backend}] {message}")
        self.backend = backend


class BackendUnavailableError(NERBackendError):
    """Network failure, timeout or non-2xx status"""

    def __init__(self, backend: str, message: str, status_code: Optional[int] = None):
        super().__init__(backend, message)
        self.status_code = status_code


class MalformedResponseError(NERBackendError):
    """Backend answered 2xx with a payload that cannot be used"""


class PDFProcessingError(Exception):
    """PDF could not be opened or read"""


class ErrorHandler:
    """에러 기록 및 사용자 친화적 메시지 변환"""

    def __init__(self, max_log_size: int = 1000):
        self.error_messages = {
            # 백엔드 에러
            "BackendUnavailableError": "개체명 인식 서버에 연결할 수 없습니다.",
            "MalformedResponseError": "개체명 인식 서버의 응답을 해석할 수 없습니다.",
            "NERBackendError": "개체명 인식 중 오류가 발생했습니다.",

            # 입력 에러
            "ValidationError": "입력 데이터가 올바르지 않습니다.",
            "FileNotFoundError": "파일을 찾을 수 없습니다.",
            "PDFProcessingError": "PDF 파일 처리 중 오류가 발생했습니다.",
        }

        self.error_log = []
        self.max_log_size = max_log_size

    def get_user_message(self, error_type: str, default: Optional[str] = None) -> str:
        """에러 타입에 따른 사용자 친화적 메시지 반환"""
        message = self.error_messages.get(error_type)
        if not message:
            message = default or "일시적인 오류가 발생했습니다. 잠시 후 다시 시도해 주세요."
        return message

    def handle_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """에러 기록 및 로깅 (예외는 다시 던지지 않음)"""
        error_id = datetime.now().isoformat()
        error_type = type(error).__name__
        error_message = str(error)

        logger.warning(f"{error_type}: {error_message} (context: {context})")

        self.log_error({
            "id": error_id,
            "type": error_type,
            "message": error_message,
            "context": context,
            "timestamp": datetime.now().isoformat(),
        })

        return {
            "error_id": error_id,
            "user_message": self.get_user_message(error_type),
            "error_type": error_type,
            "technical_message": error_message,
            "retry_available": self.is_retry_available(error_type),
        }

    def log_error(self, error_data: Dict[str, Any]):
        """에러 로그 저장"""
        self.error_log.append(error_data)

        # 로그 크기 제한
        if len(self.error_log) > self.max_log_size:
            self.error_log = self.error_log[-self.max_log_size:]

    def is_retry_available(self, error_type: str) -> bool:
        """재시도 가능 여부 판단"""
        return error_type in ("BackendUnavailableError", "TimeoutError", "ConnectionError")

    def get_error_stats(self) -> Dict[str, Any]:
        """에러 통계 반환"""
        if not self.error_log:
            return {
                "total_errors": 0,
                "error_types": {},
                "recent_errors": []
            }

        error_types = {}
        for error in self.error_log:
            error_type = error.get("type", "Unknown")
            error_types[error_type] = error_types.get(error_type, 0) + 1

        recent_errors = self.error_log[-10:]  # 최근 10개

        return {
            "total_errors": len(self.error_log),
            "error_types": error_types,
            "recent_errors": [
                {
                    "id": e.get("id"),
                    "type": e.get("type"),
                    "timestamp": e.get("timestamp"),
                    "message": e.get("message")[:100]  # 메시지 요약
                }
                for e in recent_errors
            ]
        }

    def clear_error_log(self):
        """에러 로그 초기화"""
        self.error_log = []
        logger.info("Error log cleared")
