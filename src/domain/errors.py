"""
Error definitions for the view renderer.

규칙:
- 조용한 실패 금지 → 렌더 실패는 모두 ViewRenderError 하나로 정규화
- 원인 예외는 __cause__ 로 보존 (진단용)
- 잘못된 설정은 무시하지 않고 ConfigurationError로 전파
- 메시지/직렬화 형식은 공통 에러 규칙을 따른다: "[CODE] k=v, ..." / to_dict()
"""

from typing import Any


class ViewError(Exception):
    """
    뷰 렌더러 공통 에러.

    Usage:
        raise ViewRenderError("TEMPLATE_NOT_FOUND", template="/a/b.j2") from e
    """

    def __init__(self, code: str, **context: Any) -> None:
        self.code = code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    @property
    def cause(self) -> BaseException | None:
        """감싼 원인 예외 (없으면 None)."""
        return self.__cause__

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            **self.context,
        }


class ViewRenderError(ViewError):
    """
    렌더링 실패.

    템플릿 없음 / 컴파일 실패 / 실행 실패를 모두 이 타입으로 던진다.
    실행 실패 시 출력 스트림에 일부 바이트가 이미 쓰였을 수 있다 (롤백 없음).
    """


class ConfigurationError(ViewError):
    """엔진 설정 키/값이 유효하지 않음."""


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Render ===
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_SYNTAX_ERROR = "TEMPLATE_SYNTAX_ERROR"
    TEMPLATE_EXECUTION_FAILED = "TEMPLATE_EXECUTION_FAILED"
    ENCODING_UNSUPPORTED = "ENCODING_UNSUPPORTED"

    # === Configuration ===
    UNKNOWN_SETTING = "UNKNOWN_SETTING"
    INVALID_SETTING_VALUE = "INVALID_SETTING_VALUE"
