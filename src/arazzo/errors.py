"""예외 계층 — decode / encode / 검증 실패.

검증 결과(ValidationResult)는 예외가 아니라 데이터로 반환된다.
예외는 입력 자체를 읽을 수 없거나 출력할 수 없을 때만 발생한다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from arazzo.models.document import Arazzo
    from arazzo.validation import ValidationResult


class ArazzoError(Exception):
    """arazzo 패키지 공통 예외."""


class UnsupportedFormatError(ArazzoError, ValueError):
    """알 수 없는 직렬화 포맷."""

    def __init__(self, fmt: Any) -> None:
        super().__init__(f"지원하지 않는 포맷: {fmt!r} (json, yaml, hcl 중 하나)")
        self.format = fmt


class DecodeError(ArazzoError):
    """입력 바이트 → 문서 트리 변환 실패.

    details 에는 실패한 필드별 메시지가 하나씩 들어간다
    (예: "workflows → 0 → steps → 1 → operationId: Input should be a valid string").
    """

    def __init__(self, message: str, *, format: str = "", details: list[str] | None = None) -> None:
        self.format = format
        self.summary = message
        self.details = list(details or [])
        if self.details:
            message = f"{message}: " + "; ".join(self.details)
        super().__init__(message)


class HCLDecodeError(DecodeError):
    """HCL decode 에러 누적 결과 — 성공한 필드까지 채워진 부분 문서를 함께 보관."""

    def __init__(self, details: list[str], document: Arazzo | None = None) -> None:
        super().__init__("HCL decode errors", format="hcl", details=details)
        self.document = document


class EncodeError(ArazzoError):
    """문서 트리 → 바이트 변환 실패."""


class DocumentValidationError(ArazzoError):
    """ValidationResult.raise_for_errors() 가 던지는 예외."""

    def __init__(self, result: ValidationResult) -> None:
        super().__init__(result.error_message())
        self.result = result
