"""Step — 워크플로우의 단위 작업 (operation 호출 또는 하위 workflow 호출).

operationId / operationPath / workflowId 중 정확히 하나만 설정되어야 하지만,
이 규칙은 구조로 강제하지 않고 validation 에서 검사한다.
"""

from __future__ import annotations

from typing import Any

from pydantic import JsonValue, field_serializer, field_validator

from arazzo.models.actions import FailureActionOrReusable, SuccessActionOrReusable
from arazzo.models.base import ArazzoModel
from arazzo.models.criterion import Criterion
from arazzo.values import to_value


class PayloadReplacement(ArazzoModel):
    """payload 내 위치(JSON Pointer / XPath)와 그 위치에 넣을 값."""

    target: str | None = None
    value: str | None = None


class RequestBody(ArazzoModel):
    content_type: str | None = None
    payload: JsonValue = None
    replacements: list[PayloadReplacement] | None = None


class Step(ArazzoModel):
    step_id: str | None = None
    description: str | None = None
    operation_id: str | None = None
    operation_path: str | None = None
    workflow_id: str | None = None

    # Parameter 노드, ReusableObject, 또는 불투명 값(dict / 파라미터 이름 문자열)이 섞인 목록.
    # 생성 도구가 이름만 넣어 두고 나중에 위치/값을 채우는 용도를 허용한다.
    parameters: list[Any] | None = None

    request_body: RequestBody | None = None
    success_criteria: list[Criterion] | None = None
    on_success: list[SuccessActionOrReusable] | None = None
    on_failure: list[FailureActionOrReusable] | None = None
    outputs: dict[str, str] | None = None

    @field_validator("parameters", mode="before")
    @classmethod
    def keep_parameter_entries(cls, v: Any) -> Any:
        if not isinstance(v, (list, tuple)):
            return v
        try:
            return [item if isinstance(item, ArazzoModel) else to_value(item) for item in v]
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_serializer("parameters")
    def dump_parameter_entries(self, v: list[Any] | None) -> list[Any] | None:
        if v is None:
            return None
        return [item.to_dict() if isinstance(item, ArazzoModel) else item for item in v]

    @property
    def is_operation_step(self) -> bool:
        return bool(self.operation_id or self.operation_path)

    @property
    def is_workflow_step(self) -> bool:
        return bool(self.workflow_id)
