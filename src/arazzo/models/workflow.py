"""Workflow — 하나 이상의 API 에 걸친 스텝 순서."""

from __future__ import annotations

from pydantic import Field, JsonValue

from arazzo.models.actions import FailureActionOrReusable, SuccessActionOrReusable
from arazzo.models.base import ArazzoModel
from arazzo.models.parameter import ParameterOrReusable
from arazzo.models.step import Step


class Workflow(ArazzoModel):
    workflow_id: str | None = None
    summary: str | None = None
    description: str | None = None

    # JSON Schema 2020-12 형태의 입력 정의 ($ref 등 메타 키 포함 가능)
    inputs: JsonValue = None

    depends_on: list[str] | None = None
    steps: list[Step] = Field(default_factory=list)
    success_actions: list[SuccessActionOrReusable] | None = None
    failure_actions: list[FailureActionOrReusable] | None = None
    outputs: dict[str, str] | None = None
    parameters: list[ParameterOrReusable] | None = None

    def get_step(self, step_id: str) -> Step | None:
        """stepId 로 조회 (중복이면 첫 번째)."""
        for step in self.steps:
            if step.step_id == step_id:
                return step
        return None
