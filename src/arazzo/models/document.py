"""Arazzo 문서 루트 — info / sourceDescriptions / workflows / components."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import Field

from arazzo.models.base import ArazzoModel
from arazzo.models.components import Components
from arazzo.models.workflow import Workflow

if TYPE_CHECKING:
    from arazzo.validation import ValidationResult


class SourceDescriptionType(StrEnum):
    ARAZZO = "arazzo"
    OPENAPI = "openapi"


class Info(ArazzoModel):
    """문서 메타데이터 — title, version 필수."""

    title: str | None = None
    summary: str | None = None
    description: str | None = None
    version: str | None = None


class SourceDescription(ArazzoModel):
    """스텝이 operation 을 가져오는 외부 API 기술 문서."""

    name: str | None = None
    url: str | None = None
    type: str | None = None


class Arazzo(ArazzoModel):
    """Arazzo 문서.

    decode 는 구조만 채우고 규칙 검사는 하지 않는다.
    규칙 위반은 validate() 결과로 확인한다.
    """

    arazzo: str | None = None
    info: Info | None = None
    source_descriptions: list[SourceDescription] = Field(default_factory=list)
    workflows: list[Workflow] = Field(default_factory=list)
    components: Components | None = None

    def get_workflow(self, workflow_id: str) -> Workflow | None:
        for workflow in self.workflows:
            if workflow.workflow_id == workflow_id:
                return workflow
        return None

    def get_source_description(self, name: str) -> SourceDescription | None:
        for source in self.source_descriptions:
            if source.name == name:
                return source
        return None

    def validate(self) -> ValidationResult:
        """구조/의미 규칙 검사 — 문서를 변경하지 않는다."""
        from arazzo.validation import validate

        return validate(self)
