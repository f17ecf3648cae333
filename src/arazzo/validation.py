"""검증 엔진 — 문서 트리의 구조/의미 규칙 검사.

validate(document) 는 순수 함수다:
  - 문서를 변경하지 않는다.
  - 첫 위반에서 멈추지 않고 트리 전체를 돌며 모든 위반을 모은다.
  - 위반은 예외가 아니라 ValidationResult.errors 로 돌려준다.

경로 표기: "workflows[0].steps[1].stepId" 처럼 실패한 필드를 가리킨다.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from arazzo.errors import DocumentValidationError
from arazzo.models.actions import FailureAction, FailureActionType, SuccessAction, SuccessActionType
from arazzo.models.components import Components
from arazzo.models.criterion import (
    JSONPATH_VERSION,
    XPATH_VERSIONS,
    Criterion,
    CriterionExpressionType,
    CriterionType,
)
from arazzo.models.document import Arazzo, Info, SourceDescription, SourceDescriptionType
from arazzo.models.parameter import Parameter, ParameterIn
from arazzo.models.step import PayloadReplacement, RequestBody, Step
from arazzo.models.workflow import Workflow

logger = structlog.get_logger()

ARAZZO_VERSION_PATTERN = re.compile(r"^1\.0\.\d+(-.+)?$")
SOURCE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")
COMPONENT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\.\-_]+$")
OUTPUT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\.\-_]+$")

MISSING = "required field is missing"
MISSING_OR_EMPTY = "required field is missing or empty (minItems: 1)"
STEP_TARGETS = "operationId, operationPath, or workflowId"


# ─── 결과 모델 ───────────────────────────────────────


@dataclass
class ValidationIssue:
    """단일 위반 — 경로 + 메시지."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}


@dataclass
class ValidationResult:
    """검증 결과. errors 가 비어 있으면 통과."""

    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, path: str, message: str) -> None:
        self.errors.append(ValidationIssue(path, message))

    def error_message(self) -> str:
        """모든 위반을 "path: message; ..." 한 줄로."""
        return "; ".join(str(e) for e in self.errors)

    def raise_for_errors(self) -> None:
        if self.errors:
            raise DocumentValidationError(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }


# ─── 진입점 ──────────────────────────────────────────


def validate(document: Arazzo) -> ValidationResult:
    """문서 전체 검사 — 위반 목록을 모두 담은 결과를 반환한다."""
    result = ValidationResult()
    if not isinstance(document, Arazzo):
        result.add("", f"expected an Arazzo document; got {type(document).__name__}")
        return result

    if not document.arazzo:
        result.add("arazzo", MISSING)
    elif not ARAZZO_VERSION_PATTERN.fullmatch(str(document.arazzo)):
        result.add("arazzo", f"must match pattern ^1\\.0\\.\\d+(-.+)?$; got {document.arazzo}")

    if document.info is None:
        result.add("info", MISSING)
    elif isinstance(document.info, Info):
        _validate_info(document.info, "info", result)

    if not document.source_descriptions:
        result.add("sourceDescriptions", MISSING_OR_EMPTY)
    else:
        names: set[str] = set()
        for i, source in enumerate(document.source_descriptions):
            if not isinstance(source, SourceDescription):
                continue
            path = f"sourceDescriptions[{i}]"
            _validate_source_description(source, path, result)
            if source.name:
                if source.name in names:
                    result.add(f"{path}.name", f"duplicate source description name: {source.name}")
                names.add(source.name)

    if not document.workflows:
        result.add("workflows", MISSING_OR_EMPTY)
    else:
        workflow_ids: set[str] = set()
        for i, workflow in enumerate(document.workflows):
            if not isinstance(workflow, Workflow):
                continue
            path = f"workflows[{i}]"
            _validate_workflow(workflow, path, result)
            if workflow.workflow_id:
                if workflow.workflow_id in workflow_ids:
                    result.add(f"{path}.workflowId", f"duplicate workflowId: {workflow.workflow_id}")
                workflow_ids.add(workflow.workflow_id)

    if isinstance(document.components, Components):
        _validate_components(document.components, "components", result)

    logger.debug("document_validated", errors=len(result.errors))
    return result


# ─── 노드별 규칙 ──────────────────────────────────────


def _validate_info(info: Info, path: str, result: ValidationResult) -> None:
    if not info.title:
        result.add(f"{path}.title", MISSING)
    if not info.version:
        result.add(f"{path}.version", MISSING)


def _validate_source_description(source: SourceDescription, path: str, result: ValidationResult) -> None:
    if not source.name:
        result.add(f"{path}.name", MISSING)
    elif not SOURCE_NAME_PATTERN.fullmatch(source.name):
        result.add(f"{path}.name", f"must match pattern ^[A-Za-z0-9_\\-]+$; got {source.name}")

    if not source.url:
        result.add(f"{path}.url", MISSING)

    if source.type and source.type not in set(SourceDescriptionType):
        result.add(f"{path}.type", f"must be 'arazzo' or 'openapi'; got {source.type}")


def _validate_outputs(outputs: Mapping[str, Any] | None, path: str, result: ValidationResult) -> None:
    for key in outputs or {}:
        if not OUTPUT_NAME_PATTERN.fullmatch(key):
            result.add(
                f"{path}.outputs.{key}",
                f"output name must match pattern ^[a-zA-Z0-9\\.\\-_]+$; got {key}",
            )


def _validate_workflow(workflow: Workflow, path: str, result: ValidationResult) -> None:
    if not workflow.workflow_id:
        result.add(f"{path}.workflowId", MISSING)

    if not workflow.steps:
        result.add(f"{path}.steps", MISSING_OR_EMPTY)
    else:
        step_ids: set[str] = set()
        for i, step in enumerate(workflow.steps):
            if not isinstance(step, Step):
                continue
            step_path = f"{path}.steps[{i}]"
            _validate_step(step, step_path, result)
            if step.step_id:
                if step.step_id in step_ids:
                    result.add(f"{step_path}.stepId", f"duplicate stepId: {step.step_id}")
                step_ids.add(step.step_id)

    _validate_outputs(workflow.outputs, path, result)

    # 재사용 참조는 참조 대상(components) 쪽에서 검사된다
    for i, action in enumerate(workflow.success_actions or []):
        if isinstance(action, SuccessAction):
            _validate_success_action(action, f"{path}.successActions[{i}]", result)
    for i, action in enumerate(workflow.failure_actions or []):
        if isinstance(action, FailureAction):
            _validate_failure_action(action, f"{path}.failureActions[{i}]", result)
    for i, param in enumerate(workflow.parameters or []):
        if isinstance(param, Parameter):
            _validate_parameter(param, f"{path}.parameters[{i}]", result)


def _validate_step(step: Step, path: str, result: ValidationResult) -> None:
    if not step.step_id:
        result.add(f"{path}.stepId", MISSING)

    targets = sum(1 for target in (step.operation_id, step.operation_path, step.workflow_id) if target)
    if targets == 0:
        result.add(path, f"must have one of: {STEP_TARGETS}")
    elif targets > 1:
        result.add(path, f"must have only one of: {STEP_TARGETS}")

    _validate_outputs(step.outputs, path, result)

    if isinstance(step.request_body, RequestBody):
        _validate_request_body(step.request_body, f"{path}.requestBody", result)

    for i, criterion in enumerate(step.success_criteria or []):
        if isinstance(criterion, Criterion):
            _validate_criterion(criterion, f"{path}.successCriteria[{i}]", result)
    for i, action in enumerate(step.on_success or []):
        if isinstance(action, SuccessAction):
            _validate_success_action(action, f"{path}.onSuccess[{i}]", result)
    for i, action in enumerate(step.on_failure or []):
        if isinstance(action, FailureAction):
            _validate_failure_action(action, f"{path}.onFailure[{i}]", result)


def _validate_parameter(param: Parameter, path: str, result: ValidationResult) -> None:
    if not param.name:
        result.add(f"{path}.name", MISSING)
    if param.value is None:
        result.add(f"{path}.value", MISSING)
    if param.in_ and param.in_ not in set(ParameterIn):
        result.add(f"{path}.in", f"must be one of: path, query, header, cookie; got {param.in_}")


def _validate_request_body(body: RequestBody, path: str, result: ValidationResult) -> None:
    for i, replacement in enumerate(body.replacements or []):
        if isinstance(replacement, PayloadReplacement):
            _validate_payload_replacement(replacement, f"{path}.replacements[{i}]", result)


def _validate_payload_replacement(replacement: PayloadReplacement, path: str, result: ValidationResult) -> None:
    if not replacement.target:
        result.add(f"{path}.target", MISSING)
    if not replacement.value:
        result.add(f"{path}.value", MISSING)


def _validate_criterion(criterion: Criterion, path: str, result: ValidationResult) -> None:
    if not criterion.condition:
        result.add(f"{path}.condition", MISSING)

    # simple 타입도 context 를 요구한다 (DESIGN.md 참고)
    if criterion.effective_type and not criterion.context:
        result.add(f"{path}.context", "required when type is specified")

    if criterion.type and criterion.type not in set(CriterionType):
        result.add(f"{path}.type", f"must be one of: simple, regex, jsonpath, xpath; got {criterion.type}")

    if isinstance(criterion.expression_type, CriterionExpressionType):
        _validate_expression_type(criterion.expression_type, path, result)


def _validate_expression_type(expression: CriterionExpressionType, path: str, result: ValidationResult) -> None:
    # 경로는 criterion 기준 (트리 포맷에서 type/version 이 criterion 에 펼쳐진다)
    if not expression.type:
        result.add(f"{path}.type", MISSING)
    elif expression.type not in (CriterionType.JSONPATH, CriterionType.XPATH):
        result.add(f"{path}.type", f"must be 'jsonpath' or 'xpath' for expression type; got {expression.type}")

    if not expression.version:
        result.add(f"{path}.version", MISSING)
    elif expression.type == CriterionType.JSONPATH and expression.version != JSONPATH_VERSION:
        result.add(
            f"{path}.version",
            f"for jsonpath type, must be '{JSONPATH_VERSION}'; got {expression.version}",
        )
    elif expression.type == CriterionType.XPATH and expression.version not in XPATH_VERSIONS:
        result.add(
            f"{path}.version",
            f"for xpath type, must be one of: {', '.join(XPATH_VERSIONS)}; got {expression.version}",
        )


def _validate_goto(action: SuccessAction | FailureAction, path: str, result: ValidationResult) -> None:
    if action.type != SuccessActionType.GOTO:
        return
    if not action.workflow_id and not action.step_id:
        result.add(path, "goto action requires either workflowId or stepId")
    if action.workflow_id and action.step_id:
        result.add(path, "goto action cannot have both workflowId and stepId")


def _validate_success_action(action: SuccessAction, path: str, result: ValidationResult) -> None:
    if not action.name:
        result.add(f"{path}.name", MISSING)
    if not action.type:
        result.add(f"{path}.type", MISSING)
    elif action.type not in set(SuccessActionType):
        result.add(f"{path}.type", f"must be 'end' or 'goto'; got {action.type}")

    _validate_goto(action, path, result)

    for i, criterion in enumerate(action.criteria or []):
        if isinstance(criterion, Criterion):
            _validate_criterion(criterion, f"{path}.criteria[{i}]", result)


def _validate_failure_action(action: FailureAction, path: str, result: ValidationResult) -> None:
    if not action.name:
        result.add(f"{path}.name", MISSING)
    if not action.type:
        result.add(f"{path}.type", MISSING)
    elif action.type not in set(FailureActionType):
        result.add(f"{path}.type", f"must be 'end', 'goto', or 'retry'; got {action.type}")

    _validate_goto(action, path, result)

    if action.retry_after is not None and action.retry_after < 0:
        result.add(f"{path}.retryAfter", "must be non-negative")
    if action.retry_limit is not None and action.retry_limit < 0:
        result.add(f"{path}.retryLimit", "must be non-negative")

    for i, criterion in enumerate(action.criteria or []):
        if isinstance(criterion, Criterion):
            _validate_criterion(criterion, f"{path}.criteria[{i}]", result)


def _validate_components(components: Components, path: str, result: ValidationResult) -> None:
    def check_name(section: str, name: str) -> str:
        entry_path = f"{path}.{section}.{name}"
        if not COMPONENT_NAME_PATTERN.fullmatch(name):
            result.add(entry_path, f"component name must match pattern ^[a-zA-Z0-9\\.\\-_]+$; got {name}")
        return entry_path

    for name in components.inputs or {}:
        check_name("inputs", name)

    for name, param in (components.parameters or {}).items():
        entry_path = check_name("parameters", name)
        if isinstance(param, Parameter):
            _validate_parameter(param, entry_path, result)

    for name, action in (components.success_actions or {}).items():
        entry_path = check_name("successActions", name)
        if isinstance(action, SuccessAction):
            _validate_success_action(action, entry_path, result)

    for name, action in (components.failure_actions or {}).items():
        entry_path = check_name("failureActions", name)
        if isinstance(action, FailureAction):
            _validate_failure_action(action, entry_path, result)
