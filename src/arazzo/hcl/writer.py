"""HCL 인코더 — Arazzo 노드 트리 → HCL 텍스트.

문서 형태:

    arazzo = "1.0.0"

    info {
      title   = "..."
      version = "..."
    }

    sourceDescription "petstore" {
      url = "..."
    }

    workflow "buy-pet" {
      inputs = { ... }            # "$" 키는 "_" 로 치환
      parameter "apiKey" { ... }
      step "find" {
        operationId = "findPets"
        successCriterion { ... }
        onSuccess "done" { ... }
        onFailure {
          reusable {
            reference = "$components.failureActions.retry"
          }
        }
      }
    }

    components {
      parameter "apiKey" { ... }
    }

입력 문서는 읽기만 한다. 불투명 값은 to_value 복사본 위에서 변환한다.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import structlog

from arazzo.config import DEFAULT_OPTIONS, CodecOptions
from arazzo.hcl.transform import encode_identifiers, escape_string
from arazzo.models.actions import FailureAction, SuccessAction
from arazzo.models.base import ArazzoModel
from arazzo.models.components import Components
from arazzo.models.criterion import Criterion
from arazzo.models.document import Arazzo, Info, SourceDescription
from arazzo.models.parameter import Parameter
from arazzo.models.reusable import ReusableObject
from arazzo.models.step import RequestBody, Step
from arazzo.models.workflow import Workflow
from arazzo.values import to_value

logger = structlog.get_logger()

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
KEYWORDS = frozenset({"true", "false", "null", "for", "in", "if"})

# 확장 키가 식별자로 쓸 수 없는 모양이면 이 속성 하나에 모아 쓴다
EXTENSIONS_ATTRIBUTE = "extensions"


def is_identifier(key: str) -> bool:
    return bool(IDENTIFIER_PATTERN.fullmatch(key)) and key not in KEYWORDS


def quote(text: str) -> str:
    return f'"{escape_string(text)}"'


def format_key(key: str) -> str:
    return key if is_identifier(key) else quote(key)


class HCLWriter:
    """줄 단위 HCL 출력 버퍼."""

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent
        self.depth = 0
        self.lines: list[str] = []

    def _pad(self, depth: int | None = None) -> str:
        return " " * (self.indent * (self.depth if depth is None else depth))

    def attribute(self, key: str, value: Any, *, omit_none: bool = True) -> None:
        """블록 속성 한 줄. 이름은 식별자여야 한다. omit_none 이면 None 값은 건너뛴다."""
        if value is None and omit_none:
            return
        self.lines.append(f"{self._pad()}{key} = {self.format_value(value, self.depth)}")

    @contextmanager
    def block(self, block_type: str, *labels: str) -> Iterator[None]:
        header = " ".join([block_type, *(quote(label) for label in labels)])
        self.lines.append(f"{self._pad()}{header} {{")
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1
            self.lines.append(f"{self._pad()}}}")

    def blank(self) -> None:
        if self.lines and self.lines[-1].strip() and not self.lines[-1].endswith("{"):
            self.lines.append("")

    def format_value(self, value: Any, depth: int) -> str:
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"HCL 숫자로 쓸 수 없는 값: {value}")
        if isinstance(value, (int, float)):
            return repr(value)
        if isinstance(value, str):
            return quote(value)
        if isinstance(value, Mapping):
            if not value:
                return "{}"
            inner = self._pad(depth + 1)
            lines = [f"{inner}{format_key(str(k))} = {self.format_value(v, depth + 1)}" for k, v in value.items()]
            return "{\n" + "\n".join(lines) + f"\n{self._pad(depth)}}}"
        if isinstance(value, (list, tuple)):
            if not value:
                return "[]"
            if all(not isinstance(item, (Mapping, list, tuple)) for item in value):
                return "[" + ", ".join(self.format_value(item, depth) for item in value) + "]"
            inner = self._pad(depth + 1)
            lines = [f"{inner}{self.format_value(item, depth + 1)}," for item in value]
            return "[\n" + "\n".join(lines) + f"\n{self._pad(depth)}]"
        raise TypeError(f"HCL 값으로 쓸 수 없는 타입: {type(value).__name__}")

    def getvalue(self) -> str:
        return "\n".join(self.lines) + "\n"


# ─── 문서 ────────────────────────────────────────────


def write_document(document: Arazzo, options: CodecOptions = DEFAULT_OPTIONS) -> str:
    """Arazzo 문서 → HCL 텍스트."""
    w = HCLWriter(options.hcl_indent)
    w.attribute("arazzo", document.arazzo)
    _write_extensions(w, document)

    if document.info is not None:
        w.blank()
        _write_info(w, document.info)

    for source in document.source_descriptions:
        w.blank()
        _write_source_description(w, source)

    for workflow in document.workflows:
        w.blank()
        _write_workflow(w, workflow, options)

    if document.components is not None:
        w.blank()
        _write_components(w, document.components, options)

    logger.debug("hcl_written", workflows=len(document.workflows), lines=len(w.lines))
    return w.getvalue()


def _write_extensions(w: HCLWriter, node: ArazzoModel) -> None:
    leftovers: dict[str, Any] = {}
    for key, value in node.extensions.items():
        if is_identifier(key):
            w.attribute(key, value, omit_none=False)
        else:
            leftovers[key] = value
    if leftovers:
        w.attribute(EXTENSIONS_ATTRIBUTE, leftovers)


def _write_info(w: HCLWriter, info: Info) -> None:
    with w.block("info"):
        w.attribute("title", info.title)
        w.attribute("summary", info.summary)
        w.attribute("description", info.description)
        w.attribute("version", info.version)
        _write_extensions(w, info)


def _write_source_description(w: HCLWriter, source: SourceDescription) -> None:
    with w.block("sourceDescription", source.name or ""):
        w.attribute("url", source.url)
        w.attribute("type", source.type)
        _write_extensions(w, source)


# ─── 워크플로우 / 스텝 ────────────────────────────────


def _write_workflow(w: HCLWriter, workflow: Workflow, options: CodecOptions) -> None:
    with w.block("workflow", workflow.workflow_id or ""):
        w.attribute("summary", workflow.summary)
        w.attribute("description", workflow.description)
        if workflow.inputs is not None:
            w.attribute("inputs", encode_identifiers(to_value(workflow.inputs), options))
        w.attribute("dependsOn", workflow.depends_on)
        w.attribute("outputs", workflow.outputs)
        _write_extensions(w, workflow)

        for param in workflow.parameters or []:
            w.blank()
            _write_parameter_entry(w, "parameter", param)
        for action in workflow.success_actions or []:
            w.blank()
            _write_action_entry(w, "successAction", action)
        for action in workflow.failure_actions or []:
            w.blank()
            _write_action_entry(w, "failureAction", action)
        for step in workflow.steps:
            w.blank()
            _write_step(w, step)


def _write_step(w: HCLWriter, step: Step) -> None:
    with w.block("step", step.step_id or ""):
        w.attribute("description", step.description)
        w.attribute("operationId", step.operation_id)
        w.attribute("operationPath", step.operation_path)
        w.attribute("workflowId", step.workflow_id)
        if step.parameters is not None:
            w.attribute("parameters", to_value(step.parameters))
        w.attribute("outputs", step.outputs)
        _write_extensions(w, step)

        if step.request_body is not None:
            w.blank()
            _write_request_body(w, step.request_body)
        for criterion in step.success_criteria or []:
            w.blank()
            _write_criterion(w, "successCriterion", criterion)
        for action in step.on_success or []:
            w.blank()
            _write_action_entry(w, "onSuccess", action)
        for action in step.on_failure or []:
            w.blank()
            _write_action_entry(w, "onFailure", action)


def _write_request_body(w: HCLWriter, body: RequestBody) -> None:
    with w.block("requestBody"):
        w.attribute("contentType", body.content_type)
        if body.payload is not None:
            w.attribute("payload", to_value(body.payload))
        _write_extensions(w, body)
        for replacement in body.replacements or []:
            with w.block("replacement"):
                w.attribute("target", replacement.target)
                w.attribute("value", replacement.value)
                _write_extensions(w, replacement)


def _write_criterion(w: HCLWriter, block_type: str, criterion: Criterion) -> None:
    # expression type 은 트리 포맷과 같이 type/version 으로 펼쳐 쓴다
    expression = criterion.expression_type
    with w.block(block_type):
        w.attribute("context", criterion.context)
        w.attribute("condition", criterion.condition)
        if expression is not None and expression.version:
            w.attribute("type", expression.type if expression.type is not None else criterion.type)
            w.attribute("version", expression.version)
        else:
            w.attribute("type", criterion.type)
        _write_extensions(w, criterion)


# ─── 파라미터 / 액션 ──────────────────────────────────


def _write_reusable(w: HCLWriter, block_type: str, reusable: ReusableObject) -> None:
    with w.block(block_type):
        with w.block("reusable"):
            w.attribute("reference", reusable.reference)
            if reusable.value is not None:
                w.attribute("value", to_value(reusable.value))
            _write_extensions(w, reusable)


def _write_parameter(w: HCLWriter, block_type: str, param: Parameter, label: str, *, with_name: bool = False) -> None:
    with w.block(block_type, label):
        if with_name:
            w.attribute("name", param.name)
        w.attribute("in", param.in_)
        if param.value is not None:
            w.attribute("value", to_value(param.value))
        _write_extensions(w, param)


def _write_parameter_entry(w: HCLWriter, block_type: str, entry: Parameter | ReusableObject) -> None:
    if isinstance(entry, ReusableObject):
        _write_reusable(w, block_type, entry)
    else:
        _write_parameter(w, block_type, entry, entry.name or "")


def _write_action_body(w: HCLWriter, action: SuccessAction | FailureAction, *, with_name: bool) -> None:
    if with_name:
        w.attribute("name", action.name)
    w.attribute("type", action.type)
    w.attribute("workflowId", action.workflow_id)
    w.attribute("stepId", action.step_id)
    if isinstance(action, FailureAction):
        w.attribute("retryAfter", action.retry_after)
        w.attribute("retryLimit", action.retry_limit)
    _write_extensions(w, action)
    for criterion in action.criteria or []:
        _write_criterion(w, "criterion", criterion)


def _write_action_entry(
    w: HCLWriter,
    block_type: str,
    entry: SuccessAction | FailureAction | ReusableObject,
) -> None:
    if isinstance(entry, ReusableObject):
        _write_reusable(w, block_type, entry)
        return
    with w.block(block_type, entry.name or ""):
        _write_action_body(w, entry, with_name=False)


# ─── components ─────────────────────────────────────


def _write_components(w: HCLWriter, components: Components, options: CodecOptions) -> None:
    # 라벨은 맵 키, name 은 키와 다를 때만 속성으로 쓴다
    with w.block("components"):
        if components.inputs is not None:
            w.attribute("inputs", encode_identifiers(to_value(components.inputs), options))
        _write_extensions(w, components)

        for key, param in (components.parameters or {}).items():
            w.blank()
            _write_parameter(w, "parameter", param, key, with_name=param.name != key)
        for key, action in (components.success_actions or {}).items():
            w.blank()
            with w.block("successAction", key):
                _write_action_body(w, action, with_name=action.name != key)
        for key, action in (components.failure_actions or {}).items():
            w.blank()
            with w.block("failureAction", key):
                _write_action_body(w, action, with_name=action.name != key)
