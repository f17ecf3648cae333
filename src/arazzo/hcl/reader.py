"""HCL 디코더 — HCL 텍스트 → Arazzo 노드 트리.

parser.parse() 가 만든 dict 를 블록 스키마에 맞춰 노드로 옮긴다.
  - 라벨은 식별자가 된다 (workflow → workflowId, step → stepId, 액션/파라미터 → name).
  - 블록은 하위 노드 목록, 속성은 필드 값.
  - 속성/블록 단위 에러는 첫 번째에서 멈추지 않고 모두 모은다.
    성공한 필드는 그대로 채운 부분 문서와 함께 HCLDecodeError 로 보고한다.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, TypeVar

import structlog
from pydantic import ValidationError

from arazzo.config import DEFAULT_OPTIONS, CodecOptions
from arazzo.errors import HCLDecodeError
from arazzo.extensions import is_extension_key
from arazzo.hcl.parser import parse
from arazzo.hcl.transform import decode_identifiers
from arazzo.hcl.writer import EXTENSIONS_ATTRIBUTE
from arazzo.models.actions import FailureAction, SuccessAction
from arazzo.models.base import ArazzoModel
from arazzo.models.components import Components
from arazzo.models.criterion import Criterion, CriterionExpressionType
from arazzo.models.document import Arazzo, Info, SourceDescription
from arazzo.models.parameter import Parameter
from arazzo.models.reusable import ReusableObject
from arazzo.models.step import PayloadReplacement, RequestBody, Step
from arazzo.models.workflow import Workflow
from arazzo.values import to_value

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=ArazzoModel)

REUSABLE_BLOCK = "reusable"


def block_to_value(body: Mapping[str, Any]) -> dict[str, Any]:
    """블록 형태로 쓴 스키마 값 → dict. 블록 하나짜리 목록은 객체로 편다."""
    result: dict[str, Any] = {}
    for key, value in body.items():
        if isinstance(value, list) and len(value) == 1 and isinstance(value[0], Mapping):
            result[key] = block_to_value(value[0])
        else:
            result[key] = value
    return result


def _too_large(value: Any) -> bool:
    """float64 로 표현할 수 없는 숫자 (overflow 10진 문자열 포함)."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return False
    try:
        return not math.isfinite(float(value))
    except ValueError:
        return False
    except OverflowError:
        return True


# ─── 진입점 ──────────────────────────────────────────


def read_document(text: str, options: CodecOptions = DEFAULT_OPTIONS) -> Arazzo:
    """HCL 텍스트 → Arazzo.

    Raises:
        DecodeError: HCL 구문 오류
        HCLDecodeError: 속성/블록 단위 에러 (부분 문서 포함)
    """
    reader = HCLDocumentReader(options)
    document = reader.read(parse(text))
    if reader.errors:
        raise HCLDecodeError(reader.errors, document=document)

    logger.debug("hcl_read", workflows=len(document.workflows))
    return document


class HCLDocumentReader:
    """블록 스키마 기반 리더 — 에러는 self.errors 에 누적."""

    def __init__(self, options: CodecOptions = DEFAULT_OPTIONS) -> None:
        self.options = options
        self.errors: list[str] = []

    # ─── 공통 ───

    def error(self, where: str, message: str) -> None:
        self.errors.append(f"{where}{message}")

    def fields(
        self,
        body: Mapping[str, Any],
        where: str,
        attributes: frozenset[str],
        blocks: frozenset[str] = frozenset(),
    ) -> dict[str, Any]:
        """body → 모델 입력 dict. 블록 키는 호출자가 따로 처리한다."""
        fields: dict[str, Any] = {}
        for key, value in body.items():
            if key in attributes:
                fields[key] = value
            elif key in blocks:
                continue
            elif is_extension_key(key):
                fields[key] = value
            elif key == EXTENSIONS_ATTRIBUTE and isinstance(value, Mapping):
                fields.update({k: v for k, v in value.items() if is_extension_key(k)})
            else:
                logger.warning("hcl_unknown_key", key=key, where=where.rstrip(": "))
        return fields

    def build(self, model: type[ModelT], fields: dict[str, Any], where: str) -> ModelT:
        """모델 생성. 실패한 속성은 에러로 남기고 나머지로 다시 만든다."""
        try:
            return model.model_validate(fields)
        except ValidationError as e:
            rejected: set[Any] = set()
            for err in e.errors():
                loc = err["loc"]
                name = loc[0] if loc else model.__name__
                rejected.add(name)
                self.error(where, f'attribute "{name}": {err["msg"]}')

        try:
            return model.model_validate({k: v for k, v in fields.items() if k not in rejected})
        except ValidationError:
            return model()

    def blocks(self, value: Any, where: str, block_type: str) -> list[dict[str, Any]]:
        """라벨 없는 블록 목록. 객체 속성으로 쓴 경우도 블록 하나로 받는다."""
        if value is None:
            return []
        if isinstance(value, Mapping):
            return [dict(value)]
        if not isinstance(value, list):
            self.error(where, f'block "{block_type}": expected a block')
            return []
        bodies = []
        for item in value:
            if isinstance(item, Mapping):
                bodies.append(dict(item))
            else:
                self.error(where, f'block "{block_type}": expected a block')
        return bodies

    def single_block(self, value: Any, where: str, block_type: str) -> dict[str, Any] | None:
        bodies = self.blocks(value, where, block_type)
        if len(bodies) > 1:
            self.error(where, f'block "{block_type}": only one block allowed')
        return bodies[0] if bodies else None

    def labeled_blocks(self, value: Any, where: str, block_type: str) -> list[tuple[str | None, dict[str, Any]]]:
        result = []
        for item in self.blocks(value, where, block_type):
            labeled = _split_label(item)
            if labeled is None:
                self.error(where, f'block "{block_type}": missing label')
                continue
            result.append(labeled)
        return result

    def entries(self, value: Any, where: str, block_type: str) -> list[tuple[str | None, dict[str, Any], bool]]:
        """라벨 블록(구체 노드) 또는 reusable 블록을 담은 라벨 없는 블록 → (label, body, is_reusable)."""
        result = []
        for item in self.blocks(value, where, block_type):
            labeled = _split_label(item)
            if labeled is not None:
                result.append((*labeled, False))
            elif REUSABLE_BLOCK in item:
                body = self.single_block(item[REUSABLE_BLOCK], f"{where}{block_type}: ", REUSABLE_BLOCK)
                if body is not None:
                    result.append((None, body, True))
            else:
                self.error(where, f'block "{block_type}": expected a label or a reusable block')
        return result

    def schema_value(self, value: Any) -> Any:
        if isinstance(value, list) and len(value) == 1 and isinstance(value[0], Mapping):
            value = block_to_value(value[0])
        return decode_identifiers(to_value(value), self.options)

    # ─── 문서 ───

    def read(self, root: Mapping[str, Any]) -> Arazzo:
        where = ""
        fields = self.fields(
            root,
            where,
            frozenset({"arazzo"}),
            frozenset({"info", "sourceDescription", "workflow", "components"}),
        )

        info = self.single_block(root.get("info"), where, "info")
        if info is not None:
            fields["info"] = self.read_info(info, "info: ")

        fields["sourceDescriptions"] = [
            self.read_source_description(label, body, f'sourceDescription "{label or ""}": ')
            for label, body in self.labeled_blocks(root.get("sourceDescription"), where, "sourceDescription")
        ]
        fields["workflows"] = [
            self.read_workflow(label, body, f'workflow "{label or ""}": ')
            for label, body in self.labeled_blocks(root.get("workflow"), where, "workflow")
        ]

        components = self.single_block(root.get("components"), where, "components")
        if components is not None:
            fields["components"] = self.read_components(components, "components: ")

        return self.build(Arazzo, fields, where)

    def read_info(self, body: dict[str, Any], where: str) -> Info:
        fields = self.fields(body, where, frozenset({"title", "summary", "description", "version"}))
        return self.build(Info, fields, where)

    def read_source_description(self, label: str | None, body: dict[str, Any], where: str) -> SourceDescription:
        fields = self.fields(body, where, frozenset({"url", "type"}))
        fields["name"] = label
        return self.build(SourceDescription, fields, where)

    # ─── 워크플로우 / 스텝 ───

    def read_workflow(self, label: str | None, body: dict[str, Any], where: str) -> Workflow:
        fields = self.fields(
            body,
            where,
            frozenset({"summary", "description", "inputs", "dependsOn", "outputs"}),
            frozenset({"step", "parameter", "successAction", "failureAction"}),
        )
        fields["workflowId"] = label
        if "inputs" in fields:
            fields["inputs"] = self.schema_value(fields["inputs"])

        fields["steps"] = [
            self.read_step(step_label, step_body, f'{where}step "{step_label or ""}": ')
            for step_label, step_body in self.labeled_blocks(body.get("step"), where, "step")
        ]
        if "parameter" in body:
            fields["parameters"] = self.read_parameter_entries(body["parameter"], where, "parameter")
        if "successAction" in body:
            fields["successActions"] = self.read_action_entries(body["successAction"], where, "successAction", SuccessAction)
        if "failureAction" in body:
            fields["failureActions"] = self.read_action_entries(body["failureAction"], where, "failureAction", FailureAction)

        return self.build(Workflow, fields, where)

    def read_step(self, label: str | None, body: dict[str, Any], where: str) -> Step:
        fields = self.fields(
            body,
            where,
            frozenset({"description", "operationId", "operationPath", "workflowId", "parameters", "outputs"}),
            frozenset({"requestBody", "successCriterion", "onSuccess", "onFailure"}),
        )
        fields["stepId"] = label

        request_body = self.single_block(body.get("requestBody"), where, "requestBody")
        if request_body is not None:
            fields["requestBody"] = self.read_request_body(request_body, f"{where}requestBody: ")
        if "successCriterion" in body:
            fields["successCriteria"] = self.read_criteria(body["successCriterion"], where, "successCriterion")
        if "onSuccess" in body:
            fields["onSuccess"] = self.read_action_entries(body["onSuccess"], where, "onSuccess", SuccessAction)
        if "onFailure" in body:
            fields["onFailure"] = self.read_action_entries(body["onFailure"], where, "onFailure", FailureAction)

        return self.build(Step, fields, where)

    def read_request_body(self, body: dict[str, Any], where: str) -> RequestBody:
        fields = self.fields(body, where, frozenset({"contentType", "payload"}), frozenset({"replacement"}))
        if "replacement" in body:
            fields["replacements"] = [
                self.build(
                    PayloadReplacement,
                    self.fields(item, f"{where}replacement[{i}]: ", frozenset({"target", "value"})),
                    f"{where}replacement[{i}]: ",
                )
                for i, item in enumerate(self.blocks(body["replacement"], where, "replacement"))
            ]
        return self.build(RequestBody, fields, where)

    # ─── criterion ───

    def read_criteria(self, value: Any, where: str, block_type: str) -> list[Criterion]:
        return [
            self.read_criterion(body, f"{where}{block_type}[{i}]: ")
            for i, body in enumerate(self.blocks(value, where, block_type))
        ]

    def read_criterion(self, body: dict[str, Any], where: str) -> Criterion:
        fields = self.fields(
            body,
            where,
            frozenset({"context", "condition", "type", "version"}),
            frozenset({"expressionType"}),
        )

        expression = self.single_block(body.get("expressionType"), where, "expressionType")
        if expression is not None:
            if "version" in fields:
                self.error(where, "expressionType block and version attribute both set")
                fields.pop("version")
            fields["expressionType"] = self.build(
                CriterionExpressionType,
                self.fields(expression, f"{where}expressionType: ", frozenset({"type", "version"})),
                f"{where}expressionType: ",
            )
        elif "version" in fields and "type" not in fields:
            self.error(where, "version requires type")
            fields.pop("version")

        return self.build(Criterion, fields, where)

    # ─── 파라미터 / 액션 ───

    def read_reusable(self, body: dict[str, Any], where: str) -> ReusableObject:
        fields = self.fields(body, where, frozenset({"reference", "value"}))
        return self.build(ReusableObject, fields, where)

    def read_parameter(self, label: str | None, body: dict[str, Any], where: str) -> Parameter:
        fields = self.fields(body, where, frozenset({"name", "in", "value"}))
        fields.setdefault("name", label)
        return self.build(Parameter, fields, where)

    def read_parameter_entries(self, value: Any, where: str, block_type: str) -> list[Parameter | ReusableObject]:
        result: list[Parameter | ReusableObject] = []
        for label, body, reusable in self.entries(value, where, block_type):
            if reusable:
                result.append(self.read_reusable(body, f"{where}{block_type} reusable: "))
            else:
                result.append(self.read_parameter(label, body, f'{where}{block_type} "{label or ""}": '))
        return result

    def read_action(
        self,
        model: type[SuccessAction] | type[FailureAction],
        label: str | None,
        body: dict[str, Any],
        where: str,
    ) -> SuccessAction | FailureAction:
        attributes = {"name", "type", "workflowId", "stepId"}
        if model is FailureAction:
            attributes |= {"retryAfter", "retryLimit"}
        fields = self.fields(body, where, frozenset(attributes), frozenset({"criterion"}))
        fields.setdefault("name", label)

        if _too_large(fields.get("retryAfter")):
            self.error(where, "retryAfter value too large for float64")
            fields.pop("retryAfter")

        if "criterion" in body:
            fields["criteria"] = self.read_criteria(body["criterion"], where, "criterion")
        return self.build(model, fields, where)

    def read_action_entries(
        self,
        value: Any,
        where: str,
        block_type: str,
        model: type[SuccessAction] | type[FailureAction],
    ) -> list[SuccessAction | FailureAction | ReusableObject]:
        result: list[SuccessAction | FailureAction | ReusableObject] = []
        for label, body, reusable in self.entries(value, where, block_type):
            if reusable:
                result.append(self.read_reusable(body, f"{where}{block_type} reusable: "))
            else:
                result.append(self.read_action(model, label, body, f'{where}{block_type} "{label or ""}": '))
        return result

    # ─── components ───

    def read_components(self, body: dict[str, Any], where: str) -> Components:
        fields = self.fields(
            body,
            where,
            frozenset({"inputs"}),
            frozenset({"parameter", "successAction", "failureAction"}),
        )
        if "inputs" in fields:
            fields["inputs"] = self.schema_value(fields["inputs"])

        # 라벨 = 맵 키. name 속성이 없으면 라벨을 name 으로 쓴다
        if "parameter" in body:
            fields["parameters"] = {
                label: self.read_parameter(label, item, f'{where}parameter "{label}": ')
                for label, item in self._keyed(body["parameter"], where, "parameter")
            }
        if "successAction" in body:
            fields["successActions"] = {
                label: self.read_action(SuccessAction, label, item, f'{where}successAction "{label}": ')
                for label, item in self._keyed(body["successAction"], where, "successAction")
            }
        if "failureAction" in body:
            fields["failureActions"] = {
                label: self.read_action(FailureAction, label, item, f'{where}failureAction "{label}": ')
                for label, item in self._keyed(body["failureAction"], where, "failureAction")
            }
        return self.build(Components, fields, where)

    def _keyed(self, value: Any, where: str, block_type: str) -> list[tuple[str, dict[str, Any]]]:
        result = []
        for label, body in self.labeled_blocks(value, where, block_type):
            if not label:
                self.error(where, f'block "{block_type}": empty label')
                continue
            result.append((label, body))
        return result


def _split_label(item: Mapping[str, Any]) -> tuple[str | None, dict[str, Any]] | None:
    """{label: body} 모양이면 (label, body). 빈 라벨은 None."""
    if len(item) != 1:
        return None
    label, body = next(iter(item.items()))
    if not isinstance(body, Mapping):
        return None
    return (label or None), dict(body)
