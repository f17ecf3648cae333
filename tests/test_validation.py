"""검증 엔진 테스트 — 규칙별 위반 + 경로 + 전체 수집."""

from __future__ import annotations

import json
from typing import Any

import pytest

from arazzo.codec import decode
from arazzo.errors import DocumentValidationError
from arazzo.models.actions import FailureAction, SuccessAction
from arazzo.models.components import Components
from arazzo.models.criterion import Criterion
from arazzo.models.document import Arazzo
from arazzo.models.parameter import Parameter
from arazzo.models.step import Step
from arazzo.models.workflow import Workflow
from arazzo.validation import ValidationResult, validate

from tests.helpers import FULL_DOC, MINIMAL_DOC, MINIMAL_JSON, sample


def _errors(doc: dict[str, Any]) -> dict[str, str]:
    """dict 문서 검증 → {path: message} (경로 중복 시 마지막)."""
    result = validate(Arazzo.from_dict(doc))
    return {e.path: e.message for e in result.errors}


def _with_step(**step: Any) -> dict[str, Any]:
    doc = sample(MINIMAL_DOC)
    doc["workflows"][0]["steps"] = [{"stepId": "s", "operationId": "op", **step}]
    return doc


class TestValidDocuments:
    """유효 문서는 에러가 없어야 한다."""

    def test_최소_문서_통과(self, minimal_document: Arazzo) -> None:
        result = validate(minimal_document)
        assert result.valid
        assert result.errors == []
        assert result.error_message() == ""

    def test_전체_문서_통과(self, full_document: Arazzo) -> None:
        result = full_document.validate()
        assert result.valid, result.error_message()

    def test_검증은_문서를_변경하지_않는다(self, full_document: Arazzo) -> None:
        before = full_document.to_dict()
        validate(full_document)
        assert full_document.to_dict() == before


class TestScenario:
    """decode → validate → 중복 stepId 추가 → validate."""

    def test_중복_step_id(self) -> None:
        document = decode(MINIMAL_JSON, "json")
        assert validate(document).errors == []

        document.workflows[0].steps.append(Step(step_id="s", operation_id="op"))
        errors = validate(document).errors

        assert len(errors) == 1
        assert errors[0].path.endswith(".stepId")
        assert errors[0].path == "workflows[0].steps[1].stepId"
        assert "duplicate" in errors[0].message


class TestDocumentRules:
    """문서 루트 규칙."""

    def test_빈_문서는_모든_필수_필드_누락(self) -> None:
        errors = _errors({})
        assert errors == {
            "arazzo": "required field is missing",
            "info": "required field is missing",
            "sourceDescriptions": "required field is missing or empty (minItems: 1)",
            "workflows": "required field is missing or empty (minItems: 1)",
        }

    @pytest.mark.parametrize("version", ["2.0.0", "1.1.0", "1.0", "v1.0.0", "1.0.0\n"])
    def test_버전_패턴_위반(self, version: str) -> None:
        doc = sample(MINIMAL_DOC)
        doc["arazzo"] = version
        errors = _errors(doc)
        assert list(errors) == ["arazzo"]
        assert errors["arazzo"].startswith("must match pattern")

    @pytest.mark.parametrize("version", ["1.0.0", "1.0.12", "1.0.1-rc.1"])
    def test_버전_패턴_통과(self, version: str) -> None:
        doc = sample(MINIMAL_DOC)
        doc["arazzo"] = version
        assert _errors(doc) == {}

    def test_info_필수_필드(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["info"] = {"summary": "s"}
        errors = _errors(doc)
        assert errors["info.title"] == "required field is missing"
        assert errors["info.version"] == "required field is missing"

    def test_source_name_패턴(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["sourceDescriptions"][0]["name"] = "has spaces"
        errors = _errors(doc)
        assert errors == {
            "sourceDescriptions[0].name": "must match pattern ^[A-Za-z0-9_\\-]+$; got has spaces",
        }

    def test_source_필수_필드와_type(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["sourceDescriptions"] = [{"type": "graphql"}]
        errors = _errors(doc)
        assert errors["sourceDescriptions[0].name"] == "required field is missing"
        assert errors["sourceDescriptions[0].url"] == "required field is missing"
        assert errors["sourceDescriptions[0].type"] == "must be 'arazzo' or 'openapi'; got graphql"

    def test_source_name_중복(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["sourceDescriptions"].append({"name": "a", "url": "u2"})
        errors = _errors(doc)
        assert errors == {"sourceDescriptions[1].name": "duplicate source description name: a"}

    def test_workflow_id_중복(self) -> None:
        """개별로는 유효한 워크플로우 둘이 같은 id 를 쓰면 문서 수준 에러."""
        first = sample(MINIMAL_DOC)
        second = sample(MINIMAL_DOC)
        assert _errors(first) == {}
        assert _errors(second) == {}

        combined = sample(MINIMAL_DOC)
        combined["workflows"].append(sample(MINIMAL_DOC)["workflows"][0])
        errors = _errors(combined)
        assert errors == {"workflows[1].workflowId": "duplicate workflowId: w"}


class TestWorkflowRules:
    """워크플로우 규칙."""

    def test_workflow_id_와_steps_누락(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["workflows"] = [{"summary": "x"}]
        errors = _errors(doc)
        assert errors == {
            "workflows[0].workflowId": "required field is missing",
            "workflows[0].steps": "required field is missing or empty (minItems: 1)",
        }

    def test_output_키_패턴(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["workflows"][0]["outputs"] = {"ok.name-1_x": "$a", "bad key": "$b"}
        errors = _errors(doc)
        assert errors == {
            "workflows[0].outputs.bad key": "output name must match pattern ^[a-zA-Z0-9\\.\\-_]+$; got bad key",
        }

    def test_워크플로우_액션과_파라미터_검사(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["workflows"][0]["successActions"] = [{"type": "end"}]
        doc["workflows"][0]["failureActions"] = [{"name": "f", "type": "explode"}]
        doc["workflows"][0]["parameters"] = [{"name": "p", "in": "body"}]
        errors = _errors(doc)
        assert errors["workflows[0].successActions[0].name"] == "required field is missing"
        assert errors["workflows[0].failureActions[0].type"] == "must be 'end', 'goto', or 'retry'; got explode"
        assert errors["workflows[0].parameters[0].value"] == "required field is missing"
        assert errors["workflows[0].parameters[0].in"] == "must be one of: path, query, header, cookie; got body"

    def test_재사용_참조는_건너뛴다(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["workflows"][0]["parameters"] = [{"reference": "$components.parameters.nope"}]
        doc["workflows"][0]["successActions"] = [{"reference": ""}]
        assert _errors(doc) == {}


class TestStepRules:
    """스텝 규칙 — operationId / operationPath / workflowId 상호 배타."""

    def test_대상이_없으면_세_필드를_모두_언급(self) -> None:
        doc = _with_step(operationId=None)
        errors = _errors(doc)
        message = errors["workflows[0].steps[0]"]
        assert message == "must have one of: operationId, operationPath, or workflowId"
        for name in ("operationId", "operationPath", "workflowId"):
            assert name in message

    @pytest.mark.parametrize(
        "extra",
        [
            {"operationPath": "{$x}#/p"},
            {"workflowId": "w2"},
            {"operationPath": "{$x}#/p", "workflowId": "w2"},
        ],
    )
    def test_둘_이상이면_only_one(self, extra: dict[str, str]) -> None:
        errors = _errors(_with_step(**extra))
        assert errors == {
            "workflows[0].steps[0]": "must have only one of: operationId, operationPath, or workflowId",
        }

    def test_step_id_누락(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["workflows"][0]["steps"] = [{"operationId": "op"}]
        assert _errors(doc) == {"workflows[0].steps[0].stepId": "required field is missing"}

    def test_step_output_키_패턴(self) -> None:
        errors = _errors(_with_step(outputs={"a/b": "$x"}))
        assert "workflows[0].steps[0].outputs.a/b" in errors

    def test_request_body_replacement(self) -> None:
        errors = _errors(_with_step(requestBody={"replacements": [{"target": "/a"}, {"value": "v"}]}))
        assert errors == {
            "workflows[0].steps[0].requestBody.replacements[0].value": "required field is missing",
            "workflows[0].steps[0].requestBody.replacements[1].target": "required field is missing",
        }

    def test_스텝_파라미터는_검사하지_않는다(self) -> None:
        """스텝 파라미터는 이름만 두는 불투명 항목을 허용한다."""
        assert _errors(_with_step(parameters=["only-name", {"in": "nowhere"}])) == {}


class TestCriterionRules:
    """criterion + expression type 규칙."""

    def _criterion_errors(self, **criterion: Any) -> dict[str, str]:
        return _errors(_with_step(successCriteria=[criterion]))

    def test_condition_필수(self) -> None:
        errors = self._criterion_errors(context="$x")
        assert errors == {"workflows[0].steps[0].successCriteria[0].condition": "required field is missing"}

    def test_type이_있으면_context_필수(self) -> None:
        errors = self._criterion_errors(condition="c", type="regex")
        assert errors == {"workflows[0].steps[0].successCriteria[0].context": "required when type is specified"}

    def test_simple_type도_context_필수(self) -> None:
        errors = self._criterion_errors(condition="c", type="simple")
        assert "workflows[0].steps[0].successCriteria[0].context" in errors

    def test_알_수_없는_type(self) -> None:
        errors = self._criterion_errors(condition="c", context="$x", type="glob")
        assert errors == {
            "workflows[0].steps[0].successCriteria[0].type": "must be one of: simple, regex, jsonpath, xpath; got glob",
        }

    def test_expression_type_만_있어도_context_필수(self) -> None:
        errors = self._criterion_errors(condition="c", type="xpath", version="xpath-10")
        assert errors == {"workflows[0].steps[0].successCriteria[0].context": "required when type is specified"}

    def test_jsonpath_version(self) -> None:
        errors = self._criterion_errors(condition="c", context="$x", type="jsonpath", version="rfc9535")
        assert errors == {
            "workflows[0].steps[0].successCriteria[0].version":
                "for jsonpath type, must be 'draft-goessner-dispatch-jsonpath-00'; got rfc9535",
        }

    def test_xpath_version(self) -> None:
        errors = self._criterion_errors(condition="c", context="$x", type="xpath", version="xpath-40")
        assert errors == {
            "workflows[0].steps[0].successCriteria[0].version":
                "for xpath type, must be one of: xpath-10, xpath-20, xpath-30; got xpath-40",
        }

    def test_expression_type은_jsonpath_xpath만(self) -> None:
        errors = self._criterion_errors(condition="c", context="$x", type="regex", version="1")
        assert errors == {
            "workflows[0].steps[0].successCriteria[0].type":
                "must be 'jsonpath' or 'xpath' for expression type; got regex",
        }

    def test_expression_type_필수_필드(self) -> None:
        step = Step(step_id="s", operation_id="op", success_criteria=[
            Criterion(condition="c", context="$x", expression_type={}),
        ])
        document = Arazzo.from_dict(sample(MINIMAL_DOC))
        document.workflows[0].steps = [step]
        errors = {e.path: e.message for e in validate(document).errors}
        assert errors == {
            "workflows[0].steps[0].successCriteria[0].type": "required field is missing",
            "workflows[0].steps[0].successCriteria[0].version": "required field is missing",
        }


class TestActionRules:
    """success / failure 액션 규칙."""

    def test_goto_대상_없음(self) -> None:
        errors = _errors(_with_step(onSuccess=[{"name": "n", "type": "goto"}]))
        assert errors == {"workflows[0].steps[0].onSuccess[0]": "goto action requires either workflowId or stepId"}

    def test_goto_대상_둘_다(self) -> None:
        errors = _errors(_with_step(onFailure=[{"name": "n", "type": "goto", "workflowId": "w", "stepId": "s"}]))
        assert errors == {"workflows[0].steps[0].onFailure[0]": "goto action cannot have both workflowId and stepId"}

    @pytest.mark.parametrize("target", [{"workflowId": "w"}, {"stepId": "s"}])
    def test_goto_대상_하나는_통과(self, target: dict[str, str]) -> None:
        assert _errors(_with_step(onSuccess=[{"name": "n", "type": "goto", **target}])) == {}

    def test_success_action_type(self) -> None:
        errors = _errors(_with_step(onSuccess=[{"name": "n", "type": "retry"}, {"name": "m"}]))
        assert errors == {
            "workflows[0].steps[0].onSuccess[0].type": "must be 'end' or 'goto'; got retry",
            "workflows[0].steps[0].onSuccess[1].type": "required field is missing",
        }

    def test_retry_값은_음수_불가(self) -> None:
        errors = _errors(_with_step(onFailure=[{"name": "n", "type": "retry", "retryAfter": -1, "retryLimit": -2}]))
        assert errors == {
            "workflows[0].steps[0].onFailure[0].retryAfter": "must be non-negative",
            "workflows[0].steps[0].onFailure[0].retryLimit": "must be non-negative",
        }

    def test_retry_0은_허용(self) -> None:
        assert _errors(_with_step(onFailure=[{"name": "n", "type": "retry", "retryAfter": 0, "retryLimit": 0}])) == {}

    def test_액션_criteria_검사(self) -> None:
        errors = _errors(_with_step(onSuccess=[{"name": "n", "type": "end", "criteria": [{"type": "simple"}]}]))
        assert errors == {
            "workflows[0].steps[0].onSuccess[0].criteria[0].condition": "required field is missing",
            "workflows[0].steps[0].onSuccess[0].criteria[0].context": "required when type is specified",
        }


class TestComponentRules:
    """components 규칙 — 키 패턴 + 하위 노드."""

    def test_키_패턴과_하위_노드(self) -> None:
        doc = sample(MINIMAL_DOC)
        doc["components"] = {
            "inputs": {"bad key": {}},
            "parameters": {"p$": {"name": "p", "value": 1}, "ok": {"value": 1}},
            "successActions": {"s": {"name": "s", "type": "goto"}},
            "failureActions": {"f": {"name": "f", "type": "retry", "retryLimit": -1}},
        }
        errors = _errors(doc)
        assert errors == {
            "components.inputs.bad key": "component name must match pattern ^[a-zA-Z0-9\\.\\-_]+$; got bad key",
            "components.parameters.p$": "component name must match pattern ^[a-zA-Z0-9\\.\\-_]+$; got p$",
            "components.parameters.ok.name": "required field is missing",
            "components.successActions.s": "goto action requires either workflowId or stepId",
            "components.failureActions.f.retryLimit": "must be non-negative",
        }


class TestCollection:
    """위반 수집 — 첫 에러에서 멈추지 않는다."""

    def test_모든_위반을_한_번에(self) -> None:
        doc = sample(FULL_DOC)
        doc["arazzo"] = "9.9.9"
        doc["workflows"][0]["steps"][0]["operationPath"] = "{$x}#/p"
        doc["workflows"][1]["steps"][0]["stepId"] = None
        doc["components"]["parameters"]["page"]["in"] = "body"

        result = validate(Arazzo.from_dict(doc))
        paths = [e.path for e in result.errors]

        assert paths == [
            "arazzo",
            "workflows[0].steps[0]",
            "workflows[1].steps[0].stepId",
            "components.parameters.page.in",
        ]
        assert result.error_message().startswith("arazzo: must match pattern")
        assert result.error_message().endswith("components.parameters.page.in: must be one of: path, query, header, cookie; got body")

    def test_raise_for_errors(self) -> None:
        result = validate(Arazzo.from_dict({}))
        with pytest.raises(DocumentValidationError) as exc_info:
            result.raise_for_errors()
        assert exc_info.value.result is result
        assert "arazzo: required field is missing" in str(exc_info.value)

    def test_통과면_raise_하지_않는다(self, minimal_document: Arazzo) -> None:
        validate(minimal_document).raise_for_errors()

    def test_결과_dict(self) -> None:
        result = ValidationResult()
        result.add("a.b", "bad")
        assert result.to_dict() == {"valid": False, "errors": [{"path": "a.b", "message": "bad"}]}
        assert json.dumps(result.to_dict())

    def test_문서가_아니면_에러_결과(self) -> None:
        result = validate(Workflow(workflow_id="w"))  # type: ignore[arg-type]
        assert not result.valid

    def test_코드로_잘못_넣은_노드는_건너뛴다(self, minimal_document: Arazzo) -> None:
        minimal_document.workflows[0].steps.append(None)  # type: ignore[arg-type]
        minimal_document.components = Components(
            parameters={"p": Parameter(name="p", value=1)},
            success_actions={"s": SuccessAction(name="s", type="end")},
            failure_actions={"f": FailureAction(name="f", type="end")},
        )
        assert validate(minimal_document).valid
