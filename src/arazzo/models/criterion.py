"""Criterion — 성공/실패 판정 조건.

type 과 version 이 같은 레벨에 함께 있으면 CriterionExpressionType 으로 묶는다.
이 경우 plain type 은 비워 두고, encode 시 expression_type 의 type/version 을 펼쳐 쓴다.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar

from pydantic import Field

from arazzo.models.base import ArazzoModel


class CriterionType(StrEnum):
    SIMPLE = "simple"
    REGEX = "regex"
    JSONPATH = "jsonpath"
    XPATH = "xpath"


# expression type 별 허용 version
JSONPATH_VERSION = "draft-goessner-dispatch-jsonpath-00"
XPATH_VERSIONS: tuple[str, ...] = ("xpath-10", "xpath-20", "xpath-30")


class CriterionExpressionType(ArazzoModel):
    """jsonpath/xpath 표현식의 type + version."""

    type: str | None = None
    version: str | None = None


class Criterion(ArazzoModel):
    context: str | None = None
    condition: str | None = None
    type: str | None = None

    # 트리 포맷에서는 type/version 으로 펼쳐지므로 직접 직렬화하지 않는다
    expression_type: CriterionExpressionType | None = Field(default=None, exclude=True)

    extra_known_fields: ClassVar[tuple[str, ...]] = ("version",)

    @classmethod
    def _prepare_fields(cls, fields: dict[str, Any]) -> dict[str, Any]:
        version = fields.pop("version", None)
        has_expression = fields.get("expression_type") is not None or fields.get("expressionType") is not None
        if version is not None and "type" in fields and not has_expression:
            fields["expression_type"] = {"type": fields.pop("type"), "version": version}
        return fields

    def _finish_dump(self, data: dict[str, Any]) -> dict[str, Any]:
        # version 이 없는 expression_type 은 쓰지 않고 plain type 을 그대로 둔다
        expression = self.expression_type
        if expression is None or not expression.version:
            return data

        ordered: dict[str, Any] = {}
        if "context" in data:
            ordered["context"] = data["context"]
        if "condition" in data:
            ordered["condition"] = data["condition"]
        expression_type = expression.type if expression.type is not None else data.get("type")
        if expression_type is not None:
            ordered["type"] = expression_type
        if expression.version is not None:
            ordered["version"] = expression.version
        return ordered

    @property
    def effective_type(self) -> str | None:
        """판정에 쓰이는 type — expression_type 이 있으면 그쪽."""
        if self.expression_type is not None and self.expression_type.type:
            return self.expression_type.type
        return self.type
