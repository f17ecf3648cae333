"""모든 Arazzo 노드의 공통 베이스 — camelCase 별칭 + 확장 필드 보존.

- 필드는 snake_case 로 선언하고 직렬화 키는 camelCase (alias_generator).
- decode 시 x-* 키는 extensions 로, 그 외 미지 키는 버린다.
- encode 시 None 필드는 생략하고 extensions 를 형제 키로 합친다.
- decode 단계에서는 필수 여부를 검사하지 않는다. 전부 validation 에서 처리.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    SerializerFunctionWrapHandler,
    ValidationInfo,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from arazzo.extensions import merge_extensions, split_extensions

# model_validate(context=...) 키 — 트리 포맷 입력이면 별칭 키만 인정한다
WIRE_CONTEXT = "wire"


class ArazzoModel(BaseModel):
    """Arazzo 노드 베이스."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # 스키마에 선언되지 않았지만 decode 시 받아들여야 하는 키 (예: Criterion.version)
    extra_known_fields: ClassVar[tuple[str, ...]] = ()

    extensions: dict[str, JsonValue] = Field(default_factory=dict, exclude=True)

    @classmethod
    def known_fields(cls, *, wire: bool = False) -> frozenset[str]:
        """decode 시 인정하는 키.

        wire=True 이면 직렬화 포맷에 실제로 나타나는 키(별칭 + extra_known_fields)만.
        아니면 코드에서 쓰는 파이썬 필드 이름까지 받는다.
        """
        names: set[str] = set(cls.extra_known_fields)
        for name, info in cls.model_fields.items():
            if name == "extensions":
                continue
            if wire:
                if info.alias and not info.exclude:
                    names.add(info.alias)
                continue
            names.add(name)
            if info.alias:
                names.add(info.alias)
        return frozenset(names)

    @model_validator(mode="before")
    @classmethod
    def _collect_extensions(cls, data: Any, info: ValidationInfo) -> Any:
        if not isinstance(data, Mapping):
            return data
        wire = bool(info.context and info.context.get(WIRE_CONTEXT))
        fields, extensions = split_extensions(data, cls.known_fields(wire=wire))

        # 코드에서 extensions={...} 로 직접 넘긴 경우도 x-* 만 받는다
        explicit = None if wire else data.get("extensions")
        if isinstance(explicit, Mapping):
            _, explicit_extensions = split_extensions(explicit, ())
            extensions = {**explicit_extensions, **extensions}

        fields["extensions"] = extensions
        return cls._prepare_fields(fields)

    @classmethod
    def _prepare_fields(cls, fields: dict[str, Any]) -> dict[str, Any]:
        """decode 직전 필드 dict 후처리 훅 (discriminated 필드용)."""
        return fields

    @model_serializer(mode="wrap")
    def _dump_with_extensions(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = self._finish_dump(handler(self))
        return merge_extensions(data, self.extensions)

    def _finish_dump(self, data: dict[str, Any]) -> dict[str, Any]:
        """known 필드 직렬화 결과 후처리 훅."""
        return data

    def to_dict(self) -> dict[str, Any]:
        """트리 포맷(JSON/YAML) dict — camelCase 키, None 생략, 확장 필드 포함."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls.model_validate(data)
