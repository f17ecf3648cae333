"""Codec 옵션 — 들여쓰기, HCL 식별자 치환 규칙.

라이브러리는 상태가 없다. 옵션은 encode/decode 호출마다 키워드 인자로 전달하고,
생략하면 DEFAULT_OPTIONS 를 쓴다.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

# JSON Schema 메타 키워드 중 HCL 왕복 시 복원 대상 ("_" 접두 형태)
DEFAULT_RESTORED_KEYS: tuple[str, ...] = (
    "_ref",
    "_id",
    "_schema",
    "_defs",
    "_comment",
    "_vocabulary",
    "_anchor",
    "_dynamicRef",
    "_dynamicAnchor",
)


class CodecOptions(BaseModel):
    """encode/decode 공통 옵션."""

    model_config = ConfigDict(frozen=True)

    # JSON / YAML
    indent: int | None = 2
    sort_keys: bool = False

    # HCL
    hcl_indent: int = 2
    reserved_prefix: str = "$"
    placeholder_prefix: str = "_"
    restored_keys: tuple[str, ...] = Field(default=DEFAULT_RESTORED_KEYS)

    @field_validator("reserved_prefix", "placeholder_prefix")
    @classmethod
    def single_character(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError(f"접두 문자는 한 글자여야 합니다: {v!r}")
        return v


DEFAULT_OPTIONS = CodecOptions()
