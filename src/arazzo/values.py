"""문서 트리 변환 유틸리티 — 동적 값 ↔ 닫힌 JSON 값 타입.

스키마 형태의 "any" 필드(Workflow.inputs, RequestBody.payload, Parameter.value,
Components.inputs, ReusableObject.value)와 확장 필드 값은 모두
null | bool | int | float | str | list | dict[str, ...] 로만 구성된다.

숫자 규칙:
  - 정수로 떨어지는 값 → int
  - 소수부가 있는 값 → float
  - float64 범위를 넘는 값 → 10진 문자열 (inf 로 바꾸거나 반올림하지 않는다)
"""

from __future__ import annotations

import math
import sys
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, JsonValue

_FLOAT_MAX = Decimal(sys.float_info.max)


def normalize_number(number: Decimal | int | float) -> int | float | str:
    """단일 정밀도 숫자 표현 → int / float / 10진 문자열."""
    if isinstance(number, bool):
        raise TypeError("bool 은 숫자로 취급하지 않는다")

    if isinstance(number, float):
        if math.isfinite(number):
            return number
        return str(number)

    if isinstance(number, int):
        if abs(number) > _FLOAT_MAX:
            return str(number)
        return number

    if not number.is_finite():
        return str(number)
    if abs(number) > _FLOAT_MAX:
        # float64 로 표현하면 inf 가 되는 크기. 원문 자릿수를 그대로 보존
        return format(number, "f")
    if number == number.to_integral_value():
        return int(number)
    return float(number)


def parse_number(text: str) -> int | float | str:
    """숫자 리터럴 문자열 → normalize_number 규칙 적용."""
    try:
        return normalize_number(Decimal(text))
    except InvalidOperation as e:
        raise ValueError(f"숫자 리터럴이 아닙니다: {text!r}") from e


def to_value(obj: Any) -> JsonValue:
    """임의의 디코드 결과 → 닫힌 JSON 값 타입.

    dict 키는 문자열로 맞추고, tuple 은 list 로, Decimal 은 숫자 규칙으로,
    날짜는 ISO 문자열로 바꾼다. 노드 모델이 섞여 있으면 트리 포맷 dict 로 바꾼다.
    표현할 수 없는 값은 TypeError.
    """
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, (int, float, Decimal)):
        return normalize_number(obj)
    if isinstance(obj, Mapping):
        return {_to_key(k): to_value(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_value(item) for item in obj]
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, BaseModel):
        to_dict = getattr(obj, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    raise TypeError(f"JSON 값으로 표현할 수 없는 타입: {type(obj).__name__}")


def _to_key(key: Any) -> str:
    # YAML 은 숫자/불리언/null 키를 허용한다. JSON 쪽 표기로 맞춘다
    if isinstance(key, str):
        return key
    if key is None:
        return "null"
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (int, float, Decimal)):
        return str(normalize_number(key))
    raise TypeError(f"dict 키로 쓸 수 없는 타입: {type(key).__name__}")


def map_keys(value: JsonValue, transform: Callable[[str], str]) -> JsonValue:
    """중첩된 모든 dict 키에 transform 적용 — 새 트리를 반환하고 입력은 건드리지 않는다."""
    if isinstance(value, dict):
        return {transform(k): map_keys(v, transform) for k, v in value.items()}
    if isinstance(value, list):
        return [map_keys(item, transform) for item in value]
    return value
