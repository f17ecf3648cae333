"""ReusableObject — Components 항목 참조 + OneOf 판별 규칙."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import JsonValue

from arazzo.models.base import ArazzoModel

CONCRETE = "concrete"
REUSABLE = "reusable"


class ReusableObject(ArazzoModel):
    """$components.* 참조 — value 로 참조 대상 값을 덮어쓸 수 있다."""

    reference: str | None = None
    value: JsonValue = None


def reference_discriminator(value: Any) -> str:
    """OneOf 판별: 원본에 reference 키가 있으면 재사용 참조, 없으면 구체 노드."""
    if isinstance(value, Mapping):
        return REUSABLE if "reference" in value else CONCRETE
    return REUSABLE if isinstance(value, ReusableObject) else CONCRETE
