"""확장 필드(x-*) side-channel.

모든 노드는 decode 시 원본 필드를 known / 그 외로 나누고,
그 외 중 "x-" 로 시작하는 키만 extensions 에 보관한다. 나머지 미지 키는 버린다.
encode 시에는 known 필드를 먼저 직렬화한 뒤 extensions 를 같은 레벨로 합친다.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import Any

import structlog
from pydantic import JsonValue

from arazzo.values import to_value

logger = structlog.get_logger()

EXTENSION_PREFIX = "x-"


def is_extension_key(key: Any) -> bool:
    return isinstance(key, str) and key.startswith(EXTENSION_PREFIX)


def split_extensions(
    raw: Mapping[str, Any],
    known_fields: Collection[str],
) -> tuple[dict[str, Any], dict[str, JsonValue]]:
    """raw → (known 필드, 확장 필드).

    확장 값 하나를 변환하지 못해도 나머지 필드 처리는 계속한다.
    """
    fields: dict[str, Any] = {}
    extensions: dict[str, JsonValue] = {}
    for key, value in raw.items():
        if key in known_fields:
            fields[key] = value
        elif is_extension_key(key):
            try:
                extensions[key] = to_value(value)
            except (TypeError, ValueError) as e:
                logger.warning("extension_skipped", key=key, error=str(e))
    return fields, extensions


def merge_extensions(data: dict[str, Any], extensions: Mapping[str, Any] | None) -> dict[str, Any]:
    """직렬화된 known 필드 dict 에 확장 필드를 형제 키로 합친다 (비어 있으면 그대로)."""
    if not extensions:
        return data
    for key, value in extensions.items():
        if is_extension_key(key):
            data[key] = value
    return data
