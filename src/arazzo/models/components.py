"""Components — 재사용 가능한 입력 스키마 / 파라미터 / 액션 모음.

모든 키는 ^[a-zA-Z0-9\\.\\-_]+$ 패턴을 따라야 한다 (validation 에서 검사).
"""

from __future__ import annotations

from pydantic import JsonValue

from arazzo.models.actions import FailureAction, SuccessAction
from arazzo.models.base import ArazzoModel
from arazzo.models.parameter import Parameter


class Components(ArazzoModel):
    inputs: dict[str, JsonValue] | None = None
    parameters: dict[str, Parameter] | None = None
    success_actions: dict[str, SuccessAction] | None = None
    failure_actions: dict[str, FailureAction] | None = None
