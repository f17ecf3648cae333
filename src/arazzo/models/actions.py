"""SuccessAction / FailureAction — 스텝 성공/실패 시 행동."""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Annotated, Any, Union

from pydantic import Discriminator, StrictInt, Tag, field_validator

from arazzo.models.base import ArazzoModel
from arazzo.models.criterion import Criterion
from arazzo.models.reusable import CONCRETE, REUSABLE, ReusableObject, reference_discriminator


class SuccessActionType(StrEnum):
    END = "end"
    GOTO = "goto"


class FailureActionType(StrEnum):
    END = "end"
    GOTO = "goto"
    RETRY = "retry"


class SuccessAction(ArazzoModel):
    """type=goto 이면 workflowId / stepId 중 정확히 하나가 필요."""

    name: str | None = None
    type: str | None = None
    workflow_id: str | None = None
    step_id: str | None = None
    criteria: list[Criterion] | None = None


class FailureAction(ArazzoModel):
    """SuccessAction 규칙 + retry 설정 (retryAfter 초, retryLimit 횟수).

    숫자 필드는 문자열 / bool 을 받지 않는다. float64 를 넘는 retryAfter 는
    inf 로 바꾸지 않고 decode 에러로 보고한다.
    """

    name: str | None = None
    type: str | None = None
    workflow_id: str | None = None
    step_id: str | None = None
    retry_after: float | None = None
    retry_limit: StrictInt | None = None
    criteria: list[Criterion] | None = None

    @field_validator("retry_after", mode="before")
    @classmethod
    def finite_number(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            # 트리 변환에서 float64 overflow 숫자는 10진 문자열로 남는다
            try:
                overflow = math.isinf(float(v))
            except ValueError:
                overflow = False
            if overflow:
                raise ValueError("retryAfter value too large for float64")
            raise ValueError("retryAfter must be a number")
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("retryAfter must be a number")
        if not math.isfinite(v):
            raise ValueError("retryAfter value too large for float64")
        return v


SuccessActionOrReusable = Annotated[
    Union[
        Annotated[SuccessAction, Tag(CONCRETE)],
        Annotated[ReusableObject, Tag(REUSABLE)],
    ],
    Discriminator(reference_discriminator),
]

FailureActionOrReusable = Annotated[
    Union[
        Annotated[FailureAction, Tag(CONCRETE)],
        Annotated[ReusableObject, Tag(REUSABLE)],
    ],
    Discriminator(reference_discriminator),
]
