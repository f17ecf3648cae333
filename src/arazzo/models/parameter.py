"""Parameter — 스텝/워크플로우에 전달되는 파라미터."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Union

from pydantic import Discriminator, Field, JsonValue, Tag

from arazzo.models.base import ArazzoModel
from arazzo.models.reusable import CONCRETE, REUSABLE, ReusableObject, reference_discriminator


class ParameterIn(StrEnum):
    """파라미터 위치 — operation 스텝에서만 필요."""
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class Parameter(ArazzoModel):
    name: str | None = None
    in_: str | None = Field(default=None, alias="in")
    value: JsonValue = None


ParameterOrReusable = Annotated[
    Union[
        Annotated[Parameter, Tag(CONCRETE)],
        Annotated[ReusableObject, Tag(REUSABLE)],
    ],
    Discriminator(reference_discriminator),
]
