"""Codec — 바이트 ↔ Arazzo 문서 (JSON / YAML / HCL).

    doc = decode(data, "json")
    result = doc.validate()
    hcl_bytes = encode(doc, "hcl")

decode 는 구조만 채우고 규칙 검사는 하지 않는다. encode 는 문서를 변경하지 않는다.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from arazzo.config import DEFAULT_OPTIONS, CodecOptions
from arazzo.errors import DecodeError, EncodeError, UnsupportedFormatError
from arazzo.hcl.reader import read_document
from arazzo.hcl.writer import write_document
from arazzo.models.base import WIRE_CONTEXT
from arazzo.models.document import Arazzo
from arazzo.values import to_value

logger = structlog.get_logger()


class Format(StrEnum):
    JSON = "json"
    YAML = "yaml"
    HCL = "hcl"


SUFFIX_FORMATS: dict[str, Format] = {
    ".json": Format.JSON,
    ".yaml": Format.YAML,
    ".yml": Format.YAML,
    ".hcl": Format.HCL,
}


def resolve_format(fmt: Format | str) -> Format:
    try:
        return Format(str(fmt).lower())
    except ValueError as e:
        raise UnsupportedFormatError(fmt) from e


def format_for_path(path: str | Path) -> Format:
    """파일 확장자 → 포맷."""
    suffix = Path(path).suffix.lower()
    if suffix not in SUFFIX_FORMATS:
        raise UnsupportedFormatError(suffix or str(path))
    return SUFFIX_FORMATS[suffix]


# ─── YAML ───────────────────────────────────────────


class _DocumentLoader(yaml.SafeLoader):
    """float 를 Decimal 로 읽는 SafeLoader — 숫자 정규화가 원문 자릿수를 보게 한다."""

    def construct_decimal(self, node: yaml.ScalarNode) -> Any:
        text = str(self.construct_scalar(node)).replace("_", "")
        try:
            return Decimal(text)
        except InvalidOperation:
            # .inf / .nan / 60진 표기
            return self.construct_yaml_float(node)


_DocumentLoader.add_constructor("tag:yaml.org,2002:float", _DocumentLoader.construct_decimal)


# ─── decode ─────────────────────────────────────────


def _text(data: bytes | str, fmt: Format) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DecodeError(f"UTF-8 로 읽을 수 없습니다: {e}", format=fmt) from e


def _build(tree: Any, fmt: Format) -> Arazzo:
    if not isinstance(tree, dict):
        raise DecodeError(f"최상위 값은 객체여야 합니다 (got {type(tree).__name__})", format=fmt)
    try:
        return Arazzo.model_validate(to_value(tree), context={WIRE_CONTEXT: True})
    except TypeError as e:
        raise DecodeError(str(e), format=fmt) from e
    except ValidationError as e:
        details = [
            f"{' → '.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise DecodeError("문서 구조 오류", format=fmt, details=details) from e


def decode(
    data: bytes | str,
    format: Format | str = Format.JSON,
    *,
    options: CodecOptions | None = None,
) -> Arazzo:
    """바이트(또는 문자열) → Arazzo.

    Raises:
        UnsupportedFormatError: 알 수 없는 포맷
        DecodeError: 구문 오류 / 필드 타입 오류 (HCL 은 HCLDecodeError)
    """
    fmt = resolve_format(format)
    options = options or DEFAULT_OPTIONS
    text = _text(data, fmt)

    if fmt is Format.JSON:
        try:
            tree = json.loads(text, parse_float=Decimal)
        except json.JSONDecodeError as e:
            raise DecodeError(f"JSON 구문 오류: {e}", format=fmt) from e
        document = _build(tree, fmt)
    elif fmt is Format.YAML:
        try:
            tree = yaml.load(text, Loader=_DocumentLoader)
        except yaml.YAMLError as e:
            raise DecodeError(f"YAML 구문 오류: {e}", format=fmt) from e
        document = _build(tree, fmt)
    else:
        document = read_document(text, options)

    logger.debug(
        "document_decoded",
        format=str(fmt),
        workflows=len(document.workflows),
        sources=len(document.source_descriptions),
    )
    return document


# ─── encode ─────────────────────────────────────────


def encode(
    document: Arazzo,
    format: Format | str = Format.JSON,
    *,
    options: CodecOptions | None = None,
) -> bytes:
    """Arazzo → UTF-8 바이트.

    Raises:
        UnsupportedFormatError: 알 수 없는 포맷
        EncodeError: 출력할 수 없는 값
    """
    fmt = resolve_format(format)
    options = options or DEFAULT_OPTIONS
    if not isinstance(document, Arazzo):
        raise EncodeError(f"Arazzo 문서가 아닙니다: {type(document).__name__}")

    try:
        if fmt is Format.JSON:
            text = json.dumps(
                document.to_dict(),
                indent=options.indent,
                sort_keys=options.sort_keys,
                ensure_ascii=False,
            ) + "\n"
        elif fmt is Format.YAML:
            text = yaml.safe_dump(
                document.to_dict(),
                sort_keys=options.sort_keys,
                allow_unicode=True,
                indent=options.indent or 2,
                default_flow_style=False,
            )
        else:
            text = write_document(document, options)
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise EncodeError(f"{fmt} 출력 실패: {e}") from e

    logger.debug("document_encoded", format=str(fmt), size=len(text))
    return text.encode("utf-8")


def convert(
    data: bytes | str,
    source: Format | str,
    target: Format | str,
    *,
    options: CodecOptions | None = None,
) -> bytes:
    """source 포맷으로 읽어 target 포맷으로 다시 쓴다."""
    return encode(decode(data, source, options=options), target, options=options)


# ─── 파일 ───────────────────────────────────────────


def load(
    path: str | Path,
    format: Format | str | None = None,
    *,
    options: CodecOptions | None = None,
) -> Arazzo:
    """파일 → Arazzo. format 을 생략하면 확장자로 판단."""
    path = Path(path)
    fmt = resolve_format(format) if format else format_for_path(path)
    return decode(path.read_bytes(), fmt, options=options)


def dump(
    document: Arazzo,
    path: str | Path,
    format: Format | str | None = None,
    *,
    options: CodecOptions | None = None,
) -> None:
    """Arazzo → 파일. format 을 생략하면 확장자로 판단."""
    path = Path(path)
    fmt = resolve_format(format) if format else format_for_path(path)
    path.write_bytes(encode(document, fmt, options=options))
