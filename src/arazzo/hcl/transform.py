"""HCL 경계 변환 — 식별자 치환 + 문자열 이스케이프.

HCL 은 두 가지가 트리 포맷과 다르다:
  1. "$" 로 시작하는 키($ref, $schema ...)는 식별자로 쓸 수 없다.
     → 쓰기: "$" 를 "_" 로 바꾼다. 읽기: 허용 목록에 있는 "_" 키만 "$" 로 되돌린다.
  2. 문자열 리터럴 안에 줄바꿈 / 따옴표 / 템플릿 시작(${, %{)을 그대로 둘 수 없다.
     → 한 번의 정규식 치환으로 이스케이프한다 (이미 치환된 결과를 다시 건드리지 않음).
"""

from __future__ import annotations

import re

from pydantic import JsonValue

from arazzo.config import DEFAULT_OPTIONS, CodecOptions
from arazzo.values import map_keys

# ─── 식별자 치환 ─────────────────────────────────────


def to_hcl_key(key: str, options: CodecOptions = DEFAULT_OPTIONS) -> str:
    """$ref → _ref. 나머지 부분은 그대로 둔다."""
    if key.startswith(options.reserved_prefix):
        return options.placeholder_prefix + key[len(options.reserved_prefix):]
    return key


def from_hcl_key(key: str, options: CodecOptions = DEFAULT_OPTIONS) -> str:
    """_ref → $ref. 허용 목록 밖의 "_" 키(원래부터 "_" 였던 키)는 그대로."""
    if key in options.restored_keys:
        return options.reserved_prefix + key[len(options.placeholder_prefix):]
    return key


def encode_identifiers(value: JsonValue, options: CodecOptions = DEFAULT_OPTIONS) -> JsonValue:
    """중첩된 모든 키에 to_hcl_key 적용 — 새 트리 반환."""
    return map_keys(value, lambda key: to_hcl_key(key, options))


def decode_identifiers(value: JsonValue, options: CodecOptions = DEFAULT_OPTIONS) -> JsonValue:
    """중첩된 모든 키에 from_hcl_key 적용 — 새 트리 반환."""
    return map_keys(value, lambda key: from_hcl_key(key, options))


# ─── 문자열 이스케이프 ────────────────────────────────

_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    '"': '\\"',
    "${": "$${",
    "%{": "%%{",
}
_ESCAPE_PATTERN = re.compile(r'\\|\n|\r|\t|"|\$\{|%\{')

_BACKSLASH_UNESCAPES = {
    "\\\\": "\\",
    "\\n": "\n",
    "\\r": "\r",
    "\\t": "\t",
    '\\"': '"',
}
_TEMPLATE_UNESCAPES = {
    "$${": "${",
    "%%{": "%{",
}
_BACKSLASH_PATTERN = r'\\u[0-9a-fA-F]{4}|\\[\\nrt"]'
_TEMPLATE_PATTERN = r"\$\$\{|%%\{"


def escape_string(text: str) -> str:
    """Python 문자열 → HCL 따옴표 리터럴 내부 표기."""
    return _ESCAPE_PATTERN.sub(lambda m: _ESCAPES[m.group(0)], text)


def unescape_string(text: str, *, backslashes: bool = True, templates: bool = True) -> str:
    """escape_string 의 역변환.

    파서가 이미 일부를 풀어 주는 경우에 대비해 백슬래시 / 템플릿 처리를 따로 끌 수 있다.
    """
    parts = []
    if backslashes:
        parts.append(_BACKSLASH_PATTERN)
    if templates:
        parts.append(_TEMPLATE_PATTERN)
    if not parts:
        return text
    return re.sub("|".join(parts), _unescape_match, text)


def _unescape_match(match: re.Match[str]) -> str:
    token = match.group(0)
    if token.startswith("\\u"):
        return chr(int(token[2:], 16))
    if token in _BACKSLASH_UNESCAPES:
        return _BACKSLASH_UNESCAPES[token]
    return _TEMPLATE_UNESCAPES[token]
