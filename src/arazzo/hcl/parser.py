"""HCL 파서 — lark 문법으로 HCL 본문을 읽어 dict 로 만든다.

지원 범위 (HCLWriter 출력 + 손으로 쓴 문서):
  - 속성: name = expression
  - 블록: type "label" ... { body }
  - 표현식: 문자열, 숫자, true / false / null, 튜플 [...], 객체 {...}
  - 주석: #, //, /* */

출력 형태:
  - 속성은 값 그대로 (객체 → dict, 튜플 → list).
  - 블록은 같은 타입끼리 list 로 모은다. 라벨 블록은 {label: body}.

    parse('step "a" { x = 1 }')  # → {"step": [{"a": {"x": 1}}]}
"""

from __future__ import annotations

import functools
from typing import Any

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput, VisitError

from arazzo.errors import DecodeError
from arazzo.hcl.transform import unescape_string
from arazzo.values import parse_number

GRAMMAR = r"""
    start: body

    body: (attribute | block)*
    attribute: IDENTIFIER "=" _expression
    block: IDENTIFIER _label* "{" body "}"
    _label: STRING | IDENTIFIER

    _expression: string_lit | number_lit | keyword_lit | tuple_expr | object_expr
    string_lit: STRING
    number_lit: NUMBER
    keyword_lit: IDENTIFIER
    tuple_expr: "[" (_expression ("," _expression)* ","?)? "]"
    object_expr: "{" (object_item ","?)* "}"
    object_item: (STRING | IDENTIFIER) ("=" | ":") _expression

    IDENTIFIER: /[A-Za-z_][A-Za-z0-9_-]*/
    STRING: /"(?:[^"\\\n]|\\.)*"/
    NUMBER: /-?(?:\d+(?:\.\d+)?|\.\d+)(?:[eE][+-]?\d+)?/
    COMMENT: /#[^\n]*/ | /\/\/[^\n]*/ | /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore COMMENT
"""

_KEYWORDS: dict[str, Any] = {"true": True, "false": False, "null": None}


@functools.cache
def _parser() -> Lark:
    return Lark(GRAMMAR, parser="lalr", maybe_placeholders=False)


def _text(token: Token) -> str:
    """STRING 토큰은 따옴표를 벗기고 이스케이프를 푼다. 식별자는 그대로."""
    if token.type == "STRING":
        return unescape_string(token.value[1:-1])
    return token.value


class _BodyTransformer(Transformer):
    """파스 트리 → dict / list / 스칼라."""

    def start(self, items: list[Any]) -> dict[str, Any]:
        return items[0]

    def body(self, items: list[tuple[str, str, Any]]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        blocks: set[str] = set()
        for kind, name, value in items:
            if kind == "block":
                if name in result and name not in blocks:
                    raise ValueError(f'"{name}" is defined both as an attribute and a block')
                blocks.add(name)
                result.setdefault(name, []).append(value)
            else:
                if name in result:
                    raise ValueError(f'duplicate attribute "{name}"')
                result[name] = value
        return result

    def attribute(self, items: list[Any]) -> tuple[str, str, Any]:
        name, value = items
        return ("attribute", str(name), value)

    def block(self, items: list[Any]) -> tuple[str, str, Any]:
        block_type, *labels, body = items
        value = body
        for label in reversed(labels):
            value = {_text(label): value}
        return ("block", str(block_type), value)

    def string_lit(self, items: list[Token]) -> str:
        return _text(items[0])

    def number_lit(self, items: list[Token]) -> int | float | str:
        return parse_number(items[0].value)

    def keyword_lit(self, items: list[Token]) -> Any:
        word = items[0].value
        if word not in _KEYWORDS:
            raise ValueError(f"unsupported expression: {word}")
        return _KEYWORDS[word]

    def tuple_expr(self, items: list[Any]) -> list[Any]:
        return list(items)

    def object_expr(self, items: list[tuple[str, Any]]) -> dict[str, Any]:
        return dict(items)

    def object_item(self, items: list[Any]) -> tuple[str, Any]:
        key, value = items
        return (_text(key), value)


def parse(text: str) -> dict[str, Any]:
    """HCL 텍스트 → dict.

    Raises:
        DecodeError: 구문 오류 / 지원하지 않는 표현식 / 중복 속성
    """
    try:
        tree = _parser().parse(text)
        return _BodyTransformer().transform(tree)
    except UnexpectedInput as e:
        raise DecodeError(f"HCL 구문 오류: {e}", format="hcl") from e
    except VisitError as e:
        raise DecodeError(f"HCL 구문 오류: {e.orig_exc}", format="hcl") from e
