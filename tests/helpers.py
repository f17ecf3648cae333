"""공유 테스트 헬퍼 — 샘플 Arazzo 문서 + 유틸리티."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

# ─── 샘플 문서 ────────────────────────────────────────

# 최소 유효 문서
MINIMAL_DOC: dict[str, Any] = {
    "arazzo": "1.0.0",
    "info": {"title": "T", "version": "1.0.0"},
    "sourceDescriptions": [{"name": "a", "url": "u"}],
    "workflows": [
        {
            "workflowId": "w",
            "steps": [{"stepId": "s", "operationId": "op"}],
        }
    ],
}

MINIMAL_JSON = json.dumps(MINIMAL_DOC)

# 모든 노드 타입 + 확장 필드 + 재사용 참조를 담은 유효 문서
FULL_DOC: dict[str, Any] = {
    "arazzo": "1.0.1",
    "info": {
        "title": "Pet Store 구매",
        "summary": "펫 검색 후 주문",
        "version": "1.2.0",
        "x-owner": {"team": "api", "oncall": ["kim", "lee"]},
    },
    "sourceDescriptions": [
        {
            "name": "petstore",
            "url": "https://example.com/petstore.yaml",
            "type": "openapi",
            "x-internal": True,
        },
        {"name": "billing", "url": "./billing.arazzo.yaml", "type": "arazzo"},
    ],
    "workflows": [
        {
            "workflowId": "buy-pet",
            "summary": "펫 구매",
            "description": "여러 줄\n설명 \"따옴표\" 포함",
            "inputs": {
                "$schema": "https://json-schema.org/draft/2020-12/schema",
                "type": "object",
                "properties": {
                    "petId": {"type": "integer"},
                    "owner": {"$ref": "#/components/inputs/owner"},
                },
                "required": ["petId"],
            },
            "dependsOn": ["charge"],
            "parameters": [
                {"name": "apiKey", "in": "header", "value": "$inputs.apiKey"},
                {"reference": "$components.parameters.page", "value": 2},
            ],
            "successActions": [{"name": "done", "type": "end"}],
            "failureActions": [{"reference": "$components.failureActions.retryLater"}],
            "steps": [
                {
                    "stepId": "find-pet",
                    "description": "템플릿 아님: ${not.interpolated} / %{ directive }",
                    "operationId": "findPetsByStatus",
                    "parameters": [
                        {"name": "status", "in": "query", "value": "available"},
                        "limit",
                    ],
                    "successCriteria": [
                        {"condition": "$statusCode == 200"},
                        {
                            "context": "$response.body",
                            "condition": "$[?(@.id > 0)]",
                            "type": "jsonpath",
                            "version": "draft-goessner-dispatch-jsonpath-00",
                        },
                    ],
                    "onSuccess": [
                        {
                            "name": "to-order",
                            "type": "goto",
                            "stepId": "place-order",
                            "criteria": [
                                {"context": "$response.body", "condition": "^ok$", "type": "regex"},
                            ],
                        }
                    ],
                    "onFailure": [
                        {"name": "retry", "type": "retry", "retryAfter": 1.5, "retryLimit": 3},
                    ],
                    "outputs": {"petId": "$response.body#/0/id"},
                    "x-timeout": 30,
                },
                {
                    "stepId": "place-order",
                    "operationPath": "{$sourceDescriptions.petstore.url}#/paths/~1store~1order/post",
                    "requestBody": {
                        "contentType": "application/json",
                        "payload": {
                            "petId": "$steps.find-pet.outputs.petId",
                            "quantity": 1,
                            "price": 12.5,
                            "tags": ["a", "b"],
                        },
                        "replacements": [{"target": "/quantity", "value": "$inputs.quantity"}],
                    },
                    "outputs": {"orderId": "$response.body#/id"},
                },
                {"stepId": "bill", "workflowId": "charge"},
            ],
            "outputs": {"orderId": "$steps.place-order.outputs.orderId"},
            "x-tags": ["store"],
        },
        {
            "workflowId": "charge",
            "steps": [{"stepId": "charge", "operationId": "billing.charge"}],
        },
    ],
    "components": {
        "inputs": {
            "owner": {
                "type": "object",
                "properties": {"name": {"type": "string"}},
                "$defs": {"id": {"type": "string"}},
            }
        },
        "parameters": {"page": {"name": "page", "in": "query", "value": 1}},
        "successActions": {"logDone": {"name": "logDone", "type": "end"}},
        "failureActions": {
            "retryLater": {"name": "retryLater", "type": "retry", "retryAfter": 10.0, "retryLimit": 2},
        },
        "x-generated": True,
    },
    "x-root": {"nested": {"deep": [1, 2.5, None, "s"]}},
}

FULL_YAML = """\
arazzo: 1.0.0
info:
  title: 펫 조회
  version: 0.1.0
  x-audience: internal
sourceDescriptions:
  - name: petstore
    url: https://example.com/petstore.yaml
    type: openapi
workflows:
  - workflowId: get-pet
    inputs:
      type: object
      properties:
        petId:
          $ref: '#/components/inputs/petId'
    steps:
      - stepId: get
        operationId: getPetById
        parameters:
          - name: petId
            in: path
            value: $inputs.petId
        successCriteria:
          - condition: $statusCode == 200
        onFailure:
          - name: again
            type: retry
            retryAfter: 0.5
            retryLimit: 2
"""

# 손으로 작성한 HCL 문서 : 라벨 / 블록 / reusable / expressionType 블록
SAMPLE_HCL = """\
arazzo = "1.0.0"
x-team = "platform"

info {
  title   = "Users"
  version = "1.0.0"
}

sourceDescription "users" {
  url  = "https://example.com/users.yaml"
  type = "openapi"
}

workflow "list-users" {
  summary   = "Test workflow"
  dependsOn = ["other-workflow"]
  inputs = {
    type = "object"
    properties = {
      owner = {
        "$ref" = "#/components/inputs/owner"
      }
    }
    required = ["owner"]
  }
  outputs = {
    result = "$steps.step1.outputs.data"
  }

  parameter "apiKey" {
    in    = "header"
    value = "$inputs.apiKey"
  }

  successAction "logSuccess" {
    type = "end"
  }

  failureAction {
    reusable {
      reference = "$components.failureActions.retryOnce"
    }
  }

  step "step1" {
    operationId = "getUser"
    description = "Get a user"
    outputs = {
      data = "$response.body"
    }

    successCriterion {
      condition = "$statusCode == 200"
      context   = "$statusCode"
      type      = "simple"
    }

    successCriterion {
      condition = "$.status"
      context   = "$response.body"
      expressionType {
        type    = "jsonpath"
        version = "draft-goessner-dispatch-jsonpath-00"
      }
    }

    successCriterion {
      condition = "//status"
      context   = "$response.body"
      type      = "xpath"
      version   = "xpath-20"
    }

    onSuccess "continue" {
      type   = "goto"
      stepId = "step2"

      criterion {
        condition = "$statusCode == 200"
      }
    }

    onFailure "retry" {
      type       = "retry"
      retryAfter = 1.5
      retryLimit = 3
    }

    onFailure {
      reusable {
        reference = "$components.failureActions.retryOnce"
      }
    }
  }

  step "step2" {
    operationPath = "api.get./items"

    requestBody {
      contentType = "application/json"
      payload = {
        name   = "test"
        active = true
      }

      replacement {
        target = "/name"
        value  = "replace"
      }

      replacement {
        target = "/active"
        value  = "true"
      }
    }
  }
}

components {
  parameter "page" {
    in    = "query"
    value = 1
  }

  failureAction "retryOnce" {
    type       = "retry"
    retryLimit = 1
  }
}
"""


# ─── 유틸리티 ─────────────────────────────────────────


def sample(doc: dict[str, Any]) -> dict[str, Any]:
    """샘플 dict 의 독립 복사본 (테스트 간 변경 격리)."""
    return copy.deepcopy(doc)


def write_text(path: Path, content: str) -> Path:
    """텍스트 파일 쓰기 (중간 디렉토리 자동 생성)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
