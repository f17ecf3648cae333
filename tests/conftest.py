"""공통 테스트 픽스처 — 샘플 문서 / 샘플 파일."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from arazzo.models.document import Arazzo
from tests.helpers import FULL_DOC, FULL_YAML, MINIMAL_DOC, SAMPLE_HCL, sample, write_text


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """CLI 가 바꾼 structlog 전역 설정을 테스트마다 되돌린다."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def minimal_document() -> Arazzo:
    """최소 유효 문서."""
    return Arazzo.from_dict(sample(MINIMAL_DOC))


@pytest.fixture
def full_document() -> Arazzo:
    """모든 노드 타입을 담은 유효 문서."""
    return Arazzo.from_dict(sample(FULL_DOC))


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """포맷별 샘플 파일이 있는 디렉토리."""
    write_text(tmp_path / "full.json", json.dumps(FULL_DOC, ensure_ascii=False, indent=2))
    write_text(tmp_path / "minimal.json", json.dumps(MINIMAL_DOC))
    write_text(tmp_path / "pet.yaml", FULL_YAML)
    write_text(tmp_path / "users.hcl", SAMPLE_HCL)

    broken = sample(MINIMAL_DOC)
    broken["arazzo"] = "2.0.0"
    broken["workflows"][0]["steps"].append({"stepId": "s", "operationId": "op", "workflowId": "w"})
    write_text(tmp_path / "broken.json", json.dumps(broken))

    write_text(tmp_path / "garbage.json", "{not json")
    return tmp_path
