"""
Test configuration and fixtures for Safety Advisor.

This module provides a small in-memory dataset and a loader factory backed by
httpx.MockTransport, so no test touches the network or an LLM provider.
"""
import os
import json
import pytest
import httpx

from safety_advisor.schemas.entities import MasterItem, Relationship
from safety_advisor.services.data_loader import DATASET_SOURCES, DatasetLoader, parse_records
from safety_advisor.services.dataset import SafetyDataset, Table

TEST_BASE_URL = "http://testserver/output"

RISK_ELEMENTS = [
    {"id": 1, "name": "감전(안전전압초과)", "count": 12},
    {"id": 2, "name": "추락위험 부분(개구부 등)", "count": 30},
    {"id": 3, "name": "화재 / 폭발 위험", "count": 7},
]
HAZARD_ITEMS = [
    {"id": 10, "name": "노출된 배선", "count": 4},
    {"id": 11, "name": "개구부 덮개 미설치", "count": 9},
    {"id": 12, "name": "가연물 방치", "count": 3},
    {"id": 13, "name": "젖은 바닥", "count": 1},
]
COUNTERMEASURES = [
    {"id": 100, "name": "절연장치 설치", "count": 4},
    {"id": 101, "name": "안전난간 설치", "count": 8},
    {"id": 102, "name": "덮개 설치", "count": 2},
    {"id": 103, "name": "소화기 비치", "count": 3},
]
INDUSTRIES = [
    {"id": 5, "name": "건설업", "count": 40},
    {"id": 6, "name": "음식점업", "count": 11},
]
WORK_PROCESSES = [
    {"id": 1, "name": "전기배선 작업", "count": 5},
    {"id": 2, "name": "고소 작업", "count": 10},
]
RISK_FACTORS = [
    {"id": 1, "name": "전기적 요인", "count": 6},
    {"id": 2, "name": "기계적 요인", "count": 13},
]

# Row 4 resolves to the same tuple as row 2; rows 6 and 7 have dangling keys
RELATIONSHIPS = [
    {"row_id": 1, "industry_id": 5, "work_process_id": 1, "risk_factor_id": 1,
     "risk_element_id": 1, "hazard_item_id": 10, "countermeasure_id": 100},
    {"row_id": 2, "industry_id": 5, "work_process_id": 2, "risk_factor_id": 2,
     "risk_element_id": 2, "hazard_item_id": 11, "countermeasure_id": 101},
    {"row_id": 3, "industry_id": 6, "work_process_id": 2, "risk_factor_id": 2,
     "risk_element_id": 2, "hazard_item_id": 11, "countermeasure_id": 102},
    {"row_id": 4, "industry_id": 5, "work_process_id": 2, "risk_factor_id": 2,
     "risk_element_id": 2, "hazard_item_id": 11, "countermeasure_id": 101},
    {"row_id": 5, "industry_id": 6, "work_process_id": 1, "risk_factor_id": 1,
     "risk_element_id": 3, "hazard_item_id": 12, "countermeasure_id": 103},
    {"row_id": 6, "industry_id": 5, "work_process_id": 99, "risk_factor_id": 1,
     "risk_element_id": 1, "hazard_item_id": 10, "countermeasure_id": 100},
    {"row_id": 7, "industry_id": 5, "work_process_id": 1, "risk_factor_id": 1,
     "risk_element_id": 1, "hazard_item_id": 13, "countermeasure_id": 999},
]

ACCIDENT_TYPES = [
    {"id": 1, "name": "떨어짐 (추락)", "description": "높은 곳에서 떨어짐",
     "examples": ["비계에서 추락", "사다리에서 추락"], "frequency": "매우 높음"},
    {"id": 2, "name": "넘어짐 (전도)", "description": "미끄러지거나 걸려 넘어짐",
     "examples": ["젖은 바닥"], "frequency": "높음"},
    {"id": 3, "name": "감전", "description": "전기 접촉",
     "examples": ["노출 배선 접촉"], "frequency": "보통"},
    {"id": 4, "name": "화재", "description": "화재 발생",
     "examples": ["용접 불티"], "frequency": "보통"},
]

ACCIDENT_VIDEOS = [
    {"id": 1, "name": "떨어짐 (추락)", "videos": ["https://v/1a", "https://v/1b", "https://v/1c"], "videoCount": 3},
    {"id": 2, "name": "넘어짐 (전도)", "videos": [], "videoCount": 0},
    {"id": 3, "name": "감전", "videos": ["https://v/3a"], "videoCount": 1},
]

ACCIDENT_CASES = [
    {"id": i, "title": f"사례 {i}", "industry": "건설업", "description": "설명",
     "accidentType": "떨어짐 (추락)" if i <= 5 else "감전", "accidentTypeId": 1 if i <= 5 else 3,
     "originalType": "추락"}
    for i in range(1, 9)
]


def build_payloads():
    """Map each dataset file name to its JSON payload."""
    tables = DATASET_SOURCES['tables']
    catalogs = DATASET_SOURCES['catalogs']
    return {
        tables[Table.RISK_ELEMENT.value]: RISK_ELEMENTS,
        tables[Table.HAZARD_ITEM.value]: HAZARD_ITEMS,
        tables[Table.COUNTERMEASURE.value]: COUNTERMEASURES,
        tables[Table.INDUSTRY.value]: INDUSTRIES,
        tables[Table.WORK_PROCESS.value]: WORK_PROCESSES,
        tables[Table.RISK_FACTOR.value]: RISK_FACTORS,
        DATASET_SOURCES['relationships']: RELATIONSHIPS,
        catalogs['accident_types']: ACCIDENT_TYPES,
        catalogs['accident_videos']: ACCIDENT_VIDEOS,
        catalogs['accident_cases']: ACCIDENT_CASES,
    }


class RecordingTransport(httpx.MockTransport):
    """MockTransport serving the payloads by file name and recording requests."""

    def __init__(self, payloads, failing=(), raw=None):
        self.payloads = payloads
        self.failing = set(failing)
        self.raw = raw or {}
        self.requested = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        filename = request.url.path.rsplit("/", 1)[-1]
        self.requested.append(filename)
        if filename in self.failing:
            return httpx.Response(500, text="server error")
        if filename in self.raw:
            return httpx.Response(200, content=self.raw[filename])
        if filename not in self.payloads:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, content=json.dumps(self.payloads[filename]).encode("utf-8"))


@pytest.fixture
def payloads():
    return build_payloads()


@pytest.fixture
def make_loader(payloads):
    """Factory returning (loader, transport) for the given overrides."""
    def _make(failing=(), raw=None, overrides=None):
        served = dict(payloads)
        served.update(overrides or {})
        transport = RecordingTransport(served, failing=failing, raw=raw)
        client = httpx.AsyncClient(transport=transport)
        return DatasetLoader(base_url=TEST_BASE_URL, client=client), transport
    return _make


@pytest.fixture
def sample_dataset():
    tables = {
        Table.RISK_ELEMENT: parse_records(MasterItem, RISK_ELEMENTS, "risk_element"),
        Table.HAZARD_ITEM: parse_records(MasterItem, HAZARD_ITEMS, "hazard_item"),
        Table.COUNTERMEASURE: parse_records(MasterItem, COUNTERMEASURES, "countermeasure"),
        Table.INDUSTRY: parse_records(MasterItem, INDUSTRIES, "industry"),
        Table.WORK_PROCESS: parse_records(MasterItem, WORK_PROCESSES, "work_process"),
        Table.RISK_FACTOR: parse_records(MasterItem, RISK_FACTORS, "risk_factor"),
    }
    relationships = parse_records(Relationship, RELATIONSHIPS, "relationships")
    return SafetyDataset(tables, relationships)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables."""
    if not os.environ.get("OPENAI_API_KEY"):
        monkeypatch.setenv("OPENAI_API_KEY", "dummy_key_for_tests")
