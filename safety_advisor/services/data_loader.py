"""
Dataset loader for Safety Advisor.

This module provides functionality for:
1. Fetching the seven dataset resources concurrently
2. Validating them into immutable records
3. Caching the assembled snapshot for the process lifetime
4. Loading the accident type, video and case catalogs
"""
import asyncio
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from safety_advisor.schemas.entities import (
    AccidentCase, AccidentType, AccidentVideoSet, MasterItem, Relationship
)
from safety_advisor.services.config import (
    SAFETY_DATA_BASE_URL, SAFETY_DATA_TIMEOUT, load_yaml_config
)
from safety_advisor.services.dataset import SafetyDataset, Table
from safety_advisor.services.errors import LoadError

ModelT = TypeVar("ModelT", bound=BaseModel)

DATASET_SOURCES = load_yaml_config('dataset_sources.yaml')
assert isinstance(DATASET_SOURCES.get('tables'), dict), "dataset_sources.yaml 'tables' must be a dict"
assert {t.value for t in Table} == set(DATASET_SOURCES['tables']), "dataset_sources.yaml must list all six tables"
assert 'relationships' in DATASET_SOURCES, "dataset_sources.yaml must name the relationships file"

LOAD_FAILED_MSG = "안전 데이터를 불러오는 데 실패했습니다."


def parse_records(model: Type[ModelT], payload: Any, resource: str) -> List[ModelT]:
    """
    Validate a decoded JSON array into a list of records.

    Raises:
        LoadError: If the payload is not an array or any row is malformed
    """
    if not isinstance(payload, list):
        raise LoadError(f"{resource}: expected a JSON array, got {type(payload).__name__}", resource)
    records = []
    for index, row in enumerate(payload):
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            raise LoadError(f"{resource}: malformed row {index}: {e.errors()[0]['msg']}", resource) from e
    return records


async def fetch_json(client: httpx.AsyncClient, url: str) -> Any:
    """Fetch and decode one JSON resource, wrapping any failure in LoadError."""
    try:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as e:
        raise LoadError(f"{url}: fetch failed: {str(e)}", url) from e
    except ValueError as e:
        raise LoadError(f"{url}: invalid JSON: {str(e)}", url) from e


class DatasetLoader:
    """
    Loads the safety dataset once and caches it.

    The snapshot is assigned only after all seven resources were fetched and
    validated; a failed load leaves the cache empty so the next call retries
    the whole load. Catalogs are cached independently.
    """

    def __init__(self, base_url: str = SAFETY_DATA_BASE_URL, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = SAFETY_DATA_TIMEOUT):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self._client = client
        self._dataset: Optional[SafetyDataset] = None
        self._catalogs: Dict[str, list] = {}
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._dataset is not None

    def reset(self) -> None:
        """Drop the cached snapshot and catalogs."""
        self._dataset = None
        self._catalogs = {}
        self._lock = asyncio.Lock()

    async def _fetch_many(self, paths: List[str]) -> List[Any]:
        urls = [self.base_url + path for path in paths]
        if self._client is not None:
            return await self._gather(self._client, urls)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._gather(client, urls)

    async def _gather(self, client: httpx.AsyncClient, urls: List[str]) -> List[Any]:
        results = await asyncio.gather(
            *(fetch_json(client, url) for url in urls),
            return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results

    async def load(self) -> SafetyDataset:
        """
        Return the dataset snapshot, fetching it on first use.

        Raises:
            LoadError: If any of the seven resources fails to load
        """
        if self._dataset is not None:
            return self._dataset
        async with self._lock:
            if self._dataset is None:
                self._dataset = await self._load_dataset()
        return self._dataset

    async def _load_dataset(self) -> SafetyDataset:
        tables = list(Table)
        paths = [DATASET_SOURCES['tables'][table.value] for table in tables]
        paths.append(DATASET_SOURCES['relationships'])

        print(f"[load_safety_data] Fetching {len(paths)} resources from {self.base_url}")
        try:
            payloads = await self._fetch_many(paths)
            parsed = {
                table: parse_records(MasterItem, payload, path)
                for table, payload, path in zip(tables, payloads, paths)
            }
            relationships = parse_records(Relationship, payloads[-1], paths[-1])
            dataset = SafetyDataset(parsed, relationships)
        except LoadError as e:
            print(f"[load_safety_data] Error: {str(e)}")
            raise
        except ValueError as e:
            print(f"[load_safety_data] Error: {str(e)}")
            raise LoadError(str(e)) from e

        print(f"[load_safety_data] Loaded dataset: {dataset.summary()}")
        return dataset

    async def _load_catalog(self, name: str, model: Type[ModelT]) -> List[ModelT]:
        if name in self._catalogs:
            return self._catalogs[name]
        path = DATASET_SOURCES['catalogs'][name]
        async with self._lock:
            if name not in self._catalogs:
                payload = (await self._fetch_many([path]))[0]
                self._catalogs[name] = parse_records(model, payload, path)
                print(f"[load_catalog] Loaded {len(self._catalogs[name])} {name}")
        return self._catalogs[name]

    async def load_accident_types(self) -> List[AccidentType]:
        return await self._load_catalog('accident_types', AccidentType)

    async def load_accident_videos(self) -> List[AccidentVideoSet]:
        return await self._load_catalog('accident_videos', AccidentVideoSet)

    async def load_accident_cases(self) -> List[AccidentCase]:
        return await self._load_catalog('accident_cases', AccidentCase)


# Process-wide loader instance
dataset_loader = DatasetLoader()


async def load_safety_data(loader: Optional[DatasetLoader] = None) -> SafetyDataset:
    """Load the dataset through the given loader, the process-wide one by default."""
    return await (loader or dataset_loader).load()
