"""
Remote data sources used by dashboard domain suppliers.

The dashboard loader only needs three read operations from the document
store: all documents of a collection in an organization, one document by
id, and a simple field-equality query.

To plug in a new backend:
1. Subclass RemoteDataSource
2. Implement fetch_by_org(), fetch_by_key() and query()
3. Pass an instance to DashboardLoader
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
import yaml

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class RemoteDataSource(ABC):
    """Abstract read interface to the remote document store."""

    @abstractmethod
    async def fetch_by_org(self, organization_id: str, collection: str) -> List[Document]:
        """All documents of ``collection`` in an organization."""
        ...

    @abstractmethod
    async def fetch_by_key(
        self, organization_id: str, collection: str, doc_id: str
    ) -> Optional[Document]:
        """One document by id, or None if it does not exist."""
        ...

    @abstractmethod
    async def query(
        self, organization_id: str, collection: str, field: str, value: Any
    ) -> List[Document]:
        """Documents of ``collection`` whose ``field`` equals ``value``."""
        ...


class InMemoryDataSource(RemoteDataSource):
    """
    Data source over nested dicts: ``{org_id: {collection: {doc_id: doc}}}``.

    Used for demos, the CLI and tests. Supports artificial latency and
    per-collection failures to exercise progressive loading.

    Usage:
        source = InMemoryDataSource({
            "acme": {"employees": {"e1": {"name": "Ada", "managerId": "u1"}}},
        })
        source.fail_collection("warnings", RuntimeError("offline"))
    """

    def __init__(
        self,
        data: Optional[Dict[str, Dict[str, Dict[str, Document]]]] = None,
        latency: float = 0.0,
    ) -> None:
        self._data = data or {}
        self._latency = latency
        self._failures: Dict[str, Exception] = {}
        self.calls: List[tuple] = []

    @classmethod
    def from_yaml(cls, path: str, latency: float = 0.0) -> "InMemoryDataSource":
        """
        Load documents from a YAML file.

        Layout::

            organizations:
              acme:
                employees:
                  e1: {name: Ada, managerId: u1}
        """
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return cls(raw.get("organizations", {}), latency=latency)

    def fail_collection(self, collection: str, error: Exception) -> None:
        """Make every read of ``collection`` raise ``error``."""
        self._failures[collection] = error

    def clear_failures(self) -> None:
        self._failures.clear()

    def put(self, organization_id: str, collection: str, doc_id: str, doc: Document) -> None:
        self._data.setdefault(organization_id, {}).setdefault(collection, {})[doc_id] = doc

    def call_count(self, collection: Optional[str] = None) -> int:
        if collection is None:
            return len(self.calls)
        return sum(1 for call in self.calls if call[2] == collection)

    async def fetch_by_org(self, organization_id: str, collection: str) -> List[Document]:
        docs = await self._collection("fetch_by_org", organization_id, collection)
        return [self._with_id(doc_id, doc) for doc_id, doc in docs.items()]

    async def fetch_by_key(
        self, organization_id: str, collection: str, doc_id: str
    ) -> Optional[Document]:
        docs = await self._collection("fetch_by_key", organization_id, collection)
        doc = docs.get(doc_id)
        return self._with_id(doc_id, doc) if doc is not None else None

    async def query(
        self, organization_id: str, collection: str, field: str, value: Any
    ) -> List[Document]:
        docs = await self._collection("query", organization_id, collection)
        return [
            self._with_id(doc_id, doc)
            for doc_id, doc in docs.items()
            if doc.get(field) == value
        ]

    async def _collection(self, op: str, organization_id: str, collection: str) -> Dict[str, Document]:
        self.calls.append((op, organization_id, collection))
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        else:
            await asyncio.sleep(0)
        if collection in self._failures:
            raise self._failures[collection]
        return self._data.get(organization_id, {}).get(collection, {})

    @staticmethod
    def _with_id(doc_id: str, doc: Document) -> Document:
        result = copy.deepcopy(doc)
        result.setdefault("id", doc_id)
        return result


class HttpDataSource(RemoteDataSource):
    """
    Data source backed by a REST document API.

    Endpoints:
        GET {base_url}/organizations/{org}/{collection}
        GET {base_url}/organizations/{org}/{collection}/{doc_id}   (404 -> None)
        GET {base_url}/organizations/{org}/{collection}?{field}={value}

    Usage:
        async with httpx.AsyncClient() as client:
            source = HttpDataSource("https://api.example.com", client=client)
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._headers = headers or {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, headers=self._headers)
        return self._client

    def _url(self, organization_id: str, collection: str, doc_id: str = "") -> str:
        url = f"{self._base_url}/organizations/{organization_id}/{collection}"
        return f"{url}/{doc_id}" if doc_id else url

    async def fetch_by_org(self, organization_id: str, collection: str) -> List[Document]:
        resp = await self._get_client().get(self._url(organization_id, collection))
        resp.raise_for_status()
        return list(resp.json())

    async def fetch_by_key(
        self, organization_id: str, collection: str, doc_id: str
    ) -> Optional[Document]:
        resp = await self._get_client().get(self._url(organization_id, collection, doc_id))
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    async def query(
        self, organization_id: str, collection: str, field: str, value: Any
    ) -> List[Document]:
        resp = await self._get_client().get(
            self._url(organization_id, collection),
            params={field: value},
        )
        resp.raise_for_status()
        return list(resp.json())

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
