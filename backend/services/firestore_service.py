"""Firestore database service."""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from google.api_core.exceptions import Aborted, AlreadyExists, GoogleAPICallError
from google.cloud import firestore

from backend.config import BackendSettings
from tuneforge.core.exceptions import (
    AlreadyExistsError,
    ConcurrentModificationError,
    DependencyUnavailableError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


@contextmanager
def _firestore_errors(operation: str, collection: str) -> Iterator[None]:
    """Translate Google API failures into DependencyUnavailableError."""
    try:
        yield
    except GoogleAPICallError as e:
        logger.error(f"Firestore {operation} on {collection} failed: {e}")
        raise DependencyUnavailableError("firestore", str(e)) from e


class FirestoreService:
    """Service for Firestore database operations."""

    def __init__(self, settings: BackendSettings):
        self.settings = settings
        self._client: firestore.AsyncClient | None = None

    @property
    def client(self) -> firestore.AsyncClient:
        """Get or create Firestore client."""
        if self._client is None:
            self._client = firestore.AsyncClient(
                project=self.settings.google_cloud_project,
                database=self.settings.firestore_database,
            )
        return self._client

    def collection(self, name: str) -> firestore.AsyncCollectionReference:
        """Get a collection reference."""
        return self.client.collection(name)

    async def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        doc_ref = self.collection(collection).document(doc_id)
        with _firestore_errors("get", collection):
            doc = await doc_ref.get()
        if doc.exists:
            return {"id": doc.id, **doc.to_dict()}
        return None

    async def get_documents(self, collection: str, doc_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Batch-get documents by ID.

        Returns:
            Mapping of document ID to document dict; missing IDs are omitted.
        """
        refs = [self.collection(collection).document(doc_id) for doc_id in dict.fromkeys(doc_ids)]
        if not refs:
            return {}

        docs: dict[str, dict[str, Any]] = {}
        with _firestore_errors("get_all", collection):
            async for doc in self.client.get_all(refs):
                if doc.exists:
                    docs[doc.id] = {"id": doc.id, **doc.to_dict()}
        return docs

    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        """Set a document (create or overwrite)."""
        doc_ref = self.collection(collection).document(doc_id)
        with _firestore_errors("set", collection):
            await doc_ref.set(data, merge=merge)

    async def create_documents(self, documents: list[tuple[str, str, dict[str, Any]]]) -> None:
        """Create several documents in one atomic batch.

        Every write carries an exists=False precondition, so either all
        documents are created or none are.

        Args:
            documents: (collection, doc_id, data) triples

        Raises:
            AlreadyExistsError: If any of the documents already exists.
        """
        batch = self.client.batch()
        for collection, doc_id, data in documents:
            batch.create(self.collection(collection).document(doc_id), data)

        collections = ",".join(dict.fromkeys(collection for collection, _, _ in documents))
        try:
            with _firestore_errors("batch create", collections):
                await batch.commit()
        except DependencyUnavailableError as e:
            if isinstance(e.__cause__, AlreadyExists):
                raise AlreadyExistsError(f"Document already exists in {collections}") from e
            raise

    async def update_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Update specific fields in a document."""
        doc_ref = self.collection(collection).document(doc_id)
        with _firestore_errors("update", collection):
            await doc_ref.update(data)

    async def update_document_versioned(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        expected_version: int,
    ) -> int:
        """Update a document only if its ``version`` still equals ``expected_version``.

        Runs in a transaction so the version check and the write are atomic.
        The stored version is incremented on success.

        Returns:
            The new version.

        Raises:
            NotFoundError: If the document no longer exists.
            ConcurrentModificationError: If another writer got there first.
        """
        doc_ref = self.collection(collection).document(doc_id)
        new_version = expected_version + 1
        payload = {**data, "version": new_version}

        @firestore.async_transactional
        async def apply(transaction: firestore.AsyncTransaction) -> None:
            snapshot = await doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(f"{collection}/{doc_id} not found")
            current = (snapshot.to_dict() or {}).get("version", 0)
            if current != expected_version:
                raise ConcurrentModificationError(collection, doc_id)
            transaction.update(doc_ref, payload)

        try:
            with _firestore_errors("transaction", collection):
                await apply(self.client.transaction())
        except DependencyUnavailableError as e:
            if isinstance(e.__cause__, Aborted):
                raise ConcurrentModificationError(collection, doc_id) from e
            raise
        except ValueError as e:
            # Commit aborted on every attempt; the wrapper chains the last Aborted.
            if isinstance(e.__cause__, Aborted):
                raise ConcurrentModificationError(collection, doc_id) from e
            raise

        return new_version

    async def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete a document."""
        doc_ref = self.collection(collection).document(doc_id)
        with _firestore_errors("delete", collection):
            await doc_ref.delete()

    async def query_documents(
        self,
        collection: str,
        filters: list[tuple[str, str, Any]] | None = None,
        order_by: str | None = None,
        order_direction: str = "ASCENDING",
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Query documents with filters.

        Args:
            collection: Collection name
            filters: List of (field, operator, value) tuples
            order_by: Field to order by
            order_direction: ASCENDING or DESCENDING
            limit: Max documents to return
            offset: Number of documents to skip

        Returns:
            List of document dictionaries with IDs
        """
        query = self.collection(collection)

        if filters:
            for field, op, value in filters:
                query = query.where(field, op, value)

        if order_by:
            direction = (
                firestore.Query.DESCENDING if order_direction == "DESCENDING" else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by, direction=direction)

        if offset:
            query = query.offset(offset)

        if limit:
            query = query.limit(limit)

        docs = []
        with _firestore_errors("query", collection):
            async for doc in query.stream():
                docs.append({"id": doc.id, **doc.to_dict()})

        return docs

    async def count_documents(
        self,
        collection: str,
        filters: list[tuple[str, str, Any]] | None = None,
    ) -> int:
        """Count documents matching filters."""
        query = self.collection(collection)

        if filters:
            for field, op, value in filters:
                query = query.where(field, op, value)

        # Use count aggregation
        count_query = query.count()
        with _firestore_errors("count", collection):
            result = await count_query.get()
        return result[0][0].value
