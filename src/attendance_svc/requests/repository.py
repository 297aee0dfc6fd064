"""Request repository - owns the request collection on the local store."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import uuid
import weakref
from datetime import datetime, timezone
from typing import Awaitable, Callable

from ..store.base import KeyValueStore, StoreReadError, StoreWriteError
from ..store.mirror import MirrorError, MirrorFile
from .errors import (
    AlreadyResolved,
    DuplicateActiveRequest,
    InvalidInput,
    NotFound,
    StorageError,
    StorageInconsistency,
)
from .serializer import (
    RecordFormatError,
    decode_records,
    encode_records,
    parse_records,
    serialize_request,
)
from .types import Request, RequestKind, RequestStatus, SignupPayload

logger = logging.getLogger(__name__)

DEFAULT_KEY = "signup_requests"

BeforeCommit = Callable[[Request], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_request_id() -> str:
    return f"REQ-{uuid.uuid4().hex[:12]}"


def _sort_key(req: Request) -> datetime:
    if req.requested_at:
        try:
            ts = datetime.fromisoformat(req.requested_at)
            if ts.tzinfo is None:
                ts = ts.replace(tzinfo=timezone.utc)
            return ts
        except ValueError:
            pass
    return datetime.min.replace(tzinfo=timezone.utc)


class RequestRepository:
    """
    Canonical list of pending and resolved requests.

    The whole collection lives under one key of the primary store, so every
    update is a single write and readers see either the old collection or
    the new one.

    The mirror file is a snapshot: it is written by export_snapshot() and
    read back when the primary store is empty or on import_snapshot(). With
    ``write_through`` it is also refreshed after every mutation, best effort.
    """

    def __init__(
        self,
        store: KeyValueStore,
        mirror: MirrorFile | None = None,
        key: str = DEFAULT_KEY,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_request_id,
        write_through: bool = False,
    ) -> None:
        self._store = store
        self._mirror = mirror
        self._key = key
        self._clock = clock
        self._id_factory = id_factory
        self._write_through = write_through
        self._write_lock = asyncio.Lock()
        # Entries live only while some resolve() call holds the lock.
        self._request_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._inconsistencies = 0

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    async def _read_cache(self) -> list[Request] | None:
        """Read the primary store. None means empty (or unreadable contents)."""
        try:
            raw = await self._store.get(self._key)
        except StoreReadError as e:
            raise StorageError(f"Primary store unavailable: {e}") from e

        if not raw:
            return None

        try:
            records = decode_records(raw)
        except RecordFormatError as e:
            logger.error(f"Primary store holds a corrupt collection, falling back to mirror: {e}")
            return None

        requests = parse_records(records, source="cache")
        return requests or None

    async def _recover_from_mirror(self) -> list[Request]:
        """Adopt the mirror contents into the primary store (caller holds write lock)."""
        if self._mirror is None:
            return []

        try:
            records = await self._mirror.read_mirror()
        except MirrorError as e:
            logger.error(f"Mirror unreadable, starting empty: {e}")
            return []

        if not records:
            return []

        requests = parse_records(records, source="mirror")
        if not requests:
            return []

        try:
            await self._store.put(self._key, encode_records(requests))
        except StoreWriteError as e:
            logger.warning(f"Could not repopulate primary store from mirror: {e}")
        else:
            logger.warning(f"Primary store was empty; recovered {len(requests)} requests from mirror")
        return requests

    async def _load_locked(self) -> list[Request]:
        requests = await self._read_cache()
        if requests is not None:
            return requests
        return await self._recover_from_mirror()

    async def _read_all(self) -> list[Request]:
        requests = await self._read_cache()
        if requests is not None:
            return requests
        # Recovery writes to the primary store, so it must not interleave
        # with a mutation.
        async with self._write_lock:
            return await self._load_locked()

    async def _persist(self, requests: list[Request]) -> None:
        """Write the collection to the primary store (and the mirror, in write-through mode)."""
        try:
            await self._store.put(self._key, encode_records(requests))
        except StoreWriteError as e:
            raise StorageError(f"Failed to persist requests: {e}") from e

        if self._mirror is None or not self._write_through:
            return

        try:
            await self._mirror.write_mirror([serialize_request(r) for r in requests])
        except MirrorError as e:
            self._inconsistencies += 1
            inconsistency = StorageInconsistency(
                "Primary store updated but mirror write failed", cause=e,
            )
            logger.error(f"{inconsistency}: {e}")

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def submit(self, request: Request) -> str:
        """Insert a new pending request and return its id.

        Raises DuplicateActiveRequest if the subject already has a pending
        request of the same kind.
        """
        async with self._write_lock:
            requests = await self._load_locked()

            for existing in requests:
                if existing.subject == request.subject and existing.kind == request.kind and existing.is_pending:
                    raise DuplicateActiveRequest(request.subject, existing.request_id)

            if not request.request_id:
                request.request_id = self._id_factory()
            if any(r.request_id == request.request_id for r in requests):
                raise InvalidInput(f"Request id already in use: {request.request_id}")

            request.status = RequestStatus.PENDING
            request.requested_at = self._clock().isoformat()
            request.resolved_at = None
            request.resolved_by = None
            request.rejection_reason = None

            requests.append(request)
            await self._persist(requests)

        logger.info(f"Request submitted: {request.request_id} ({request.kind.value}) for {request.subject}")
        return request.request_id

    async def find(self, request_id: str) -> Request:
        """Get a request by id. Raises NotFound."""
        for req in await self._read_all():
            if req.request_id == request_id:
                return req
        raise NotFound(f"Request not found: {request_id}")

    async def find_by_subject(self, subject: str, kind: RequestKind | None = None) -> Request | None:
        """Get the pending request for a subject (of one kind, if given)."""
        for req in await self._read_all():
            if req.subject == subject and req.is_pending and (kind is None or req.kind == kind):
                return req
        return None

    async def list(
        self,
        status: RequestStatus | None = None,
        kind: RequestKind | None = None,
    ) -> list[Request]:
        """List requests, newest first, optionally filtered."""
        requests = await self._read_all()

        # Later insertions win ties on requested_at.
        indexed = [
            (i, r) for i, r in enumerate(requests)
            if (status is None or r.status == status) and (kind is None or r.kind == kind)
        ]
        indexed.sort(key=lambda pair: (_sort_key(pair[1]), pair[0]), reverse=True)
        return [r for _, r in indexed]

    async def resolve(
        self,
        request_id: str,
        outcome: RequestStatus,
        actor: str,
        reason: str | None = None,
        before_commit: BeforeCommit | None = None,
    ) -> Request:
        """
        Move a pending request to a terminal status.

        ``before_commit`` runs after the pending check and before the write;
        if it raises, nothing is written and the request stays pending.
        Resolutions of the same request are serialised, so of two concurrent
        calls exactly one commits and the other raises AlreadyResolved.
        """
        if not outcome.is_terminal:
            raise InvalidInput(f"Cannot resolve a request to {outcome.value}")

        lock = self._request_locks.setdefault(request_id, asyncio.Lock())
        async with lock:
            current = await self.find(request_id)
            if not current.is_pending:
                raise AlreadyResolved(current.status, request_id)

            if before_commit is not None:
                await before_commit(current)

            async with self._write_lock:
                requests = await self._load_locked()
                target = next((r for r in requests if r.request_id == request_id), None)
                if target is None:
                    raise NotFound(f"Request not found: {request_id}")
                if not target.is_pending:
                    raise AlreadyResolved(target.status, request_id)

                target.status = outcome
                target.resolved_at = self._clock().isoformat()
                target.resolved_by = actor
                target.rejection_reason = (reason or "") if outcome == RequestStatus.REJECTED else None
                if isinstance(target.payload, SignupPayload):
                    target.payload = dataclasses.replace(target.payload, password=None)

                await self._persist(requests)

        logger.info(f"Request {request_id} status -> {outcome.value} by {actor}")
        return target

    async def export_snapshot(self) -> int:
        """Rewrite the mirror from the primary store. Returns record count."""
        if self._mirror is None:
            raise StorageError("No mirror configured")

        async with self._write_lock:
            requests = await self._load_locked()
            try:
                await self._mirror.write_mirror([serialize_request(r) for r in requests])
            except MirrorError as e:
                raise StorageError(str(e)) from e

        logger.info(f"Exported {len(requests)} requests to mirror")
        return len(requests)

    async def import_snapshot(self) -> int:
        """Replace the primary store contents with the mirror. Returns record count."""
        if self._mirror is None:
            raise StorageError("No mirror configured")

        async with self._write_lock:
            try:
                records = await self._mirror.read_mirror()
            except MirrorError as e:
                raise StorageError(str(e)) from e
            if records is None:
                raise StorageError(f"Mirror file not found: {self._mirror.path}")

            requests = parse_records(records, source="mirror")
            try:
                await self._store.put(self._key, encode_records(requests))
            except StoreWriteError as e:
                raise StorageError(f"Failed to persist requests: {e}") from e

        logger.info(f"Imported {len(requests)} requests from mirror")
        return len(requests)

    @property
    def inconsistency_count(self) -> int:
        """Number of mirror writes that failed after a successful primary write."""
        return self._inconsistencies
