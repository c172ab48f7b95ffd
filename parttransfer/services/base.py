"""Shared multipart session driver for the transfer services.

A session run moves through ``IDLE -> SESSION_OPEN -> PART_IN_FLIGHT ->
FINALIZING -> COMPLETED``. Any failure after the session is open takes the
``ABORTING -> ABORTED`` edge: the session is aborted once, best-effort, and
the error that caused the abort is what the caller sees.
"""

from __future__ import annotations

import logging
import mimetypes
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Sequence

from parttransfer.common.config import Settings
from parttransfer.common.errors import (
    AbortError,
    FinalizationError,
    InvalidConfigurationError,
    SourceNotFoundError,
    TransferError,
)
from parttransfer.domain.part_set import PartSet
from parttransfer.domain.planning import PartDescriptor, validate_part_size
from parttransfer.infra.observability.metrics import BYTES, PARTS, SESSIONS
from parttransfer.infra.storage.client import (
    CompletedObject,
    ObjectMetadata,
    ObjectNotFoundError,
    PartResult,
    SessionClient,
    SessionHandle,
    StorageError,
    UploadOptions,
)

logger = logging.getLogger("parttransfer.session")

PartTransfer = Callable[[SessionHandle, PartDescriptor], PartResult]


class SessionState(str, Enum):
    IDLE = "idle"
    SESSION_OPEN = "session_open"
    PART_IN_FLIGHT = "part_in_flight"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ABORTING = "aborting"
    ABORTED = "aborted"


@dataclass
class SessionRun:
    """State owned by a single multipart session run."""

    object_key: str
    direction: str
    state: SessionState = SessionState.IDLE
    handle: SessionHandle | None = None
    parts: PartSet = field(default_factory=PartSet)

    def transition(self, state: SessionState) -> None:
        if state is self.state:
            return
        logger.debug(
            "session_state object_key=%s from=%s to=%s",
            self.object_key,
            self.state.value,
            state.value,
        )
        self.state = state


class BaseTransferService:
    """Provides the session driver and helpers shared by transfer services."""

    def __init__(self, client: SessionClient, *, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    @property
    def client(self) -> SessionClient:
        return self._client

    @property
    def settings(self) -> Settings:
        return self._settings

    def _resolve_part_size(self, part_size: int | None) -> int:
        if part_size is None:
            part_size = self._settings.DEFAULT_PART_SIZE_BYTES
        return validate_part_size(
            part_size,
            min_size=self._settings.PART_SIZE_MIN_BYTES,
            max_size=self._settings.PART_SIZE_MAX_BYTES,
        )

    def _resolve_options(
        self, object_key: str, options: UploadOptions | None
    ) -> UploadOptions:
        """Fill in the content type and merge configured request metadata."""
        options = options or UploadOptions()
        content_type = (
            options.content_type
            or mimetypes.guess_type(object_key)[0]
            or self._settings.DEFAULT_CONTENT_TYPE
        )
        metadata = {**self._settings.REQUEST_METADATA, **options.metadata}
        return replace(options, content_type=content_type, metadata=metadata)

    def _probe(self, object_key: str) -> ObjectMetadata:
        try:
            return self._client.get_metadata(object_key)
        except ObjectNotFoundError as exc:
            raise SourceNotFoundError(f"Object not found: {object_key}") from exc
        except StorageError as exc:
            raise TransferError(
                f"Failed to read metadata of {object_key}: {exc}"
            ) from exc

    def _run_session(
        self,
        object_key: str,
        descriptors: Sequence[PartDescriptor],
        transfer: PartTransfer,
        *,
        options: UploadOptions,
        direction: str,
    ) -> CompletedObject:
        if not descriptors:
            raise InvalidConfigurationError("a session needs at least one part")

        run = SessionRun(object_key=object_key, direction=direction)
        try:
            run.handle = self._client.open_session(object_key, options)
        except StorageError as exc:
            raise TransferError(
                f"Failed to open session for {object_key}: {exc}"
            ) from exc
        run.transition(SessionState.SESSION_OPEN)
        logger.info(
            "session_open object_key=%s upload_id=%s parts=%d",
            object_key,
            run.handle.upload_id,
            len(descriptors),
            extra={
                "extra": {
                    "object_key": object_key,
                    "upload_id": run.handle.upload_id,
                    "parts": len(descriptors),
                    "direction": direction,
                }
            },
        )

        try:
            workers = min(self._settings.TRANSFER_WORKERS, len(descriptors))
            if workers > 1:
                self._transfer_parallel(run, descriptors, transfer, workers=workers)
            else:
                for descriptor in descriptors:
                    self._transfer_part(run, descriptor, transfer)
        except Exception:
            self._abort_quietly(run)
            raise

        run.transition(SessionState.FINALIZING)
        try:
            completed = self._client.complete_session(run.handle, run.parts.finalize())
        except StorageError as exc:
            self._abort_quietly(run)
            raise FinalizationError(
                f"Failed to complete session for {object_key}: {exc}"
            ) from exc
        except Exception:
            self._abort_quietly(run)
            raise

        run.transition(SessionState.COMPLETED)
        SESSIONS.labels("completed").inc()
        logger.info(
            "session_completed object_key=%s upload_id=%s etag=%s",
            object_key,
            run.handle.upload_id,
            completed.etag,
            extra={
                "extra": {
                    "object_key": object_key,
                    "upload_id": run.handle.upload_id,
                    "etag": completed.etag,
                    "direction": direction,
                }
            },
        )
        return completed

    def _transfer_part(
        self,
        run: SessionRun,
        descriptor: PartDescriptor,
        transfer: PartTransfer,
    ) -> None:
        if run.handle is None:
            raise RuntimeError(f"No open session for {run.object_key}")
        run.transition(SessionState.PART_IN_FLIGHT)
        try:
            result = transfer(run.handle, descriptor)
        except (StorageError, OSError) as exc:
            PARTS.labels(run.direction, "error").inc()
            raise TransferError(
                f"Failed to transfer part {descriptor.part_number} "
                f"of {run.object_key}: {exc}",
                part_number=descriptor.part_number,
            ) from exc
        run.parts.add(result)
        PARTS.labels(run.direction, "ok").inc()
        BYTES.labels(run.direction).inc(descriptor.size)

    def _transfer_parallel(
        self,
        run: SessionRun,
        descriptors: Sequence[PartDescriptor],
        transfer: PartTransfer,
        *,
        workers: int,
    ) -> None:
        """Transfer parts on a bounded pool; the first failure cancels the rest."""
        cancel = threading.Event()
        failures: list[Exception] = []
        failures_lock = threading.Lock()

        def worker(descriptor: PartDescriptor) -> None:
            if cancel.is_set():
                PARTS.labels(run.direction, "cancelled").inc()
                return
            try:
                self._transfer_part(run, descriptor, transfer)
            except Exception as exc:
                with failures_lock:
                    if failures:
                        logger.warning(
                            "part_failure_suppressed object_key=%s part=%d error=%s",
                            run.object_key,
                            descriptor.part_number,
                            exc,
                        )
                    else:
                        failures.append(exc)
                cancel.set()

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="parttransfer"
        ) as pool:
            futures = [pool.submit(worker, descriptor) for descriptor in descriptors]
            for future in as_completed(futures):
                future.result()
                if cancel.is_set():
                    for pending in futures:
                        if pending.cancel():
                            PARTS.labels(run.direction, "cancelled").inc()
                    break

        if failures:
            raise failures[0]

    def _abort_quietly(self, run: SessionRun) -> None:
        """Abort the session; an abort failure is logged and never raised."""
        if run.handle is None:
            raise RuntimeError(f"No open session for {run.object_key}")
        run.transition(SessionState.ABORTING)
        try:
            self._client.abort_session(run.handle)
        except Exception as exc:
            error = AbortError(
                f"Failed to abort session {run.handle.upload_id} "
                f"for {run.object_key}: {exc}"
            )
            SESSIONS.labels("abort_failed").inc()
            logger.warning(
                str(error),
                extra={
                    "extra": {
                        "object_key": run.object_key,
                        "upload_id": run.handle.upload_id,
                        "error": repr(exc),
                    }
                },
            )
        else:
            SESSIONS.labels("aborted").inc()
            logger.info(
                "session_aborted object_key=%s upload_id=%s",
                run.object_key,
                run.handle.upload_id,
            )
        run.transition(SessionState.ABORTED)
