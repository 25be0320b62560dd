"""Persist origin records submitted by instrumented clients."""

from __future__ import annotations

import logging
from typing import Sequence

from cor_matrix.core.errors import CorError, wrap_failure
from cor_matrix.core.logging import get_logger
from cor_matrix.core.metrics import RECORDS_SKIPPED, RECORDS_STORED, SIGNATURES_STORED
from cor_matrix.db.store import SignatureStore
from cor_matrix.ingest.types import OriginEntry, RecordOutcome
from cor_matrix.models.entities import LineSignature, OriginRecord, StoredSignature
from cor_matrix.utils.ids import RECORD_PREFIX, SIGNATURE_PREFIX, new_id
from cor_matrix.utils.time import now_ms

MESSAGE_SKIPPED = "Code origin recording skipped - workspace not found"
MESSAGE_EMPTY = "Code origin recording completed - no entries to process"
MESSAGE_RECORDED = "Code origin recorded successfully"


class OriginRecorder:
    """Write origin records and their line signatures for a workspace."""

    def __init__(self, store: SignatureStore, logger: logging.Logger | None = None) -> None:
        self.store = store
        self.logger = logger or get_logger(__name__)

    def record(self, workspace_id: str, entries: Sequence[OriginEntry]) -> RecordOutcome:
        """Store ``entries`` under ``workspace_id``.

        An unknown workspace is not an error: instrumented applications keep
        running against stale workspace ids, so the batch is dropped with a
        warning and reported as successful.
        """
        try:
            if not self.store.workspace_exists(workspace_id):
                self.logger.warning(
                    "Workspace %s not found, skipping code origin recording",
                    workspace_id,
                    extra={"ctx_workspace_id": workspace_id},
                )
                RECORDS_SKIPPED.inc()
                return RecordOutcome(ok=True, message=MESSAGE_SKIPPED)

            if not entries:
                self.logger.info("No entries provided for workspace %s", workspace_id)
                return RecordOutcome(ok=True, message=MESSAGE_EMPTY)

            now = now_ms()
            records: list[OriginRecord] = []
            signatures: list[LineSignature] = []
            for entry in entries:
                record = OriginRecord(
                    id=new_id(RECORD_PREFIX),
                    workspace_id=workspace_id,
                    path=entry.path,
                    language=entry.language,
                    timestamp=entry.timestamp,
                    generated_by=entry.generated_by,
                    created_at=now,
                )
                records.append(record)
                signatures.extend(
                    LineSignature(
                        id=new_id(SIGNATURE_PREFIX),
                        origin_record_id=record.id,
                        order=pair.order,
                        signature=pair.signature,
                        created_at=now,
                    )
                    for pair in entry.cors
                )

            with self.store.db.transaction() as cursor:
                self.store.insert_records(cursor, records)
                if signatures:
                    self.store.insert_signatures(cursor, signatures)
        except CorError:
            raise
        except Exception as exc:
            self.logger.exception(
                "Failed to record code origin for workspace %s",
                workspace_id,
                extra={"ctx_workspace_id": workspace_id},
            )
            raise wrap_failure(exc, "Failed to record code origin") from exc

        RECORDS_STORED.inc(len(records))
        SIGNATURES_STORED.inc(len(signatures))
        self.logger.debug(
            "Recorded %s records with %s signatures for workspace %s",
            len(records),
            len(signatures),
            workspace_id,
        )
        return RecordOutcome(ok=True, message=MESSAGE_RECORDED)

    def list(self, workspace_id: str) -> list[StoredSignature]:
        """Return every stored signature of a workspace with its record path."""
        try:
            records = self.store.records_for_workspace(workspace_id)
            if not records:
                return []
            path_by_record = {record.id: record.path for record in records}
            signatures = self.store.signatures_for_records(list(path_by_record))
        except CorError:
            raise
        except Exception as exc:
            self.logger.exception("Failed to get code origin ratios for workspace %s", workspace_id)
            raise wrap_failure(exc, "Failed to get code origin ratios") from exc
        return [
            StoredSignature(
                id=item.id,
                origin_record_id=item.origin_record_id,
                order=item.order,
                signature=item.signature,
                created_at=item.created_at,
                path=path_by_record.get(item.origin_record_id),
            )
            for item in signatures
        ]


__all__ = ["OriginRecorder", "MESSAGE_SKIPPED", "MESSAGE_EMPTY", "MESSAGE_RECORDED"]
