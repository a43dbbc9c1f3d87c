"""
Upload pipeline.

Turns uploaded JSON files into persisted items:
- read and decode every file first (any decode failure aborts the batch)
- validate records in order, stopping at the first invalid one
- upsert each valid record as soon as it passes

Records persisted before an invalid one stay persisted. A failed upsert is
logged and counted; it does not stop the batch.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Protocol, Sequence

from fastapi.concurrency import run_in_threadpool

from config import get_logger
from database.connection import ItemStore, StoreError
from database.models import loads_finite_json
from database.operations import INSERTED, REPLACED, UNCHANGED, upsert_item
from items.normalizer import decode_records, to_persisted
from items.schema import validate_item
from pipeline.errors import InvalidItemError, UploadDecodeError


logger = get_logger("pipeline.upload")

FAILED = "failed"


class UploadedFile(Protocol):
    """What the pipeline needs from an uploaded file (matches starlette's UploadFile)."""

    filename: Optional[str]

    async def read(self, size: int = -1) -> bytes: ...

    async def close(self) -> None: ...


@dataclass(frozen=True)
class RecordOutcome:
    """Persistence outcome of one record."""

    index: int
    id: str
    status: str
    error: Optional[str] = None


@dataclass
class UploadReport:
    """Summary of one upload batch."""

    received: int = 0
    outcomes: list[RecordOutcome] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "received": self.received,
            "inserted": self.count(INSERTED),
            "unchanged": self.count(UNCHANGED),
            "replaced": self.count(REPLACED),
            "failed": self.count(FAILED),
            "items": [asdict(o) for o in self.outcomes],
        }


async def read_candidates(files: Sequence[UploadedFile]) -> list[Any]:
    """Read, decode and flatten every file into one ordered list of candidates.

    Every upload is closed before this returns, including the ones after a
    file that fails to decode.
    """

    candidates: list[Any] = []
    try:
        for upload in files:
            try:
                raw = await upload.read()
            finally:
                await upload.close()

            try:
                payload = loads_finite_json(raw.decode("utf-8"))
                records = decode_records(payload)
            except UnicodeDecodeError as e:
                raise UploadDecodeError(upload.filename, f"not UTF-8 text ({e.reason})") from e
            except json.JSONDecodeError as e:
                raise UploadDecodeError(upload.filename, f"invalid JSON ({e.msg} at line {e.lineno})") from e
            except ValueError as e:
                # RecordShapeError, or a NaN / Infinity / out-of-range number
                raise UploadDecodeError(upload.filename, str(e)) from e

            logger.info("Read %d record(s) from %s", len(records), upload.filename)
            candidates.extend(records)
    finally:
        for upload in files:
            await upload.close()
    return candidates


class UploadPipeline:
    """Validate and persist item records from uploaded files."""

    def __init__(self, store: ItemStore, *, conflict_policy: str = "ignore") -> None:
        self.store = store
        self.conflict_policy = conflict_policy

    async def run(self, files: Sequence[UploadedFile]) -> UploadReport:
        """Process every file of one request; see module docstring for the failure policy."""

        candidates = await read_candidates(files)
        return await self.load(candidates)

    async def load(self, candidates: Sequence[Any]) -> UploadReport:
        """Validate and upsert already-decoded candidates in order."""

        report = UploadReport(received=len(candidates))
        for index, candidate in enumerate(candidates):
            outcome = validate_item(candidate)
            if not outcome.ok or outcome.item is None:
                item_id = candidate.get("id") if isinstance(candidate, dict) else None
                raise InvalidItemError(index, item_id, outcome.errors)

            row = to_persisted(outcome.item)
            try:
                status = await run_in_threadpool(upsert_item, self.store, row, policy=self.conflict_policy)
            except StoreError as e:
                logger.exception("Error upserting item %s", row["id"])
                report.outcomes.append(RecordOutcome(index=index, id=row["id"], status=FAILED, error=str(e)))
                continue

            logger.debug("Item %s %s", row["id"], status)
            report.outcomes.append(RecordOutcome(index=index, id=row["id"], status=status))

        logger.info(
            "Upload batch done: %d received, %d inserted, %d unchanged, %d replaced, %d failed",
            report.received,
            report.count(INSERTED),
            report.count(UNCHANGED),
            report.count(REPLACED),
            report.count(FAILED),
        )
        return report
