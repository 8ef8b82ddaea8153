import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from .config import PROGRAMS_INDEX_URL
from .ingest.fetch_html import fetch_html
from .ingest.infer_rules import infer_program_rules
from .ingest.normalize import build_program_record
from .ingest.parse_catalog import extract_program_detail, extract_program_variants, segment_requirements
from .ingest.records import ProgramVariant
from .ingest.validate import validate_program
from .store.db import get_engine, get_session_factory, init_db
from .store.repository import deactivate_missing_programs, persist_program

log = logging.getLogger("programs_sync.sync")


class MissingRequirementsError(ValueError):
    """The detail page has no usable "Requirements" section."""


@dataclass
class SyncStats:
    fetched_programs: int = 0
    upserted_programs: int = 0
    updated_requirements: int = 0
    skipped_unchanged: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)
    deactivated_programs: Optional[int] = None

    def to_dict(self) -> Dict:
        out = {
            "fetchedPrograms": self.fetched_programs,
            "upsertedPrograms": self.upserted_programs,
            "updatedRequirements": self.updated_requirements,
            "skippedUnchanged": self.skipped_unchanged,
            "errors": list(self.errors),
        }
        if self.deactivated_programs is not None:
            out["deactivatedPrograms"] = self.deactivated_programs
        return out


def build_record(variant: ProgramVariant, detail_html: str) -> Dict:
    """Detail page -> validated program record ready for persistence."""
    detail = extract_program_detail(detail_html, variant.source_url)
    if not detail.requirements_html:
        raise MissingRequirementsError("Could not find Requirements section")

    nodes = segment_requirements(detail.requirements_html)
    rules = infer_program_rules(nodes)
    record = build_program_record(variant, detail, nodes, rules)
    validate_program(record)
    return record


def sync_programs(
    rate_delay_ms: int = 0,
    *,
    session_factory: Optional[sessionmaker] = None,
    fetch: Callable[[str], str] = fetch_html,
    index_url: str = PROGRAMS_INDEX_URL,
    deactivate_missing: bool = False,
) -> SyncStats:
    """
    One sequential pass over the catalog index.

    Failing to fetch the index aborts the run. Any failure while handling a
    single program is recorded in `errors` and the pass moves on.
    """
    if session_factory is None:
        engine = get_engine()
        init_db(engine)
        session_factory = get_session_factory(engine)

    index_html = fetch(index_url)
    variants = extract_program_variants(index_html, index_url)
    stats = SyncStats(fetched_programs=len(variants))
    log.info("programs discovered", extra={"index_url": index_url, "count": len(variants)})

    for i, variant in enumerate(variants):
        if i and rate_delay_ms:
            time.sleep(rate_delay_ms / 1000.0)
        try:
            record = build_record(variant, fetch(variant.source_url))
            with session_factory() as session, session.begin():
                result = persist_program(session, record)
        except Exception as exc:
            stats.errors.append({"sourceUrl": variant.source_url, "error": str(exc) or exc.__class__.__name__})
            log.warning("program sync failed", extra={"source_url": variant.source_url, "error": str(exc)})
            continue

        stats.upserted_programs += 1
        if result.status == "unchanged":
            stats.skipped_unchanged += 1
        else:
            stats.updated_requirements += 1
        log.debug("program synced", extra={"source_url": variant.source_url, "status": result.status})

    if deactivate_missing:
        if stats.errors:
            log.warning("skipping deactivation, run had errors", extra={"errors": len(stats.errors)})
        elif not variants:
            log.warning("skipping deactivation, index listed no programs", extra={"index_url": index_url})
        else:
            with session_factory() as session, session.begin():
                stats.deactivated_programs = deactivate_missing_programs(
                    session, [v.source_url for v in variants]
                )

    log.info(
        "programs sync complete",
        extra={
            "fetched": stats.fetched_programs,
            "upserted": stats.upserted_programs,
            "updated": stats.updated_requirements,
            "unchanged": stats.skipped_unchanged,
            "errors": len(stats.errors),
        },
    )
    return stats
