import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from .models import (
    Program, ProgramCourseCode, ProgramElectiveRule, ProgramRequirementNode,
    ProgramSubjectCode, utcnow,
)

log = logging.getLogger("programs_sync.store")

CHILD_TABLES = (ProgramRequirementNode, ProgramCourseCode, ProgramSubjectCode)


@dataclass
class PersistResult:
    program_id: int
    status: str   # "updated" | "unchanged"


def get_program_by_source_url(session: Session, source_url: str) -> Optional[Program]:
    return session.scalar(select(Program).where(Program.source_url == source_url))


def _upsert_elective_rule(session: Session, program_id: int, level_floor: Optional[int]) -> None:
    rule = session.get(ProgramElectiveRule, program_id)
    if rule is None:
        session.add(ProgramElectiveRule(program_id=program_id, level_floor=level_floor))
    else:
        rule.level_floor = level_floor


def persist_program(session: Session, record: Dict) -> PersistResult:
    """
    Write one validated program record. Must run inside a transaction
    (`with session.begin():`) so the child-table replace is all-or-nothing.

    The program row is always refreshed. Requirement nodes, course codes and
    subject codes are deleted and re-inserted only when the stored
    requirements hash differs; the elective rule is rewritten either way.
    """
    existing = get_program_by_source_url(session, record["sourceUrl"])
    previous_hash = existing.requirements_hash if existing is not None else None

    program = existing
    if program is None:
        program = Program(source_url=record["sourceUrl"])
        session.add(program)
    program.name = record["name"]
    program.kind = record["kind"]
    program.degree = record["degree"]
    program.hours_to_complete = record["hoursToComplete"]
    program.courses_required = record["coursesRequired"]
    program.department_contact = record["departmentContact"]
    program.requirements_hash = record["requirementsHash"]
    program.is_active = True
    program.last_synced_at = utcnow()
    session.flush()
    program_id = program.id

    if existing is not None and previous_hash == record["requirementsHash"]:
        _upsert_elective_rule(session, program_id, record["electiveLevelFloor"])
        session.flush()
        return PersistResult(program_id, "unchanged")

    for table in CHILD_TABLES:
        session.execute(delete(table).where(table.program_id == program_id))

    session.add_all(
        ProgramRequirementNode(
            program_id=program_id,
            ord=idx,
            node_type=node["nodeType"],
            text=node["text"],
            list_level=node["listLevel"],
        )
        for idx, node in enumerate(record["requirements"])
    )
    session.add_all(ProgramCourseCode(program_id=program_id, course_code=c) for c in record["requiredCourseCodes"])
    session.add_all(ProgramSubjectCode(program_id=program_id, subject_code=s) for s in record["subjectCodes"])
    _upsert_elective_rule(session, program_id, record["electiveLevelFloor"])
    session.flush()
    log.debug("requirements replaced", extra={"program_id": program_id, "nodes": len(record["requirements"])})
    return PersistResult(program_id, "updated")


def deactivate_missing_programs(session: Session, seen_urls: Iterable[str]) -> int:
    """Mark active programs that were not discovered in this pass inactive."""
    seen = list(seen_urls)
    if not seen:
        raise ValueError("refusing to deactivate programs without any discovered URLs")
    stmt = (
        update(Program)
        .where(Program.is_active.is_(True), Program.source_url.not_in(seen))
    )
    result = session.execute(stmt.values(is_active=False).execution_options(synchronize_session=False))
    return result.rowcount or 0


# -------- read side --------

def list_programs(session: Session, q: Optional[str] = None, limit: int = 50) -> List[Dict]:
    stmt = select(Program.id, Program.name, Program.kind, Program.degree)
    if q:
        stmt = stmt.where(Program.name.ilike(f"%{q}%"))
    stmt = stmt.order_by(Program.name, Program.kind, Program.degree).limit(limit)
    return [
        {"id": r.id, "name": r.name, "kind": r.kind, "degree": r.degree}
        for r in session.execute(stmt)
    ]


def get_program_detail(session: Session, program_id: int) -> Optional[Dict]:
    p = session.get(Program, program_id)
    if p is None:
        return None

    nodes = session.scalars(
        select(ProgramRequirementNode)
        .where(ProgramRequirementNode.program_id == program_id)
        .order_by(ProgramRequirementNode.ord)
    ).all()
    codes = session.scalars(
        select(ProgramCourseCode.course_code)
        .where(ProgramCourseCode.program_id == program_id)
        .order_by(ProgramCourseCode.course_code)
    ).all()
    subjects = session.scalars(
        select(ProgramSubjectCode.subject_code)
        .where(ProgramSubjectCode.program_id == program_id)
        .order_by(ProgramSubjectCode.subject_code)
    ).all()
    rule = session.get(ProgramElectiveRule, program_id)

    return {
        "id": p.id,
        "name": p.name,
        "kind": p.kind,
        "degree": p.degree,
        "sourceUrl": p.source_url,
        "hoursToComplete": p.hours_to_complete,
        "coursesRequired": p.courses_required,
        "departmentContact": p.department_contact,
        "isActive": p.is_active,
        "lastSyncedAt": p.last_synced_at.isoformat() if p.last_synced_at else None,
        "requirements": [
            {"id": n.id, "ord": n.ord, "nodeType": n.node_type, "text": n.text, "listLevel": n.list_level}
            for n in nodes
        ],
        "requiredCourseCodes": list(codes),
        "subjectCodes": list(subjects),
        "electiveLevelFloor": rule.level_floor if rule is not None else None,
    }
