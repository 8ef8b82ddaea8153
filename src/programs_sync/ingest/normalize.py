import hashlib
from typing import Dict, Iterator, Optional, Sequence, Union

from bs4 import BeautifulSoup, Comment, Doctype, Tag

from .records import ProgramDetail, ProgramRules, ProgramVariant, RequirementNode

SKIP_PARENTS = ("script", "style")


def _clean_text(s: Optional[str]) -> str:
    if not s: return ""
    return " ".join(s.split())


def text_strings(node: Tag) -> Iterator[str]:
    for s in node.find_all(string=True):
        if isinstance(s, (Comment, Doctype)):
            continue
        if s.parent is not None and s.parent.name in SKIP_PARENTS:
            continue
        yield str(s)


def strip_tags(html: Union[str, Tag, None]) -> str:
    """
    Flatten an HTML fragment into one line of plain text.

    Entities are decoded by the parser, every tag boundary becomes a space and
    runs of whitespace collapse to a single space. Structure is lost here, so
    callers classify blocks before flattening them.
    """
    if html is None:
        return ""
    if isinstance(html, Tag):
        node = html
    else:
        if not html.strip():
            return ""
        node = BeautifulSoup(html, "html.parser")
    return _clean_text(" ".join(text_strings(node)))


def requirements_hash(nodes: Sequence[RequirementNode]) -> str:
    canonical = "\n".join(f"{n.node_type}:{n.text}" for n in nodes)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def build_program_record(
    variant: ProgramVariant,
    detail: ProgramDetail,
    nodes: Sequence[RequirementNode],
    rules: ProgramRules,
) -> Dict:
    return {
        "name": variant.name or detail.name,
        "kind": variant.kind,
        "degree": variant.degree,
        "sourceUrl": variant.source_url,
        "hoursToComplete": detail.meta.hours_to_complete,
        "coursesRequired": detail.meta.courses_required,
        "departmentContact": detail.meta.department_contact,
        "requirementsHash": requirements_hash(nodes),
        "requirements": [
            {"nodeType": n.node_type, "text": n.text, "listLevel": n.list_level}
            for n in nodes
        ],
        "requiredCourseCodes": list(rules.required_course_codes),
        "subjectCodes": list(rules.subject_codes),
        "electiveLevelFloor": rules.elective_level_floor,
    }
