from dataclasses import dataclass, field
from typing import List, Optional

PROGRAM_KINDS = ("major", "minor")
NODE_TYPES = ("heading", "paragraph", "list_item")


@dataclass
class ProgramVariant:
    """One major/minor link found on the catalog index page."""
    kind: str
    source_url: str
    degree: Optional[str] = None
    name: str = ""   # resolved later from the detail page


@dataclass
class RequirementNode:
    node_type: str
    text: str
    list_level: Optional[int] = None


@dataclass
class ProgramMeta:
    hours_to_complete: Optional[str] = None
    courses_required: Optional[str] = None
    department_contact: Optional[str] = None


@dataclass
class ProgramDetail:
    name: str
    meta: ProgramMeta
    requirements_html: Optional[str]


@dataclass
class ProgramRules:
    required_course_codes: List[str] = field(default_factory=list)
    subject_codes: List[str] = field(default_factory=list)
    elective_level_floor: Optional[int] = None
