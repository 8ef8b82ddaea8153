"""
Course code, subject code and elective level inference over requirement text.

Two refinements on the plain patterns: "NNN-level" phrases are not course
codes ("three 300-level electives" gives no "THREE 300"), and counting or
qualifier words in front of "electives" (NOT_SUBJECTS) are not subjects.
"""
import re
from typing import List, Optional, Sequence

from .records import ProgramRules, RequirementNode

# "CS 170", "QTM 385W", "CS/MATH 170" (one code per subject); not "300-level"
COURSE_CODE_RE = re.compile(
    r"\b([A-Z][A-Z0-9_]{1,}(?:/[A-Z][A-Z0-9_]{1,})*)\s*([0-9]{3,4})([A-Z]{0,3})\b(?!\s*-\s*LEVEL)"
)
SUBJECT_ELECTIVES_RE = re.compile(r"\b([A-Z][A-Z0-9_]{1,})\s+ELECTIVES?\b")
ELECTIVE_WORD_RE     = re.compile(r"\belectives?\b", re.I)
LEVEL_PREFIX_RE      = re.compile(r"[0-9]{3}\s*-\s*level\s+electives?", re.I)
LEVELED_ELECTIVE_RE  = re.compile(r"\b([0-9]{3})\s*-\s*level\s+electives?\b", re.I)
LEVEL_WINDOW = 25

# words that show up in front of "electives" without naming a subject
NOT_SUBJECTS = {
    "LEVEL", "OF", "THE", "ANY", "ALL", "AND", "OR", "ONE", "TWO", "THREE",
    "FOUR", "FIVE", "SIX", "SEVEN", "EIGHT", "NINE", "TEN", "ADDITIONAL",
    "UPPER", "LOWER", "DIVISION", "FREE", "GENERAL", "RELATED", "APPROVED",
    "REMAINING", "OTHER", "MAJOR", "MINOR", "REQUIRED", "SELECTED",
}


def extract_course_codes(text: str) -> List[str]:
    out: List[str] = []
    for m in COURSE_CODE_RE.finditer((text or "").upper()):
        num, suffix = m.group(2), m.group(3)
        for subject in m.group(1).split("/"):
            subject = subject.strip()
            if subject:
                out.append(f"{subject} {num}{suffix}")
    return list(dict.fromkeys(out))


def extract_subject_codes(text: str, course_codes: Optional[Sequence[str]] = None) -> List[str]:
    if course_codes is None:
        course_codes = extract_course_codes(text)
    out = [code.split(" ")[0] for code in course_codes]
    for m in SUBJECT_ELECTIVES_RE.finditer((text or "").upper()):
        subject = m.group(1)
        if subject not in NOT_SUBJECTS and not subject.isdigit():
            out.append(subject)
    return list(dict.fromkeys(out))


def infer_elective_level_floor(text: str) -> Optional[int]:
    """
    Minimum course level for unqualified electives, None meaning any level.

    Any "elective(s)" mention that is not part of an "NNN-level electives"
    phrase wins over explicit floors found elsewhere in the same text.
    """
    text = text or ""
    if "ELECTIVE" not in text.upper():
        return None

    for m in ELECTIVE_WORD_RE.finditer(text):
        window = text[max(0, m.start() - LEVEL_WINDOW):m.end()]
        if not LEVEL_PREFIX_RE.search(window):
            return None

    floors = [int(level) for level in LEVELED_ELECTIVE_RE.findall(text)]
    return min(floors) if floors else None


def infer_program_rules(nodes: Sequence[RequirementNode]) -> ProgramRules:
    all_text = "\n".join(n.text for n in nodes)
    codes = extract_course_codes(all_text)
    return ProgramRules(
        required_course_codes=codes,
        subject_codes=extract_subject_codes(all_text, codes),
        elective_level_floor=infer_elective_level_floor(all_text),
    )
