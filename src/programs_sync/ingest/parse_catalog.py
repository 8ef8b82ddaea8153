from bs4 import BeautifulSoup, Comment, Doctype, Tag
from typing import Iterable, List, Optional
from urllib.parse import urldefrag, urljoin, urlparse
import re

from .normalize import _clean_text, strip_tags, text_strings
from .records import ProgramDetail, ProgramMeta, ProgramVariant, RequirementNode

PROGRAM_PATH_RE = re.compile(r"/academics/concentrations/(majors|minors)/", re.I)
HTML_HREF_RE    = re.compile(r"\.html(?:[?#]|$)", re.I)
DEGREE_RE       = re.compile(r"\b(BA|BS|BBA|BSE|BFA)\b")

# "Biology (BA)", "Biology (Major)", "Biology Major"
NAME_SUFFIX_RE = re.compile(
    r"\s*(?:\((?:BA|BS|BBA|BSE|BFA|MAJOR|MINOR)\)|\b(?:MAJOR|MINOR))\s*$",
    re.I,
)
NAME_PLACEHOLDER = "Untitled Program"

META_LABELS = {
    "hours_to_complete": re.compile(r"Hours\s+to\s+Complete\s*:?\s*$", re.I),
    "courses_required": re.compile(r"Courses\s+Required\s*:?\s*$", re.I),
    "department_contact": re.compile(r"Department\s+Contact\s*:?\s*$", re.I),
}

REQUIREMENTS_TITLE = "requirements"
BLOCK_TAGS = ["h3", "h4", "p", "li"]
LIST_TAGS = ["ul", "ol"]


# ---------------------------------------------------------------- discovery

def _kind_from_label(label: str) -> Optional[str]:
    t = label.upper()
    if "MINOR" in t: return "minor"
    if "MAJOR" in t: return "major"
    return None

def kind_from_url(url: str) -> Optional[str]:
    m = PROGRAM_PATH_RE.search(urlparse(url or "").path)
    if not m: return None
    return "minor" if m.group(1).lower() == "minors" else "major"

def _degree_from_label(label: str) -> Optional[str]:
    m = DEGREE_RE.search(label.upper())
    return m.group(1) if m else None

def extract_program_variants(index_html: str, index_url: str) -> List[ProgramVariant]:
    """
    Scan every anchor on the concentrations index and keep the ones pointing at
    a major/minor detail page. Names are left blank: index labels are variant
    labels ("BA Major", "Minor"), the real name comes from the detail page.
    """
    soup = BeautifulSoup(index_html or "", "html.parser")
    seen = set()
    out: List[ProgramVariant] = []
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href or not HTML_HREF_RE.search(href):
            continue
        absolute, _frag = urldefrag(urljoin(index_url, href))
        url_kind = kind_from_url(absolute)
        if url_kind is None:
            continue

        label = strip_tags(a)
        kind = _kind_from_label(label) or url_kind

        if absolute in seen:
            continue
        seen.add(absolute)
        out.append(ProgramVariant(kind=kind, source_url=absolute, degree=_degree_from_label(label)))
    return out


# ---------------------------------------------------------------- detail page

def _slug_name(source_url: str) -> str:
    path = urlparse(source_url or "").path.rstrip("/")
    stem = path.rsplit("/", 1)[-1]
    stem = re.sub(r"\.html?$", "", stem, flags=re.I)
    words = re.sub(r"[-_]+", " ", stem).strip()
    return words.title()

def _strip_name_suffixes(name: str) -> str:
    prev = None
    while prev != name:
        prev = name
        name = NAME_SUFFIX_RE.sub("", name).strip()
    return name

def extract_program_name(soup: BeautifulSoup, source_url: str = "") -> str:
    for node in (soup.find("h1"), soup.title):
        if node is None:
            continue
        name = _strip_name_suffixes(strip_tags(node))
        if name:
            return name
    return _slug_name(source_url) or NAME_PLACEHOLDER

def extract_meta(soup: BeautifulSoup) -> ProgramMeta:
    """
    Label/value scraping: the label closes its element and the value is the
    next run of text after it. Misses are None, never errors.
    """
    values = {}
    for field_name, label_re in META_LABELS.items():
        values[field_name] = None
        for label in soup.find_all(string=label_re):
            if isinstance(label, (Comment, Doctype)):
                continue
            nxt = label.find_next(string=lambda s: not isinstance(s, (Comment, Doctype)) and s.strip())
            value = _clean_text(str(nxt)) if nxt is not None else ""
            if value:
                values[field_name] = value
                break
    return ProgramMeta(**values)

def _find_requirements_heading(soup: BeautifulSoup) -> Optional[Tag]:
    for h in soup.find_all(["h2", "h3"]):
        if strip_tags(h).lower() == REQUIREMENTS_TITLE:
            return h
    return None

def _collect_until_h2(nodes: Iterable, parts: List[str]) -> bool:
    """Append markup of `nodes` to parts; True once the next <h2> is reached."""
    for node in list(nodes):
        if isinstance(node, (Comment, Doctype)):
            continue
        if isinstance(node, Tag):
            if node.name == "h2":
                return True
            if node.find("h2") is not None:
                _collect_until_h2(node.children, parts)
                return True
        parts.append(str(node))
    return False

def extract_requirements_html(soup: BeautifulSoup) -> Optional[str]:
    """
    Markup following the "Requirements" heading, up to the next <h2> in
    document order. The heading may sit inside wrappers, so the walk climbs
    to each ancestor's following siblings until an <h2> shows up.
    """
    heading = _find_requirements_heading(soup)
    if heading is None:
        return None
    parts: List[str] = []
    node = heading
    while node is not None and not isinstance(node, BeautifulSoup):
        if _collect_until_h2(node.next_siblings, parts):
            break
        node = node.parent
    return "".join(parts)

def extract_program_detail(detail_html: str, source_url: str = "") -> ProgramDetail:
    soup = BeautifulSoup(detail_html or "", "html.parser")
    return ProgramDetail(
        name=extract_program_name(soup, source_url),
        meta=extract_meta(soup),
        requirements_html=extract_requirements_html(soup),
    )


# ---------------------------------------------------------------- segmenter

def _list_depth(li: Tag) -> int:
    depth = sum(1 for p in li.parents if p.name in LIST_TAGS)
    return max(depth - 1, 0)

def _own_list_text(li: Tag) -> str:
    # text of the item itself, nested sub-lists become their own nodes
    parts = []
    for s in li.find_all(string=True):
        if isinstance(s, (Comment, Doctype)):
            continue
        nested = False
        for parent in s.parents:
            if parent is li:
                break
            if parent.name in LIST_TAGS:
                nested = True
                break
        if not nested:
            parts.append(str(s))
    return _clean_text(" ".join(parts))

def segment_requirements(requirements_html: str) -> List[RequirementNode]:
    soup = BeautifulSoup(requirements_html or "", "html.parser")
    nodes: List[RequirementNode] = []
    for el in soup.find_all(BLOCK_TAGS):
        if el.name == "li":
            text = _own_list_text(el)
            if text:
                nodes.append(RequirementNode("list_item", text, _list_depth(el)))
            continue
        # a <p> inside an <li> (or another <p>) is part of that block already
        if el.find_parent(BLOCK_TAGS) is not None:
            continue
        text = _clean_text(" ".join(text_strings(el)))
        if not text:
            continue
        node_type = "heading" if el.name in ("h3", "h4") else "paragraph"
        nodes.append(RequirementNode(node_type, text, None))

    if not nodes:
        text = strip_tags(requirements_html)
        if text:
            nodes.append(RequirementNode("paragraph", text, None))
    return nodes
