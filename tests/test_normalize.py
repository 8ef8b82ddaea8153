import hashlib

from programs_sync.ingest.normalize import build_program_record, requirements_hash, strip_tags
from programs_sync.ingest.records import ProgramDetail, ProgramMeta, ProgramRules, ProgramVariant, RequirementNode

NODES = [
    RequirementNode("heading", "Core Courses"),
    RequirementNode("list_item", "BIOL 141", 0),
    RequirementNode("paragraph", "Three 300-level electives."),
]


def test_strip_tags_entities_and_whitespace():
    html = "<p>A&nbsp;&amp;&nbsp;B</p><br/><div>C &lt;D&gt; &quot;E&quot; &#39;F&#39;</div>\n\n  <li>G</li>"
    assert strip_tags(html) == "A & B C <D> \"E\" 'F' G"


def test_strip_tags_tag_boundaries_become_spaces():
    assert strip_tags("<li>CS<br>170</li><li>MATH</li>") == "CS 170 MATH"


def test_strip_tags_ignores_comments_and_scripts():
    html = "<p>Keep<!-- drop me --></p><script>var x = 1;</script><style>p{}</style>"
    assert strip_tags(html) == "Keep"


def test_strip_tags_empty():
    assert strip_tags("") == ""
    assert strip_tags(None) == ""
    assert strip_tags("   ") == ""


def test_requirements_hash_canonical_form():
    expected = hashlib.sha256(
        "heading:Core Courses\nlist_item:BIOL 141\nparagraph:Three 300-level electives.".encode("utf-8")
    ).hexdigest()
    assert requirements_hash(NODES) == expected


def test_requirements_hash_sensitivity():
    base = requirements_hash(NODES)
    assert requirements_hash(list(NODES)) == base
    changed_text = [NODES[0], RequirementNode("list_item", "BIOL 142", 0), NODES[2]]
    changed_type = [NODES[0], RequirementNode("paragraph", "BIOL 141"), NODES[2]]
    reordered = [NODES[1], NODES[0], NODES[2]]
    assert requirements_hash(changed_text) != base
    assert requirements_hash(changed_type) != base
    assert requirements_hash(reordered) != base


def test_requirements_hash_ignores_list_level():
    nested = [NODES[0], RequirementNode("list_item", "BIOL 141", 2), NODES[2]]
    assert requirements_hash(nested) == requirements_hash(NODES)


def test_build_program_record_uses_detail_name():
    variant = ProgramVariant(kind="major", source_url="https://catalog.example.edu/academics/concentrations/majors/biology.html", degree="BA")
    detail = ProgramDetail(name="Biology", meta=ProgramMeta(hours_to_complete="40"), requirements_html="<p>x</p>")
    rules = ProgramRules(["BIOL 141"], ["BIOL"], 300)
    record = build_program_record(variant, detail, NODES, rules)
    assert record["name"] == "Biology"
    assert record["degree"] == "BA"
    assert record["hoursToComplete"] == "40"
    assert record["coursesRequired"] is None
    assert record["requirementsHash"] == requirements_hash(NODES)
    assert record["requirements"][1] == {"nodeType": "list_item", "text": "BIOL 141", "listLevel": 0}
    assert record["electiveLevelFloor"] == 300
