import pytest

from programs_sync.ingest.fetch_html import FetchError
from programs_sync.store.db import get_engine, get_session_factory, init_db

INDEX_URL = "https://catalog.example.edu/academics/concentrations/index.html"
BIOLOGY_URL = "https://catalog.example.edu/academics/concentrations/majors/biology.html"
CHEM_MINOR_URL = "https://catalog.example.edu/academics/concentrations/minors/chemistry.html"
BROKEN_URL = "https://catalog.example.edu/academics/concentrations/majors/broken.html"


def index_page(*links) -> str:
    anchors = "\n".join(f'<li><a href="{href}">{label}</a></li>' for href, label in links)
    return f"<html><body><h2>Programs</h2><ul>{anchors}</ul></body></html>"


def detail_page(title: str, requirements: str, contact: str = "Jane Doe") -> str:
    return f"""
    <html><head><title>{title} | Catalog</title></head><body>
      <h1>{title}</h1>
      <div class="meta">
        <p><strong>Hours to Complete:</strong> 40</p>
        <p><strong>Courses Required:</strong> 11</p>
        <p><strong>Department Contact:</strong> {contact}</p>
      </div>
      <h2>Overview</h2><p>About the program.</p>
      <h2>Requirements</h2>
      {requirements}
      <h2>Honors</h2><p>Honors track details.</p>
    </body></html>
    """


BIOLOGY_REQUIREMENTS = """
  <h3>Core Courses</h3>
  <ul><li>BIOL 141 and BIOL 142</li><li>CHEM 150</li></ul>
  <p>Three 300-level electives.</p>
"""

CHEM_MINOR_REQUIREMENTS = """
  <p>Complete CHEM 150 and CHEM 202.</p>
  <p>Two CHEM electives of any level.</p>
"""


class FakeCatalog:
    """Stands in for fetch_html: serves pages from a dict."""

    def __init__(self, pages):
        self.pages = dict(pages)
        self.requested = []

    def __call__(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise FetchError("Fetch failed: 404 Not Found", status_code=404, reason="Not Found")
        return self.pages[url]


@pytest.fixture
def session_factory(tmp_path):
    engine = get_engine(f"sqlite:///{tmp_path / 'programs.db'}")
    init_db(engine)
    yield get_session_factory(engine)
    engine.dispose()


@pytest.fixture
def catalog():
    return FakeCatalog({
        INDEX_URL: index_page(
            ("majors/biology.html", "Biology BA Major"),
            ("minors/chemistry.html", "Minor"),
        ),
        BIOLOGY_URL: detail_page("Biology Major (BA)", BIOLOGY_REQUIREMENTS),
        CHEM_MINOR_URL: detail_page("Chemistry Minor", CHEM_MINOR_REQUIREMENTS),
    })
