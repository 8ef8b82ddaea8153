import os
from dotenv import load_dotenv

load_dotenv()

# Paths
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
DATA_DIR = os.getenv("DATA_DIR", os.path.join(BASE_DIR, "data"))
SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schemas", "program.schema.json")

# Storage
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///" + os.path.join(DATA_DIR, "programs.db"),
)

# Catalog source
PROGRAMS_INDEX_URL = os.getenv(
    "PROGRAMS_INDEX_URL",
    "https://catalog.college.emory.edu/academics/concentrations/index.html",
)
USER_AGENT = os.getenv("USER_AGENT", "programs-sync catalog crawler (contact: admin)")

# Fetching
FETCH_TIMEOUT_MS = int(os.getenv("FETCH_TIMEOUT_MS", "20000"))
RATE_DELAY_MS = int(os.getenv("RATE_DELAY_MS", "200"))   # between program pages
