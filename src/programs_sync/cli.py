import sys, json, argparse, logging
from datetime import datetime, timezone
from typing import Any, Optional

from jsonschema import ValidationError

from .config import RATE_DELAY_MS
from .ingest.fetch_html import FetchError, load_html
from .ingest.parse_catalog import kind_from_url
from .ingest.records import ProgramVariant
from .store.db import get_engine, get_session_factory, init_db
from .store.repository import get_program_detail, list_programs
from .sync import MissingRequirementsError, build_record, sync_programs

# ---------- JSON logging ----------
RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()) | {"message", "asctime"}

class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k in RESERVED or k in payload:
                continue
            try:
                json.dumps(v); payload[k] = v
            except (TypeError, ValueError):
                payload[k] = str(v)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def configure_logging(log_json: bool, level: str) -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(lvl)
    h = logging.StreamHandler(sys.stderr)
    h.setLevel(lvl)
    h.setFormatter(JsonFormatter() if log_json else logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root.addHandler(h)

log = logging.getLogger("programs_sync.cli")

def _print(obj: Any) -> None:
    sys.stdout.write(json.dumps(obj, ensure_ascii=False, indent=2) + "\n")
    sys.stdout.flush()

def _session_factory(database_url: Optional[str]):
    engine = get_engine(database_url)
    init_db(engine)
    return get_session_factory(engine)

# ---------- commands ----------
def cmd_sync(args: argparse.Namespace) -> int:
    try:
        stats = sync_programs(
            args.rate_delay_ms,
            session_factory=_session_factory(args.database_url),
            deactivate_missing=args.deactivate_missing,
        )
    except FetchError as e:
        log.error("Could not fetch programs index", extra={"detail": str(e)})
        return 1
    _print(stats.to_dict())
    return 0

def cmd_list(args: argparse.Namespace) -> int:
    with _session_factory(args.database_url)() as session:
        _print(list_programs(session, q=args.q, limit=args.limit))
    return 0

def cmd_show(args: argparse.Namespace) -> int:
    with _session_factory(args.database_url)() as session:
        detail = get_program_detail(session, args.id)
    if detail is None:
        log.error("Program not found", extra={"program_id": args.id})
        return 1
    _print(detail)
    return 0

def cmd_parse(args: argparse.Namespace) -> int:
    # offline: run extraction on a saved detail page, nothing is written
    kind = args.kind or kind_from_url(args.url) or "major"
    variant = ProgramVariant(kind=kind, source_url=args.url, degree=args.degree)
    try:
        record = build_record(variant, load_html(args.html))
    except (MissingRequirementsError, ValidationError) as e:
        log.error("Could not extract program", extra={"detail": getattr(e, "message", str(e)), "html": args.html})
        return 1
    _print(record)
    return 0

# ---------- CLI ----------
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="programs-sync", description="Catalog majors/minors requirements sync")
    p.add_argument("--log-json", action="store_true", help="Emit JSON logs to stderr")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG","INFO","WARNING","ERROR"], help="Logging level")
    p.add_argument("--database-url", default=None, help="SQLAlchemy URL (defaults to DATABASE_URL)")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("sync", help="Fetch the catalog and sync program requirements")
    s.add_argument("--rate-delay-ms", type=int, default=RATE_DELAY_MS, help="Pause between program pages")
    s.add_argument("--deactivate-missing", action="store_true",
                   help="Mark programs no longer on the index inactive (only after an error-free pass)")
    s.set_defaults(func=cmd_sync)

    ls = sub.add_parser("list", help="List stored programs")
    ls.add_argument("--q", default=None, help="Case-insensitive name filter")
    ls.add_argument("--limit", type=int, default=50)
    ls.set_defaults(func=cmd_list)

    sh = sub.add_parser("show", help="Show one stored program with its requirements")
    sh.add_argument("id", type=int)
    sh.set_defaults(func=cmd_show)

    pa = sub.add_parser("parse", help="Extract a record from a saved detail page")
    pa.add_argument("--html", required=True, help="path to saved HTML")
    pa.add_argument("--url", required=True, help="source URL of the page")
    pa.add_argument("--kind", choices=["major", "minor"], default=None)
    pa.add_argument("--degree", default=None)
    pa.set_defaults(func=cmd_parse)
    return p

def main(argv: Optional[list] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_json, args.log_level)
    sys.exit(args.func(args))

if __name__ == "__main__":
    main()
