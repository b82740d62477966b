#!/usr/bin/env python3
"""
Cross-check stored submissions against the students' progress flags.

Usage:
  python -m submitdesk.reconcile              # report only
  python -m submitdesk.reconcile --repair     # set missing flags, clear orphaned ones
"""
import argparse
import logging
from typing import List, NamedTuple

from sqlalchemy.orm import Session

from submitdesk.config import Config
from submitdesk.db import make_engine, make_sessionmaker
from submitdesk.digest import short_digest
from submitdesk.store import StudentRecords, SubmissionStore

logger = logging.getLogger(__name__)

MISSING_FLAG = "MISSING_FLAG"        # submission stored, flag still false
ORPHAN_FLAG = "ORPHAN_FLAG"          # flag true, no submission stored
NOT_ENROLLED = "NOT_ENROLLED"        # submission for a code the student does not take


class Mismatch(NamedTuple):
    kind: str
    roll_number: int
    code: int
    sha256: str = ""


def find_inconsistencies(db: Session) -> List[Mismatch]:
    stored = {(roll, code): digest for roll, code, digest in SubmissionStore(db).keys()}
    flags = {(roll, code): flag for roll, code, flag in StudentRecords(db).flags()}

    out = []
    for key, digest in stored.items():
        if key not in flags:
            out.append(Mismatch(NOT_ENROLLED, key[0], key[1], digest or ""))
        elif not flags[key]:
            out.append(Mismatch(MISSING_FLAG, key[0], key[1], digest or ""))
    for key, flag in flags.items():
        if flag and key not in stored:
            out.append(Mismatch(ORPHAN_FLAG, key[0], key[1]))
    out.sort(key=lambda m: (m.roll_number, m.code, m.kind))
    return out


def repair(db: Session) -> int:
    """Fix flag mismatches in one transaction; returns the number of flags changed.

    NOT_ENROLLED rows are reported but left alone.
    """
    records = StudentRecords(db)
    changed = 0
    for m in find_inconsistencies(db):
        if m.kind == MISSING_FLAG:
            records.set_flag(m.roll_number, m.code, True)
            changed += 1
        elif m.kind == ORPHAN_FLAG:
            records.set_flag(m.roll_number, m.code, False)
            changed += 1
    db.commit()
    logger.info("Reconciliation repaired %s flag(s)", changed)
    return changed


def main(argv=None):
    parser = argparse.ArgumentParser(description="Report/repair submission flag inconsistencies.")
    parser.add_argument("--database-url", help="overrides DATABASE_URL")
    parser.add_argument("--repair", action="store_true", help="apply flag fixes")
    args = parser.parse_args(argv)

    config = Config.from_env()
    logging.basicConfig(level=config.log_level, format="%(asctime)s - %(levelname)s - %(message)s")
    engine = make_engine(args.database_url or config.database_url)
    db = make_sessionmaker(engine)()
    try:
        found = find_inconsistencies(db)
        for m in found:
            print(f"{m.kind:<13} roll={m.roll_number} code={m.code} {short_digest(m.sha256)}")
        print(f"{len(found)} inconsistency(ies) found.")
        if args.repair and found:
            print(f"Repaired {repair(db)} flag(s).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
