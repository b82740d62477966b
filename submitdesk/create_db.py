#!/usr/bin/env python3
# submitdesk/create_db.py
import argparse
import json
import logging
from typing import Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from submitdesk.config import Config
from submitdesk.db import Base, make_engine, make_sessionmaker
from submitdesk.store import AdminAccounts, Subject, SubjectCatalog

logger = logging.getLogger(__name__)

# semester -> ordered subjects
DEFAULT_CATALOG: Dict[int, List[Subject]] = {
    1: [Subject("Programming Fundamentals", 101), Subject("Discrete Mathematics", 102),
        Subject("Digital Logic", 103), Subject("Communication Skills", 104)],
    2: [Subject("Data Structures", 201), Subject("Computer Organization", 202),
        Subject("Probability and Statistics", 203), Subject("Object Oriented Programming", 204)],
    3: [Subject("Algorithms", 301), Subject("Database Systems", 302),
        Subject("Operating Systems", 303), Subject("Linear Algebra", 304)],
    4: [Subject("Computer Networks", 401), Subject("Software Engineering", 402),
        Subject("Theory of Computation", 403), Subject("Web Technologies", 404)],
    5: [Subject("Compiler Design", 501), Subject("Machine Learning", 502),
        Subject("Information Security", 503), Subject("Elective I", 504)],
    6: [Subject("Distributed Systems", 601), Subject("Cloud Computing", 602),
        Subject("Elective II", 603), Subject("Project", 604)],
}


def load_catalog(path: str) -> Dict[int, List[Subject]]:
    """Read a catalog file shaped like {"1": [{"name": ..., "code": ...}, ...], ...}."""
    with open(path) as f:
        raw = json.load(f)
    return {
        int(sem): [Subject(str(s["name"]), int(s["code"])) for s in subjects]
        for sem, subjects in raw.items()
    }


def create_db(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def seed(db: Session, config: Config, catalog: Optional[Dict[int, List[Subject]]] = None) -> None:
    """Insert catalog semesters and the configured admin when they are absent."""
    catalog = DEFAULT_CATALOG if catalog is None else catalog
    subjects = SubjectCatalog(db)
    admins = AdminAccounts(db)
    try:
        for semester, entries in sorted(catalog.items()):
            if subjects.has_semester(semester):
                continue
            subjects.add(semester, entries)
            logger.info("Seeded semester %s with %s subjects", semester, len(entries))

        if config.admin_username and not admins.get_by_username(config.admin_username):
            admins.add(config.admin_username, config.admin_name, config.admin_password)
            logger.info("Seeded admin %s", config.admin_username)
        db.commit()
    except IntegrityError:
        # another worker seeded the same rows first
        db.rollback()
        logger.info("Seed data already present, skipped")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the SubmitDesk schema and seed reference data.")
    parser.add_argument("--database-url", help="overrides DATABASE_URL")
    parser.add_argument("--catalog", help="JSON file with the semester catalog")
    args = parser.parse_args(argv)

    config = Config.from_env()
    url = args.database_url or config.database_url
    engine = make_engine(url)
    create_db(engine)
    catalog = load_catalog(args.catalog) if args.catalog else None
    session = make_sessionmaker(engine)()
    try:
        seed(session, config, catalog)
    finally:
        session.close()
    print("Created/ensured DB and schema at:", url)


if __name__ == "__main__":
    main()
