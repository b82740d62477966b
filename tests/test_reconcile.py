from submitdesk.reconcile import (
    MISSING_FLAG, NOT_ENROLLED, ORPHAN_FLAG, Mismatch, find_inconsistencies, repair,
)
from submitdesk.store import StudentRecords, Subject, SubmissionStore, UploadedFile
from submitdesk.submissions import SubmissionCoordinator


def _file(data=b"x"):
    return UploadedFile(name="a.pdf", data=data, mimetype="application/pdf", size=len(data))


def _setup(db):
    records = StudentRecords(db)
    records.create(101, "Asha", 2, "pw", [Subject("DS", 201), Subject("CO", 202)])
    records.create(102, "Bilal", 2, "pw", [Subject("DS", 201), Subject("CO", 202)])
    db.commit()


def test_consistent_store_reports_nothing(db):
    _setup(db)
    SubmissionCoordinator(db, 1024).submit(101, 201, _file())
    assert find_inconsistencies(db) == []


def test_detects_and_repairs_flag_drift(db):
    _setup(db)
    store = SubmissionStore(db)
    records = StudentRecords(db)
    # submission persisted without its flag
    store.add(101, 201, _file())
    # flag set without a submission
    records.set_flag(102, 202, True)
    # submission for a code 102 is not enrolled in
    store.add(102, 999, _file())
    db.commit()

    found = find_inconsistencies(db)
    assert [(m.kind, m.roll_number, m.code) for m in found] == [
        (MISSING_FLAG, 101, 201),
        (ORPHAN_FLAG, 102, 202),
        (NOT_ENROLLED, 102, 999),
    ]
    assert all(isinstance(m, Mismatch) for m in found)

    assert repair(db) == 2
    remaining = find_inconsistencies(db)
    assert [(m.kind, m.roll_number, m.code) for m in remaining] == [(NOT_ENROLLED, 102, 999)]
    flags = {(r, c): f for r, c, f in records.flags()}
    assert flags[(101, 201)] is True
    assert flags[(102, 202)] is False
