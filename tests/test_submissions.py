import logging

import pytest
from sqlalchemy.exc import OperationalError

from submitdesk.digest import sha256_bytes
from submitdesk.errors import DuplicateSubmission, SubmissionInconsistent, ValidationError
from submitdesk.store import StudentRecords, Subject, SubmissionStore, UploadedFile
from submitdesk.submissions import SubmissionCoordinator

LIMIT = 1024


def _file(data=b"0123456789", name="hw1.pdf"):
    return UploadedFile(name=name, data=data, mimetype="application/pdf", size=len(data))


@pytest.fixture
def coordinator(db):
    StudentRecords(db).create(101, "Asha", 2, "pw", [Subject("DS", 201), Subject("CO", 202)])
    db.commit()
    return SubmissionCoordinator(db, LIMIT)


def _flags(db, roll):
    return {c: f for r, c, f in StudentRecords(db).flags() if r == roll}


def test_submit_stores_file_and_flips_only_matching_flag(db, coordinator):
    receipt = coordinator.submit(101, 201, _file())
    assert receipt.roll_number == 101
    assert receipt.code == 201
    assert receipt.size == 10
    assert receipt.sha256 == sha256_bytes(b"0123456789")
    assert receipt.warning is None
    assert _flags(db, 101) == {201: True, 202: False}
    assert SubmissionStore(db).find(101, 201).file_data == b"0123456789"


def test_second_submit_is_duplicate_and_leaves_storage_unchanged(db, coordinator):
    coordinator.submit(101, 201, _file())
    with pytest.raises(DuplicateSubmission) as err:
        coordinator.submit(101, 201, _file(b"replacement"))
    assert err.value.message == "Assignment already exists"
    sub = SubmissionStore(db).find(101, 201)
    assert sub.file_data == b"0123456789"
    assert SubmissionStore(db).list_for_code(201) == [(101, 201)]


def test_constraint_rejects_duplicate_when_existence_check_is_bypassed(db, coordinator, monkeypatch):
    coordinator.submit(101, 201, _file())
    # simulate a concurrent request that passed the existence read
    monkeypatch.setattr(coordinator.store, "exists", lambda roll, code: False)
    with pytest.raises(DuplicateSubmission):
        coordinator.submit(101, 201, _file(b"racer"))
    assert SubmissionStore(db).list_for_code(201) == [(101, 201)]
    assert SubmissionStore(db).find(101, 201).file_data == b"0123456789"


def test_unenrolled_code_is_stored_with_warning(db, coordinator, caplog):
    with caplog.at_level(logging.WARNING, logger="submitdesk.submissions"):
        receipt = coordinator.submit(101, 999, _file())
    assert "999" in receipt.warning
    assert any(r.levelno == logging.WARNING for r in caplog.records)
    assert SubmissionStore(db).exists(101, 999)
    assert _flags(db, 101) == {201: False, 202: False}


def test_missing_student_rolls_back_submission(db, coordinator):
    with pytest.raises(SubmissionInconsistent):
        coordinator.submit(777, 201, _file())
    assert not SubmissionStore(db).exists(777, 201)


def test_store_failure_during_flag_update_rolls_back_both_writes(db, coordinator, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("UPDATE student_subjects", {}, Exception("disk I/O error"))

    monkeypatch.setattr(coordinator.records, "set_flag", boom)
    with pytest.raises(SubmissionInconsistent):
        coordinator.submit(101, 201, _file())
    assert not SubmissionStore(db).exists(101, 201)
    assert _flags(db, 101) == {201: False, 202: False}


@pytest.mark.parametrize("code", [None, 0, -3, True, "201", 2 ** 63])
def test_invalid_code_rejected(coordinator, code):
    with pytest.raises(ValidationError):
        coordinator.submit(101, code, _file())


def test_missing_file_rejected(coordinator):
    with pytest.raises(ValidationError) as err:
        coordinator.submit(101, 201, None)
    assert err.value.message == "File or code missing"


def test_upload_limit(db, coordinator):
    with pytest.raises(ValidationError):
        coordinator.submit(101, 201, _file(b"x" * (LIMIT + 1)))
    receipt = coordinator.submit(101, 202, _file(b"x" * LIMIT))
    assert receipt.size == LIMIT


def test_empty_payload_accepted(db, coordinator):
    receipt = coordinator.submit(101, 201, _file(b""))
    assert receipt.size == 0
    assert SubmissionStore(db).find(101, 201).file_data == b""
