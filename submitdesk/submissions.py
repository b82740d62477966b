# submitdesk/submissions.py
"""
Submission intake.

A student's upload is stored as one row per (roll number, subject code) and
the matching subject flag on the student record is set in the same
transaction. The unique constraint on the submissions table is the real
guard against duplicates; the existence read in front of it only gives the
common case a cheap, friendly rejection.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from submitdesk.db import MAX_DB_INT
from submitdesk.errors import DuplicateSubmission, SubmissionInconsistent, ValidationError
from submitdesk.store import FlagUpdate, StudentRecords, SubmissionStore, UploadedFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionReceipt:
    roll_number: int
    code: int
    size: int
    sha256: str
    warning: Optional[str] = None


class SubmissionCoordinator:
    def __init__(self, db: Session, max_upload_bytes: int):
        self.db = db
        self.max_upload_bytes = max_upload_bytes
        self.store = SubmissionStore(db)
        self.records = StudentRecords(db)

    def _validate(self, code, file: Optional[UploadedFile]) -> None:
        if file is None or isinstance(code, bool) or not isinstance(code, int) or not 0 < code <= MAX_DB_INT:
            raise ValidationError("File or code missing")
        if file.size > self.max_upload_bytes:
            raise ValidationError(f"File exceeds {self.max_upload_bytes} byte limit")

    def submit(self, roll_number: int, code: int, file: Optional[UploadedFile]) -> SubmissionReceipt:
        """Store `file` as the submission of `roll_number` for `code`.

        `roll_number` must come from the verified token, not from the request.
        Raises DuplicateSubmission when the pair already has a submission and
        SubmissionInconsistent when either write fails; in both cases nothing
        is persisted.
        """
        self._validate(code, file)

        if self.store.exists(roll_number, code):
            logger.info("Duplicate submission rejected: roll=%s code=%s", roll_number, code)
            raise DuplicateSubmission()

        try:
            sub = self.store.add(roll_number, code, file)
            outcome = self.records.set_flag(roll_number, code, True)
            if outcome is FlagUpdate.NO_STUDENT:
                self.db.rollback()
                logger.error("No student record for roll=%s; submission for code=%s rolled back",
                             roll_number, code)
                raise SubmissionInconsistent()
            self.db.commit()
        except IntegrityError:
            # lost the race against a concurrent submit for the same pair
            self.db.rollback()
            logger.info("Duplicate submission rejected by constraint: roll=%s code=%s", roll_number, code)
            raise DuplicateSubmission()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Submission write failed: roll=%s code=%s", roll_number, code)
            raise SubmissionInconsistent()

        warning = None
        if outcome is FlagUpdate.NO_SUBJECT:
            warning = f"Subject {code} is not among the enrolled subjects of student {roll_number}"
            logger.warning("Submission stored without progress flag: %s", warning)

        logger.info("Submission accepted: roll=%s code=%s size=%s", roll_number, code, sub.size)
        return SubmissionReceipt(
            roll_number=roll_number, code=code, size=sub.size, sha256=sub.sha256, warning=warning
        )
