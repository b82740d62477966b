# submitdesk/retrieval.py
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional

from sqlalchemy.orm import Session

from submitdesk.errors import AllSubmitted, NotFound, ValidationError
from submitdesk.store import StudentRecords, SubmissionStore

PDF_MEDIA_TYPE = "application/pdf"


class SubmittedEntry(NamedTuple):
    roll_number: int
    code: int


class PendingStudent(NamedTuple):
    roll_number: int
    name: str


@dataclass(frozen=True)
class StoredFile:
    # always framed as a PDF named after the code, whatever was uploaded
    data: bytes
    code: int
    media_type: str = PDF_MEDIA_TYPE

    @property
    def filename(self) -> str:
        return f"{self.code}.pdf"

    def headers(self) -> Dict[str, str]:
        return {"Content-Disposition": f'inline; filename="{self.filename}"'}


class RetrievalService:
    def __init__(self, db: Session):
        self.store = SubmissionStore(db)
        self.records = StudentRecords(db)

    def _fetch(self, roll_number: int, code: int) -> StoredFile:
        sub = self.store.find(roll_number, code)
        if sub is None:
            raise NotFound("Assignment not submitted")
        return StoredFile(data=sub.file_data, code=code)

    def fetch_for_student(self, roll_number: int, code: Optional[int]) -> StoredFile:
        if code is None:
            raise ValidationError("Code not provided")
        return self._fetch(roll_number, code)

    def fetch_for_faculty(self, roll_number: Optional[int], code: Optional[int]) -> StoredFile:
        if code is None or roll_number is None:
            raise ValidationError("Code or Roll number not provided")
        return self._fetch(roll_number, code)

    def list_submitted(self, code: int) -> List[SubmittedEntry]:
        return [SubmittedEntry(r, c) for r, c in self.store.list_for_code(code)]

    def list_not_submitted(self, code: int) -> List[PendingStudent]:
        pending = [PendingStudent(r, n) for r, n in self.records.pending_for(code)]
        if not pending:
            raise AllSubmitted()
        return pending
