# submitdesk/app.py
import io
import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from submitdesk.auth import (
    ADMIN, FACULTY, STUDENT, AuthTokenService, PlaintextCredentialVerifier, Principal,
    get_principal, require_role,
)
from submitdesk.config import Config
from submitdesk.create_db import create_db, seed
from submitdesk.db import make_engine, make_sessionmaker
from submitdesk.errors import AuthError, NotFound, PortalError, ValidationError
from submitdesk.retrieval import RetrievalService, StoredFile
from submitdesk.roster import (
    add_faculty, as_int, delete_faculty, enroll_student, faculty_profile, login_admin,
    login_faculty, login_student, student_profile, MAX_SEMESTER, MIN_SEMESTER,
)
from submitdesk.store import AdminAccounts, FacultyRoster, StudentRecords, SubjectCatalog, UploadedFile
from submitdesk.submissions import SubmissionCoordinator

logger = logging.getLogger(__name__)

router = APIRouter()


# ======== Schemas ========
IntLike = Optional[Union[int, str]]


class StudentIn(BaseModel):
    rollNumber: IntLike = None
    name: Optional[str] = None
    semester: IntLike = None
    password: Optional[str] = None


class StudentLoginIn(BaseModel):
    rollNumber: IntLike = None
    password: Optional[str] = None


class UserLoginIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class FacultyIn(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class RollIn(BaseModel):
    rollNumber: IntLike = None


class UsernameIn(BaseModel):
    username: Optional[str] = None


class FacultyIdIn(BaseModel):
    id: IntLike = Field(None, alias="_id")


# ======== Helpers ========
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _tokens(request: Request) -> AuthTokenService:
    return request.app.state.tokens


def _verifier(request: Request) -> PlaintextCredentialVerifier:
    return request.app.state.verifier


def _pdf(stored: StoredFile) -> StreamingResponse:
    return StreamingResponse(io.BytesIO(stored.data), media_type=stored.media_type, headers=stored.headers())


def _required_code(value) -> int:
    code = as_int(value)
    if code is None:
        raise ValidationError("Code not provided")
    return code


@router.get("/", response_class=HTMLResponse)
def home():
    return "<h1>Hello there</h1>"


# ======== Student ========
@router.post("/student/register")
def register(inp: StudentIn, request: Request, db: Session = Depends(get_db)):
    student = enroll_student(db, inp.rollNumber, inp.name, inp.semester, inp.password)
    token = _tokens(request).issue(Principal(student.roll_number, STUDENT))
    return {"message": "registered successfully", "token": token}


@router.post("/student/login")
def student_login(inp: StudentLoginIn, request: Request, db: Session = Depends(get_db)):
    student = login_student(db, _verifier(request), inp.rollNumber, inp.password)
    token = _tokens(request).issue(Principal(student.roll_number, STUDENT))
    return {"message": "logged in successfully", "token": token}


@router.get("/getStudentInfo")
def student_info(me: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    require_role(me, STUDENT)
    student = StudentRecords(db).get(me.identity)
    if not student:
        raise NotFound("Student not found")
    return {"message": "data fetched successfully", "student": student_profile(student)}


@router.get("/student/dashboard")
def student_dashboard(me: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    require_role(me, STUDENT, message=f"Token expected for student, received for {me.role}")
    student = StudentRecords(db).get(me.identity)
    if not student:
        raise NotFound("Cannot access student details")
    return {"message": "Fetched data successfully", "student": student_profile(student)}


@router.post("/submitAssignment")
def submit_assignment(
    request: Request,
    code: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    me: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    require_role(me, STUDENT, message="Cannot authenticate")
    limit = request.app.state.config.max_upload_bytes
    upload = None
    if file is not None:
        # one byte past the limit is enough to reject it
        data = file.file.read(limit + 1)
        upload = UploadedFile(
            name=file.filename or f"{code}.pdf",
            data=data,
            mimetype=file.content_type or "application/octet-stream",
            size=len(data),
        )
    coordinator = SubmissionCoordinator(db, limit)
    receipt = coordinator.submit(me.identity, as_int(code), upload)
    out = {"message": "assignment submitted successfully"}
    if receipt.warning:
        out["warning"] = receipt.warning
    return out


@router.get("/student/getAssignment")
def student_get_assignment(
    code: Optional[str] = None,
    me: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    require_role(me, STUDENT)
    return _pdf(RetrievalService(db).fetch_for_student(me.identity, as_int(code)))


# ======== Faculty ========
@router.post("/faculty/login")
def faculty_login(inp: UserLoginIn, request: Request, db: Session = Depends(get_db)):
    faculty = login_faculty(db, _verifier(request), inp.username, inp.password)
    token = _tokens(request).issue(Principal(faculty.username, FACULTY))
    return {"message": "Faculty logged in successfully", "token": token}


@router.get("/getFacultyInfo")
def faculty_info(me: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    require_role(me, FACULTY)
    faculty = FacultyRoster(db).get_by_username(me.identity)
    if not faculty:
        raise NotFound("Something went wrong. Please login again.")
    return {"name": faculty.name}


@router.post("/getStudentByRoll")
def student_by_roll(inp: RollIn, me: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    require_role(me, FACULTY, ADMIN)
    roll = as_int(inp.rollNumber)
    if roll is None:
        raise ValidationError("Roll number not found")
    student = StudentRecords(db).get(roll)
    if not student:
        raise NotFound("Student not found")
    return student_profile(student)


@router.get("/faculty/getAssignment")
def faculty_get_assignment(
    code: Optional[str] = None,
    rollNumber: Optional[str] = None,
    me: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    require_role(me, FACULTY)
    return _pdf(RetrievalService(db).fetch_for_faculty(as_int(rollNumber), as_int(code)))


@router.get("/faculty/getAllSubmitted")
def faculty_all_submitted(
    code: Optional[str] = None,
    me: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    require_role(me, FACULTY, message="Request could not be authorized")
    rows = RetrievalService(db).list_submitted(_required_code(code))
    return {"assignments": [{"rollNumber": r.roll_number, "code": r.code} for r in rows]}


@router.get("/faculty/getAllNotSubmitted")
def faculty_all_not_submitted(
    code: Optional[str] = None,
    me: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    require_role(me, FACULTY, message="Request could not be authorized")
    rows = RetrievalService(db).list_not_submitted(_required_code(code))
    return {"studentsWhoHaveNotSubmitted": [{"rollNumber": r.roll_number, "name": r.name} for r in rows]}


@router.get("/getSubjects")
def subjects(me: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    return {"subjectCodes": SubjectCatalog(db).all_codes()}


# ======== Admin ========
@router.post("/admin/login")
def admin_login(inp: UserLoginIn, request: Request, db: Session = Depends(get_db)):
    admin = login_admin(db, _verifier(request), inp.username, inp.password)
    token = _tokens(request).issue(Principal(admin.username, ADMIN))
    return {"message": "Admin logged in successfully", "token": token}


@router.get("/getAdminDetails")
def admin_details(me: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    require_role(me, ADMIN)
    admin = AdminAccounts(db).get_by_username(me.identity)
    if not admin:
        raise NotFound("Something went wrong. Please login again.")
    return {"name": admin.name, "username": admin.username}


@router.post("/addFaculty")
def admin_add_faculty(inp: FacultyIn, me: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    require_role(me, ADMIN)
    add_faculty(db, inp.name, inp.username, inp.password)
    return {"message": "Faculty added successfully"}


@router.post("/addStudent")
def admin_add_student(inp: StudentIn, me: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    require_role(me, ADMIN)
    enroll_student(db, inp.rollNumber, inp.name, inp.semester, inp.password)
    return {"message": "registered successfully"}


@router.post("/getFacultyByUsername")
def admin_faculty_by_username(inp: UsernameIn, me: Principal = Depends(get_principal),
                              db: Session = Depends(get_db)):
    require_role(me, ADMIN)
    if not inp.username:
        raise ValidationError("Username missing")
    faculty = FacultyRoster(db).get_by_username(inp.username)
    if not faculty:
        raise NotFound("No faculty with this username")
    return {"faculty": faculty_profile(faculty)}


@router.get("/getAllFaculties")
def admin_all_faculties(me: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    require_role(me, ADMIN)
    faculties = FacultyRoster(db).all()
    if not faculties:
        raise NotFound("No faculties registered yet")
    return [faculty_profile(f) for f in faculties]


@router.delete("/deleteFaculty")
def admin_delete_faculty(inp: FacultyIdIn, me: Principal = Depends(get_principal),
                         db: Session = Depends(get_db)):
    require_role(me, ADMIN)
    delete_faculty(db, inp.id)
    return {"message": "Faculty deleted successfully"}


@router.get("/getStudentsBySemester")
def admin_students_by_semester(
    semester: Optional[str] = None,
    me: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    require_role(me, ADMIN)
    sem = as_int(semester)
    if sem is None:
        raise ValidationError("Semester not provided")
    if sem < MIN_SEMESTER or sem > MAX_SEMESTER:
        raise ValidationError("Semester not valid")
    students = StudentRecords(db).by_semester(sem)
    if not students:
        raise NotFound("No students found for given semester")
    return [{"id": s.id, "name": s.name, "rollNumber": s.roll_number} for s in students]


# ======== Error handlers ========
def _auth_error(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.http_status, content={"errorAuthenticate": exc.message})


def _portal_error(request: Request, exc: PortalError):
    return JSONResponse(status_code=exc.http_status, content={"message": exc.message})


def _validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        loc = ".".join(str(p) for p in errors[0].get("loc", ()) if p != "body")
        message = f"{loc}: {errors[0].get('msg')}" if loc else str(errors[0].get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


def _store_error(request: Request, exc: SQLAlchemyError):
    logger.exception("Store error on %s", request.url.path)
    return JSONResponse(status_code=400, content={"message": "Something went wrong"})


# ======== App ========
def create_app(config: Optional[Config] = None) -> FastAPI:
    config = config or Config.from_env()
    logging.basicConfig(level=config.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    app = FastAPI(title="SubmitDesk", version="1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins, allow_credentials=True, allow_methods=["*"], allow_headers=["*"]
    )

    engine = make_engine(config.database_url)
    create_db(engine)
    app.state.config = config
    app.state.engine = engine
    app.state.session_factory = make_sessionmaker(engine)
    app.state.tokens = AuthTokenService(config)
    app.state.verifier = PlaintextCredentialVerifier()

    db = app.state.session_factory()
    try:
        seed(db, config)
    finally:
        db.close()

    app.add_exception_handler(AuthError, _auth_error)
    app.add_exception_handler(PortalError, _portal_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(SQLAlchemyError, _store_error)
    app.include_router(router)
    logger.info("SubmitDesk ready (database=%s)", engine.url.render_as_string(hide_password=True))
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=3000)
