from fastapi import APIRouter, Depends

from ....application.use_cases.course_progress import CourseProgressService
from ..authz import require_admin
from ..dependencies import get_progress_service
from ..schemas import StudentOut, StudentsResp

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])

@router.get("/courses/{course_id}/students", response_model=StudentsResp)
def course_students(course_id: int, service: CourseProgressService = Depends(get_progress_service)):
    rows = service.course_students(course_id)
    return StudentsResp(course_id=course_id, students=[StudentOut.model_validate(r) for r in rows])
