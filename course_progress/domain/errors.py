class ProgressError(Exception):
    """Базовая ошибка модуля обучения. `code` уходит клиенту в поле `error`."""

    code = "progress_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code.replace("_", " "))

    @property
    def message(self) -> str:
        return str(self)


class NotFound(ProgressError):
    code = "not_found"


class CourseNotFound(NotFound):
    code = "course_not_found"


class LessonNotFound(NotFound):
    code = "lesson_not_found"


class QuizNotFound(NotFound):
    code = "quiz_not_found"


class AlreadyEnrolled(ProgressError):
    code = "already_enrolled"

    def __init__(self, enrollment, message: str | None = None):
        super().__init__(message)
        # существующая запись: сервис возвращает её вместо ошибки
        self.enrollment = enrollment


class NotEnrolled(ProgressError):
    code = "not_enrolled"


class MalformedSubmission(ProgressError):
    code = "malformed_submission"


class Unauthenticated(ProgressError):
    code = "unauthenticated"


class Forbidden(ProgressError):
    code = "forbidden"


class ContentInvalid(ProgressError):
    """Структура курса в хранилище нарушает инварианты контента."""

    code = "content_invalid"
