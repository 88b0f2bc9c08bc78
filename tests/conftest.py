import os
from types import SimpleNamespace

# Окружение задаём до импорта приложения: settings читаются при импорте
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from course_progress.config import settings
from course_progress.infrastructure.db import Base, get_db
from course_progress.infrastructure.models import (
    CourseORM, LessonORM, QuizORM, QuizQuestionORM, UnitORM,
)
from course_progress.main import app

# Одна in-memory БД на все соединения
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db():
    """Сессия тестовой БД; таблицы создаются заново для каждого теста"""
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    """Тестовый клиент, работающий в той же сессии, что и тест"""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(sub: str, role: str = "student") -> str:
    return jwt.encode({"sub": sub, "role": role}, settings.SECRET_KEY,
                      algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def auth_headers():
    def _headers(sub: str = "user-1", role: str = "student") -> dict:
        return {"Authorization": f"Bearer {make_token(sub, role)}"}
    return _headers


@pytest.fixture
def seed(db):
    """Фабрика курса: юнит 1 (L1, L2), юнит 2 (L3), опционально тест на 4 вопроса в юните 2.

    Строки вставляются не в порядке `order`, чтобы порядок id не совпадал
    с объявленным порядком уроков.
    """
    def _seed(with_quiz: bool = False, slug: str = "arabic-basics", passing_score: int = 70):
        course = CourseORM(slug=slug, title="أساسيات", title_ru="Основы",
                           description="وصف", description_ru="Описание")
        unit2 = UnitORM(order=2, title="الوحدة 2", title_ru="Юнит 2")
        unit1 = UnitORM(order=1, title="الوحدة 1", title_ru="Юнит 1")
        course.units = [unit2, unit1]
        l2 = LessonORM(order=2, title="الدرس 2", title_ru="Урок 2", type="PDF",
                       pdf_url="https://cdn.example.com/l2.pdf", duration=15)
        l1 = LessonORM(order=1, title="الدرس 1", title_ru="Урок 1", type="VIDEO",
                       video_url="https://cdn.example.com/l1.mp4", duration=10, is_free=True)
        unit1.lessons = [l2, l1]
        l3 = LessonORM(order=1, title="الدرس 3", type="ARTICLE",
                       content="نص", content_ru="Текст", duration=5)
        unit2.lessons = [l3]
        quiz = None
        if with_quiz:
            quiz = QuizORM(title="اختبار", title_ru="Тест", passing_score=passing_score)
            quiz.questions = [
                QuizQuestionORM(order=i, question=f"سؤال {i}", question_ru=f"Вопрос {i}",
                                options=["أ", "ب", "ج", "د"],
                                options_ru=["А", "Б", "В", "Г"],
                                correct_index=i)
                for i in range(4)
            ]
            unit2.quiz = quiz
        db.add(course)
        db.commit()
        return SimpleNamespace(
            course_id=course.id,
            unit_ids=[unit1.id, unit2.id],
            lesson_ids=[l1.id, l2.id, l3.id],
            quiz_id=quiz.id if quiz else None,
            answer_key=[0, 1, 2, 3],
        )
    return _seed
