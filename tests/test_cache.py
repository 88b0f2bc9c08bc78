import json

import pytest
import redis
from unittest.mock import MagicMock, patch

from course_progress.config import settings
from course_progress.infrastructure.cache import get_cache, outline_key, set_cache
from course_progress.infrastructure.repositories import CourseContentRepository
from course_progress.interfaces.http.routers.courses import build_outline


@pytest.fixture(autouse=True)
def cache_enabled(monkeypatch):
    monkeypatch.setattr(settings, "CACHE_ENABLED", True)


@patch('course_progress.infrastructure.cache.get_redis')
def test_get_cache_hit(mock_redis):
    """Тест получения значения из кэша (hit)"""
    mock_client = MagicMock()
    mock_client.get.return_value = '{"title": "Основы"}'
    mock_redis.return_value = mock_client

    assert get_cache("test_key") == {"title": "Основы"}
    mock_client.get.assert_called_once_with("test_key")


@patch('course_progress.infrastructure.cache.get_redis')
def test_get_cache_miss(mock_redis):
    """Тест получения значения из кэша (miss)"""
    mock_client = MagicMock()
    mock_client.get.return_value = None
    mock_redis.return_value = mock_client

    assert get_cache("test_key") is None


@patch('course_progress.infrastructure.cache.get_redis')
def test_get_cache_redis_down(mock_redis):
    """Недоступный Redis - это промах, а не ошибка"""
    mock_client = MagicMock()
    mock_client.get.side_effect = redis.ConnectionError("Redis error")
    mock_redis.return_value = mock_client

    assert get_cache("test_key") is None


@patch('course_progress.infrastructure.cache.get_redis')
def test_set_cache_uses_ttl(mock_redis):
    mock_client = MagicMock()
    mock_redis.return_value = mock_client

    assert set_cache("test_key", {"title": "أساسيات"}, ttl=60) is True
    mock_client.setex.assert_called_once_with("test_key", 60, '{"title": "أساسيات"}')


@patch('course_progress.infrastructure.cache.get_redis')
def test_set_cache_redis_down(mock_redis):
    mock_client = MagicMock()
    mock_client.setex.side_effect = redis.ConnectionError("Redis error")
    mock_redis.return_value = mock_client

    assert set_cache("test_key", {"key": "value"}) is False


@patch('course_progress.infrastructure.cache.get_redis')
def test_cache_disabled_skips_redis(mock_redis, monkeypatch):
    monkeypatch.setattr(settings, "CACHE_ENABLED", False)
    assert get_cache("test_key") is None
    assert set_cache("test_key", 1) is False
    mock_redis.assert_not_called()


def test_outline_key():
    assert outline_key(5, "ru") == "course:5:outline:ru"


@patch('course_progress.infrastructure.cache.get_redis')
def test_outline_served_from_cache_for_anonymous(mock_redis, client):
    """Аноним получает структуру из кэша без обращения к БД"""
    cached = {
        "id": 42, "slug": "cached", "locale": "ar", "title": "مخزن", "description": None,
        "units": [{
            "id": 1, "order": 1, "title": "u", "quiz": None,
            "lessons": [{"id": 9, "order": 1, "title": "l", "type": "VIDEO", "duration": 3,
                         "is_free": False, "source": "secret.mp4"}],
        }],
    }
    mock_client = MagicMock()
    mock_client.get.return_value = json.dumps(cached)
    mock_redis.return_value = mock_client

    response = client.get("/api/courses/42/outline")
    assert response.status_code == 200
    lesson = response.json()["units"][0]["lessons"][0]
    assert lesson["locked"] is True
    assert lesson["source"] is None
    mock_client.get.assert_called_once_with("course:42:outline:ar")


@patch('course_progress.infrastructure.cache.get_redis')
def test_outline_cache_hit_for_enrolled_user_skips_course_load(
    mock_redis, client, db, seed, auth_headers, monkeypatch
):
    """Попадание в кэш: отметки пользователя считаются по закэшированной структуре"""
    ids = seed(with_quiz=True)
    cached = build_outline(CourseContentRepository(db).get_course(ids.course_id), "ar")
    headers = auth_headers()
    client.post(f"/api/progress/courses/{ids.course_id}/enroll", headers=headers)
    client.post(f"/api/progress/lessons/{ids.lesson_ids[0]}/complete", headers=headers)

    mock_client = MagicMock()
    mock_client.get.return_value = json.dumps(cached, ensure_ascii=False)
    mock_redis.return_value = mock_client
    loads = []
    monkeypatch.setattr(CourseContentRepository, "get_course",
                        lambda self, course_id: loads.append(course_id))

    data = client.get(f"/api/courses/{ids.course_id}/outline", headers=headers).json()
    lessons = [lesson for unit in data["units"] for lesson in unit["lessons"]]
    assert [lesson["completed"] for lesson in lessons] == [True, False, False]
    assert data["units"][1]["quiz"]["passed"] is False
    assert data["progress"]["progress"] == 33
    assert loads == []
