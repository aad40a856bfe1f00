# conftest.py
from unittest.mock import MagicMock, patch

import pytest

from app import create_app

TEST_USER_ID = 'user-1'
AUTH_HEADERS = {'Authorization': 'Bearer valid-token'}


@pytest.fixture
def services():
    """라우트 테스트용 서비스 더블 (Firebase/OpenAI 초기화 없음)."""
    return {
        'storage': MagicMock(),
        'openai': MagicMock(),
        'aggregator': MagicMock(),
        'rewards': MagicMock(),
        'insights': MagicMock(),
        'analytics': MagicMock(),
    }


@pytest.fixture
def app(services):
    app = create_app(config_name='testing', services=services)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def verify_id_token():
    """Firebase Auth 토큰 검증을 대체합니다. 기본은 TEST_USER_ID로 통과."""
    with patch('app.core.security.firebase_auth.verify_id_token') as mocked:
        mocked.return_value = {'uid': TEST_USER_ID}
        yield mocked
