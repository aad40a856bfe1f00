# app/core/config.py

import os


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # OpenAI 연동 키. 누락 시 create_app 단계에서 즉시 실패합니다.
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

    # Firebase(Auth/Firestore/Storage) 서비스 계정 키와 버킷
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')

    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 8787))

    # 업로드 허용 한도 (5MB, 이미지 전용)
    MAX_UPLOAD_BYTES = 5 * 1024 * 1024

    REQUIRED_KEYS = ('OPENAI_API_KEY', 'FIREBASE_CREDENTIALS_PATH', 'FIREBASE_STORAGE_BUCKET')


class DevelopmentConfig(Config):
    """개발 환경 설정입니다."""
    DEBUG = True


class ProductionConfig(Config):
    """운영 환경 설정입니다."""
    DEBUG = False


class TestingConfig(Config):
    """테스트 환경 설정입니다. 외부 서비스는 테스트에서 주입합니다."""
    TESTING = True
    DEBUG = False
    OPENAI_API_KEY = 'test-openai-key'
    FIREBASE_CREDENTIALS_PATH = 'test-credentials.json'
    FIREBASE_STORAGE_BUCKET = 'test-bucket'


# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    production=ProductionConfig,
    testing=TestingConfig
)


def missing_required_keys(config) -> list:
    """필수 설정 중 비어 있는 키 목록을 반환합니다."""
    return [key for key in config.get('REQUIRED_KEYS', ()) if not config.get(key)]
