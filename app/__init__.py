# app/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
import firebase_admin
from firebase_admin import credentials

# - 설정 / 예외
from app.core.config import config_by_name, missing_required_keys
from app.core.exceptions import InsightError

# - API 블루프린트
from app.api.insights.routes import insights_bp
from app.api.dashboard.routes import dashboard_bp
from app.api.uploads.routes import uploads_bp

# - 서비스 모듈
from app.services.storage_service import StorageService
from app.services.openai_service import OpenAIService
from app.services.log_aggregator import LogAggregatorService
from app.services.reward_service import RewardService
from app.api.insights.services import InsightService
from app.api.dashboard.services import AnalyticsService


def _build_services(app: Flask) -> dict:
    """외부 연동 서비스를 생성하고 도메인 서비스에 주입합니다."""
    services = {}

    # 5-1. 공용/핵심 서비스
    try:
        storage_instance = StorageService()
        storage_instance.init_app(app)
        services['storage'] = storage_instance
        logging.info("Storage service initialized successfully")
    except Exception as e:
        logging.error(f"Failed to initialize storage service: {e}")
        raise

    try:
        openai_instance = OpenAIService()
        openai_instance.init_app(app)
        services['openai'] = openai_instance
        logging.info("OpenAI service initialized successfully")
    except Exception as e:
        logging.error(f"Failed to initialize OpenAI service: {e}")
        raise

    services['aggregator'] = LogAggregatorService()
    services['rewards'] = RewardService()

    # 5-2. 다른 서비스를 주입받는 도메인 서비스
    services['insights'] = InsightService(
        aggregator=services['aggregator'],
        openai_service=services['openai']
    )
    services['analytics'] = AnalyticsService(aggregator=services['aggregator'])
    return services


def create_app(config_name: str = None, services: dict = None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' | 'production' | 'testing' (기본값: FLASK_ENV)
    :param services: 미리 만든 서비스 딕셔너리. 주어지면 Firebase/OpenAI 초기화를 건너뜁니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    missing_keys = missing_required_keys(app.config)
    if missing_keys:
        raise ValueError(f"필수 환경 변수가 설정되지 않았습니다: {', '.join(missing_keys)}")

    # =====================================================================================
    # 4. 외부 서비스 초기화 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    if services is None:
        if not firebase_admin._apps:
            cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
            if not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred, {
                'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
            })
        services = _build_services(app)

    app.services = services

    # =====================================================================================
    # 5. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(insights_bp)
    app.register_blueprint(dashboard_bp, url_prefix='/api/pet-care')
    app.register_blueprint(uploads_bp, url_prefix='/api/uploads')

    # =====================================================================================
    # 6. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(InsightError)
    def handle_insight_error(err):
        if err.status_code >= 500:
            logging.error(f"{err.error_code}: {err.message}")
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        if isinstance(err, HTTPException):
            return jsonify({"error_code": err.name.upper().replace(" ", "_"), "message": err.description}), err.code
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 7. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
