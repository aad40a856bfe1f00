# app/api/insights/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, g

from app.core.exceptions import ContextFetchError, RequestValidationError
from app.core.security import auth_required
from .schemas import (
    AnalyzeRequestSchema, ChatRequestSchema,
    AnalyzeResponseSchema, HealthNoteResponseSchema
)

logger = logging.getLogger(__name__)

insights_bp = Blueprint('insights_bp', __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        raise RequestValidationError("Request body must be a JSON object")
    return data


def _fetch_error_response(err: ContextFetchError):
    logger.warning(f"컨텍스트 조회 실패: {err.message}")
    return jsonify(err.to_dict()), 400


@insights_bp.route('/context/<string:pet_id>', methods=['GET'])
@auth_required
def get_context(pet_id):
    """반려동물 프로필과 최근 로그를 한 번에 조회합니다."""
    service = current_app.services['insights']
    try:
        context = service.get_context(pet_id, g.user_id)
    except ContextFetchError as e:
        return _fetch_error_response(e)
    return jsonify(context.to_response()), 200


@insights_bp.route('/health-notes/<string:pet_id>', methods=['GET'])
@auth_required
def list_health_notes(pet_id):
    """저장된 건강 노트 이력 (최신순)."""
    service = current_app.services['insights']
    try:
        notes = service.list_health_notes(pet_id, g.user_id)
    except ContextFetchError as e:
        return _fetch_error_response(e)
    return jsonify(HealthNoteResponseSchema(many=True).dump([note.to_response() for note in notes])), 200


@insights_bp.route('/analyze', methods=['POST'])
@auth_required
def analyze():
    """
    최근 배변 기록을 규칙으로 평가하고 모델 설명과 함께 건강 노트를 생성합니다.
    실패 시 노트는 저장되지 않으며 재시도하지 않습니다.
    """
    data = AnalyzeRequestSchema().load(_json_body())
    service = current_app.services['insights']

    result = service.analyze(data['petId'], g.user_id, image_url=data.get('imageUrl'))
    return jsonify(AnalyzeResponseSchema().dump(result)), 200


@insights_bp.route('/breed-breakdown', methods=['POST'])
@auth_required
def breed_breakdown():
    data = AnalyzeRequestSchema().load(_json_body())
    service = current_app.services['insights']

    breakdown = service.breed_breakdown(data['petId'], g.user_id, image_url=data.get('imageUrl'))
    return jsonify(breakdown.to_response()), 200


@insights_bp.route('/chat', methods=['POST'])
@auth_required
def chat():
    """대화 기록과 최근 컨텍스트로 답변을 생성합니다. 결과는 저장하지 않습니다."""
    data = ChatRequestSchema().load(_json_body())
    service = current_app.services['insights']

    reply = service.chat(data['petId'], g.user_id, data['messages'])
    return jsonify({"reply": reply}), 200
