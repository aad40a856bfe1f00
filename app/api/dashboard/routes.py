# app/api/dashboard/routes.py
"""
대시보드 라우트

자원: /api/pet-care/<pet_id>
- wellness: 다섯 가지 wellness 점수 (radar)
- poop-trend: 최근 배변 빈도/모양 상태
"""

import logging
from flask import Blueprint, request, jsonify, current_app, g

from app.core.exceptions import ContextFetchError
from app.core.security import auth_required
from app.utils.datetime_utils import DateTimeUtils
from .schemas import (
    WellnessQuerySchema, TrendQuerySchema,
    WellnessResponseSchema, PoopTrendResponseSchema
)

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint('dashboard_bp', __name__)


@dashboard_bp.route('/<string:pet_id>/wellness', methods=['GET'])
@auth_required
def get_wellness(pet_id):
    """
    Query Parameters:
        date (optional): 기준 날짜 YYYY-MM-DD (기본값: 오늘)
        timeframe (optional): daily | monthly (기본값: daily)
    """
    params = WellnessQuerySchema().load(request.args)
    as_of = params.get('date') or DateTimeUtils.today()

    try:
        result = current_app.services['analytics'].get_wellness(pet_id, g.user_id, as_of, params['timeframe'])
    except ContextFetchError as e:
        logger.warning(f"wellness 조회 실패 ({pet_id}): {e.message}")
        return jsonify(e.to_dict()), 400
    return jsonify(WellnessResponseSchema().dump(result)), 200


@dashboard_bp.route('/<string:pet_id>/poop-trend', methods=['GET'])
@auth_required
def get_poop_trend(pet_id):
    params = TrendQuerySchema().load(request.args)
    as_of = params.get('date') or DateTimeUtils.today()

    try:
        result = current_app.services['analytics'].get_poop_trend(pet_id, g.user_id, as_of)
    except ContextFetchError as e:
        logger.warning(f"배변 추세 조회 실패 ({pet_id}): {e.message}")
        return jsonify(e.to_dict()), 400
    return jsonify(PoopTrendResponseSchema().dump(result)), 200
