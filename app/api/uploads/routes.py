# app/api/uploads/routes.py

import logging
from flask import request, jsonify, Blueprint, current_app, g
from marshmallow import Schema, fields, validate, EXCLUDE

from app.core.security import auth_required
from app.services.storage_service import validate_upload, DEFAULT_MAX_UPLOAD_BYTES

# 모든 API는 '/api/uploads' 접두사를 갖습니다.
uploads_bp = Blueprint('uploads', __name__)


class UploadRequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    upload_type = fields.Str(required=True, validate=validate.OneOf(['pet_photo', 'log_photo']))
    filename = fields.Str(required=True)
    content_type = fields.Str(required=True)
    size_bytes = fields.Int(required=True)


class FinalizeRequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    file_path = fields.Str(required=True, error_messages={"required": "파일 경로는 필수입니다."})


@uploads_bp.route('/url', methods=['POST'])
@auth_required
def get_upload_url():
    """
    사진 업로드용 Pre-signed URL을 발급합니다.
    이미지 형식과 크기(5MB 이하)를 먼저 확인하고, 통과하지 못하면 URL을 만들지 않습니다.
    """
    data = UploadRequestSchema().load(request.get_json(silent=True) or {})
    storage_service = current_app.services['storage']

    problem = validate_upload(data['filename'], data['content_type'], data['size_bytes'],
                              max_bytes=current_app.config.get('MAX_UPLOAD_BYTES', DEFAULT_MAX_UPLOAD_BYTES))
    if problem:
        logging.info(f"업로드 거부 (user: {g.user_id}): {problem}")
        return jsonify({"error_code": "INVALID_UPLOAD", "message": problem}), 400

    url_info = storage_service.generate_upload_url(
        g.user_id, data['upload_type'], data['filename'], data['content_type'])
    return jsonify(url_info), 200


@uploads_bp.route('/finalize', methods=['POST'])
@auth_required
def finalize_upload():
    """
    업로드된 사진을 공개로 전환하고 URL을 반환합니다.
    사진 업로드 보상 크레딧은 실패해도 응답에 영향을 주지 않습니다.
    """
    data = FinalizeRequestSchema().load(request.get_json(silent=True) or {})
    storage_service = current_app.services['storage']

    try:
        public_url = storage_service.make_public_and_get_url(data['file_path'])
    except FileNotFoundError as e:
        return jsonify({"error_code": "FILE_NOT_FOUND", "message": str(e)}), 404

    current_app.services['rewards'].award_activity_credit(
        g.user_id, 'photo_upload', {"file_path": data['file_path']})

    return jsonify({"public_url": public_url}), 200
