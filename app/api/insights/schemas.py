# app/api/insights/schemas.py
from marshmallow import Schema, fields, validate, ValidationError, EXCLUDE

from app.models.health_note import RiskLevel


# ================== 요청 스키마 ==================

class AnalyzeRequestSchema(Schema):
    """POST /analyze, POST /breed-breakdown 요청 본문."""
    class Meta:
        unknown = EXCLUDE

    petId = fields.Str(required=True, validate=validate.Length(min=1),
                       error_messages={"required": "petId is required"})
    imageUrl = fields.Url(required=False, allow_none=True)


class ChatMessageSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    role = fields.Str(load_default='user')
    content = fields.Raw(load_default='')


class ChatRequestSchema(Schema):
    """POST /chat 요청 본문."""
    class Meta:
        unknown = EXCLUDE

    petId = fields.Str(required=True, validate=validate.Length(min=1),
                       error_messages={"required": "petId is required"})
    messages = fields.List(fields.Nested(ChatMessageSchema), required=True,
                           error_messages={"required": "messages are required"})


# ================== 모델 응답 검증 스키마 ==================

class TextOrLines(fields.Field):
    """문자열, 또는 문자열 배열(줄바꿈으로 합침)만 허용하는 필드."""

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str):
            return value
        if isinstance(value, list) and value and all(isinstance(item, str) for item in value):
            return "\n".join(value)
        raise ValidationError("Not a valid string.")


class TriageResponseSchema(Schema):
    """트리아지 모델 응답. 네 개의 키가 모두 필요합니다."""
    class Meta:
        unknown = EXCLUDE

    summary = fields.Str(required=True)
    recommendations = TextOrLines(required=True)
    riskLevel = fields.Str(required=True, validate=validate.OneOf([level.value for level in RiskLevel]))
    ownerMessage = fields.Str(required=True)


class BreedShareSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    label = fields.Str(required=True, validate=validate.Length(min=1))
    percentage = fields.Float(required=True, validate=validate.Range(min=0, max=100))
    traits = fields.Str(required=False, allow_none=True)


class BreedResponseSchema(Schema):
    """품종 추정 모델 응답."""
    class Meta:
        unknown = EXCLUDE

    breakdown = fields.List(fields.Nested(BreedShareSchema), required=True, validate=validate.Length(min=1))
    originStory = fields.Str(required=True)
    watchouts = fields.List(fields.Str(), required=True)


# ================== 응답 스키마 ==================

class HealthNoteResponseSchema(Schema):
    id = fields.Str(allow_none=True)
    petId = fields.Str(allow_none=True)
    summary = fields.Str()
    recommendations = fields.Str()
    riskLevel = fields.Str()
    ownerMessage = fields.Str()
    triggeredRules = fields.List(fields.Str(), dump_default=[])
    createdAt = fields.Str(allow_none=True)


class FrequencyDaySchema(Schema):
    date = fields.Str()
    count = fields.Int()
    status = fields.Str()
    rule = fields.Str()


class AnalyzeResponseSchema(HealthNoteResponseSchema):
    computedRiskLevel = fields.Str()
    frequency = fields.List(fields.Nested(FrequencyDaySchema), dump_default=[])
