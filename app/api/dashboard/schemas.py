# app/api/dashboard/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

TIMEFRAMES = ('daily', 'monthly')


class WellnessQuerySchema(Schema):
    """GET /api/pet-care/<pet_id>/wellness 쿼리 파라미터."""
    class Meta:
        unknown = EXCLUDE

    date = fields.Date(format='%Y-%m-%d', required=False)
    timeframe = fields.Str(load_default='daily', validate=validate.OneOf(TIMEFRAMES))


class TrendQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    date = fields.Date(format='%Y-%m-%d', required=False)


class WellnessResponseSchema(Schema):
    date = fields.Str()
    timeframe = fields.Str()
    rangeDays = fields.Int()
    scores = fields.Dict(keys=fields.Str(), values=fields.Int())


class FrequencySegmentSchema(Schema):
    date = fields.Str()
    label = fields.Str()
    count = fields.Int()
    status = fields.Str()


class PoopTrendResponseSchema(Schema):
    date = fields.Str()
    lookStatus = fields.Str()
    lookMessage = fields.Str()
    freqStatus = fields.Str()
    freqMessage = fields.Str()
    freqSegments = fields.List(fields.Nested(FrequencySegmentSchema))
    average = fields.Float()
