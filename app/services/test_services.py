# app/services/test_services.py
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from openai import APIConnectionError

from app.api.insights.composer import PromptPayload
from app.core.exceptions import UpstreamError
from app.models.health_note import HealthNote, RiskLevel
from app.services.firestore_service import save_health_note
from app.services.openai_service import OpenAIService
from app.services.reward_service import RewardService
from app.services.storage_service import StorageService, validate_upload

MB = 1024 * 1024


# ================== 업로드 검증 ==================

def test_validate_upload_accepts_small_image():
    assert validate_upload('bori.jpg', 'image/jpeg', 2 * MB) is None


def test_validate_upload_rejects_non_image():
    assert validate_upload('report.pdf', 'application/pdf', 1000) == "Please select an image file."


def test_validate_upload_rejects_large_file():
    assert validate_upload('big.png', 'image/png', 5 * MB + 1) == "Image must be less than 5MB."
    assert validate_upload('edge.png', 'image/png', 5 * MB) is None


def test_generate_upload_url_uses_pet_folder():
    storage = StorageService()
    storage.bucket = MagicMock()
    storage.bucket.blob.return_value.generate_signed_url.return_value = "https://signed"

    info = storage.generate_upload_url('user-1', 'pet_photo', 'bori.jpg', 'image/jpeg')

    assert info['upload_url'] == "https://signed"
    assert info['file_path'].startswith('pet-photos/user-1/')
    assert info['file_path'].endswith('.jpg')


def test_generate_upload_url_rejects_unknown_type():
    storage = StorageService()
    storage.bucket = MagicMock()
    with pytest.raises(ValueError):
        storage.generate_upload_url('user-1', 'post_image', 'a.jpg', 'image/jpeg')


# ================== 보상 크레딧 ==================

def test_reward_failure_is_logged_and_swallowed():
    db = MagicMock()
    db.collection.return_value.add.side_effect = RuntimeError("quota exceeded")
    assert RewardService(db=db).award_activity_credit('user-1', 'photo_upload') is False


def test_reward_records_event():
    db = MagicMock()
    assert RewardService(db=db).award_activity_credit('user-1', 'poop_log', {'log_id': 'p1'}) is True
    event = db.collection.return_value.add.call_args[0][0]
    assert event['activity'] == 'poop_log'
    db.collection.assert_called_with('reward_events')


def test_reward_unknown_activity():
    db = MagicMock()
    assert RewardService(db=db).award_activity_credit('user-1', 'login') is False
    db.collection.assert_not_called()


# ================== 건강 노트 저장 ==================

def test_save_health_note_appends_document():
    db = MagicMock()
    db.collection.return_value.document.return_value.id = 'note-1'
    note = HealthNote(summary="s", recommendations="r", risk_level=RiskLevel.WATCH, owner_message="o",
                      pet_id='pet-1', user_id='user-1')

    saved = save_health_note(note, db=db)

    assert saved.note_id == 'note-1'
    assert saved.created_at is not None
    data = db.collection.return_value.document.return_value.set.call_args[0][0]
    assert data['risk_level'] == 'watch'
    db.collection.assert_called_with('health_notes')


# ================== OpenAI ==================

def _openai_service(client):
    service = OpenAIService()
    service.client = client
    service.model = 'gpt-4o-mini'
    return service


def test_openai_complete_json_mode():
    client = MagicMock()
    completion = client.chat.completions.create.return_value
    completion.choices = [SimpleNamespace(message=SimpleNamespace(content='  {"a": 1} '))]
    completion.model_dump.return_value = {"id": "c1"}

    content, raw = _openai_service(client).complete(PromptPayload(messages=[], temperature=0.2))

    assert content == '{"a": 1}'
    assert raw == {"id": "c1"}
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs['response_format'] == {"type": "json_object"}
    assert kwargs['temperature'] == 0.2


def test_openai_empty_reply_is_upstream_error():
    client = MagicMock()
    client.chat.completions.create.return_value.choices = [SimpleNamespace(message=SimpleNamespace(content=""))]
    with pytest.raises(UpstreamError):
        _openai_service(client).complete(PromptPayload(messages=[], temperature=0.35, json_mode=False))


def test_openai_error_is_upstream_error_without_retry():
    client = MagicMock()
    client.chat.completions.create.side_effect = APIConnectionError(request=MagicMock())
    with pytest.raises(UpstreamError):
        _openai_service(client).complete(PromptPayload(messages=[], temperature=0.2))
    assert client.chat.completions.create.call_count == 1


def test_openai_init_disables_retries():
    app = SimpleNamespace(config={'OPENAI_API_KEY': 'sk-test', 'OPENAI_MODEL': 'gpt-4o-mini'})
    with patch('app.services.openai_service.OpenAI') as openai_cls:
        OpenAIService().init_app(app)
    openai_cls.assert_called_once_with(api_key='sk-test', max_retries=0)
