# app/services/firestore_service.py
import logging
from firebase_admin import firestore

from app.models.health_note import HealthNote
from app.utils.datetime_utils import DateTimeUtils

HEALTH_NOTES_COLLECTION = 'health_notes'


def save_health_note(note: HealthNote, db=None) -> HealthNote:
    """
    파싱이 끝난 HealthNote를 'health_notes' 컬렉션에 새 문서로 추가합니다.
    기존 문서는 덮어쓰지 않습니다 (append-only).

    :param note: pet_id/user_id가 채워진 HealthNote
    :param db: Firestore 클라이언트 (없으면 기본 앱의 클라이언트)
    :return: note_id와 created_at이 채워진 HealthNote
    """
    try:
        db = db or firestore.client()

        note.created_at = DateTimeUtils.now()
        data = DateTimeUtils.for_firestore(note.to_document())

        doc_ref = db.collection(HEALTH_NOTES_COLLECTION).document()
        doc_ref.set(data)
        note.note_id = doc_ref.id

        logging.info(f"Firestore 저장 성공 (Collection: {HEALTH_NOTES_COLLECTION}, Doc ID: {doc_ref.id})")
        return note

    except Exception as e:
        logging.error(f"Firestore 저장 실패 (Collection: {HEALTH_NOTES_COLLECTION}): {e}", exc_info=True)
        raise
