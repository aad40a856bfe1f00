# app/services/test_log_aggregator.py
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import ContextFetchError
from app.models.health_note import RiskLevel
from app.services.log_aggregator import LogAggregatorService, note_from_document


def _doc(doc_id, data, exists=True):
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = exists
    doc.to_dict.return_value = data
    return doc


def _query(docs):
    query = MagicMock()
    query.where.return_value = query
    query.order_by.return_value = query
    query.limit.return_value = query
    query.stream.return_value = docs
    return query


def _db(pet_doc, collections=None):
    collections = collections or {}
    pets = MagicMock()
    pets.document.return_value.get.return_value = pet_doc

    def _collection(name):
        if name == 'pets':
            return pets
        return collections.get(name) or _query([])

    db = MagicMock()
    db.collection.side_effect = _collection
    return db


OWNED_PET = _doc('pet-1', {'user_id': 'user-1', 'name': 'Bori', 'species': 'dog'})


def test_fetch_pet_context_reads_recent_logs():
    poop = _query([_doc('p1', {'pet_id': 'pet-1', 'color': 'black', 'consistency': 'hard',
                               'logged_at': datetime(2024, 5, 10, tzinfo=timezone.utc)})])
    notes = _query([_doc('n1', {'summary': 'Earlier', 'risk_level': 'watch'})])
    db = _db(OWNED_PET, {'poop_logs': poop, 'health_notes': notes})

    context = LogAggregatorService(db=db).fetch_pet_context('pet-1', 'user-1')

    assert context.pet.name == 'Bori'
    assert context.poop[0].log_id == 'p1'
    assert context.poop[0].color.value == 'black'
    assert context.notes[0].risk_level is RiskLevel.WATCH
    poop.limit.assert_called_with(3)
    notes.limit.assert_called_with(5)


def test_other_users_pet_is_not_found():
    db = _db(_doc('pet-1', {'user_id': 'someone-else', 'name': 'Bori'}))
    with pytest.raises(ContextFetchError) as exc_info:
        LogAggregatorService(db=db).fetch_pet_context('pet-1', 'user-1')
    assert exc_info.value.message == "Pet not found"


def test_missing_pet_is_not_found():
    db = _db(_doc('pet-1', None, exists=False))
    with pytest.raises(ContextFetchError):
        LogAggregatorService(db=db).get_pet('pet-1', 'user-1')


def test_store_failure_becomes_context_fetch_error():
    failing = _query([])
    failing.stream.side_effect = RuntimeError("unavailable")
    db = _db(OWNED_PET, {'food_logs': failing})

    with pytest.raises(ContextFetchError) as exc_info:
        LogAggregatorService(db=db).fetch_pet_context('pet-1', 'user-1')
    assert "unavailable" in exc_info.value.message


def test_rag_snippets_are_merged_newest_first():
    notes = _query([
        _doc('n1', {'summary': 'Soft stool', 'risk_level': 'watch', 'recommendations': 'Hydrate',
                    'created_at': datetime(2024, 5, 8, tzinfo=timezone.utc)}),
    ])
    insights = _query([
        _doc('i1', {'summary': 'Firm', 'risk_level': 'normal',
                    'created_at': datetime(2024, 5, 9, tzinfo=timezone.utc)}),
        _doc('i2', {'summary': None, 'created_at': datetime(2024, 5, 1, tzinfo=timezone.utc)}),
    ])
    db = _db(OWNED_PET, {'health_notes': notes, 'poop_insights': insights})

    snippets = LogAggregatorService(db=db).fetch_rag_snippets('pet-1')

    assert snippets == [
        "Stool pattern | normal | Firm",
        "Insight | watch | Soft stool → Hydrate",
        "Stool pattern | risk n/a | No summary",
    ]


def test_fetch_log_window():
    measurements = _query([_doc('m1', {'weight_kg': 10.2}), _doc('m2', {'weight_kg': 10.0})])
    notes = _query([_doc('n1', {'summary': 'ok', 'risk_level': 'normal'})])
    db = _db(OWNED_PET, {'measurement_logs': measurements, 'health_notes': notes})
    start = datetime(2024, 5, 10, tzinfo=timezone.utc)
    end = datetime(2024, 5, 11, tzinfo=timezone.utc)

    window = LogAggregatorService(db=db).fetch_log_window('pet-1', 'user-1', start, end)

    assert [m.weight_kg for m in window.measurements] == [10.2, 10.0]
    assert window.latest_note.risk_level is RiskLevel.NORMAL
    assert window.food == []


def test_note_from_document_tolerates_unknown_risk():
    note = note_from_document({'summary': 'legacy', 'risk_level': 'critical'}, 'n1')
    assert note.risk_level is None
    assert note.note_id == 'n1'
