# app/api/dashboard/test_routes.py
from datetime import date

from app.core.exceptions import ContextFetchError
from conftest import AUTH_HEADERS, TEST_USER_ID


def test_wellness_defaults_to_daily(client, services, verify_id_token):
    services['analytics'].get_wellness.return_value = {
        'date': '2024-05-10', 'timeframe': 'daily', 'rangeDays': 1,
        'scores': {'nutrition': 67, 'digestion': 95, 'supplements': 10, 'mood': 60, 'growth': 70},
    }

    response = client.get('/api/pet-care/pet-1/wellness?date=2024-05-10', headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert response.get_json()['scores']['nutrition'] == 67
    services['analytics'].get_wellness.assert_called_once_with('pet-1', TEST_USER_ID, date(2024, 5, 10), 'daily')


def test_wellness_rejects_unknown_timeframe(client, services, verify_id_token):
    response = client.get('/api/pet-care/pet-1/wellness?timeframe=yearly', headers=AUTH_HEADERS)
    assert response.status_code == 400
    services['analytics'].get_wellness.assert_not_called()


def test_wellness_rejects_bad_date(client, verify_id_token):
    response = client.get('/api/pet-care/pet-1/wellness?date=10-05-2024x', headers=AUTH_HEADERS)
    assert response.status_code == 400


def test_poop_trend_pet_not_found(client, services, verify_id_token):
    services['analytics'].get_poop_trend.side_effect = ContextFetchError("Pet not found")
    response = client.get('/api/pet-care/pet-x/poop-trend', headers=AUTH_HEADERS)
    assert response.status_code == 400


def test_poop_trend_requires_token(client, verify_id_token):
    response = client.get('/api/pet-care/pet-1/poop-trend')
    assert response.status_code == 401
