# app/api/uploads/test_routes.py
from conftest import AUTH_HEADERS, TEST_USER_ID

MB = 1024 * 1024


def _upload_body(**overrides):
    body = {"upload_type": "log_photo", "filename": "poop.jpg", "content_type": "image/jpeg", "size_bytes": MB}
    body.update(overrides)
    return body


def test_upload_url_issued_for_valid_image(client, services, verify_id_token):
    services['storage'].generate_upload_url.return_value = {"upload_url": "https://signed", "file_path": "x"}

    response = client.post('/api/uploads/url', json=_upload_body(), headers=AUTH_HEADERS)

    assert response.status_code == 200
    services['storage'].generate_upload_url.assert_called_once_with(
        TEST_USER_ID, 'log_photo', 'poop.jpg', 'image/jpeg')


def test_upload_url_rejects_non_image_before_storage(client, services, verify_id_token):
    response = client.post('/api/uploads/url', json=_upload_body(filename="a.pdf", content_type="application/pdf"),
                           headers=AUTH_HEADERS)

    assert response.status_code == 400
    assert response.get_json()['error_code'] == 'INVALID_UPLOAD'
    services['storage'].generate_upload_url.assert_not_called()


def test_upload_url_rejects_large_file_before_storage(client, services, verify_id_token):
    response = client.post('/api/uploads/url', json=_upload_body(size_bytes=5 * MB + 1), headers=AUTH_HEADERS)

    assert response.status_code == 400
    assert response.get_json() == {"error_code": "INVALID_UPLOAD", "message": "Image must be less than 5MB."}
    services['storage'].generate_upload_url.assert_not_called()


def test_finalize_missing_file_is_404(client, services, verify_id_token):
    services['storage'].make_public_and_get_url.side_effect = FileNotFoundError("파일을 찾을 수 없습니다: x")

    response = client.post('/api/uploads/finalize', json={"file_path": "x"}, headers=AUTH_HEADERS)

    assert response.status_code == 404
    assert response.get_json()['error_code'] == 'FILE_NOT_FOUND'
    services['rewards'].award_activity_credit.assert_not_called()


def test_finalize_succeeds_when_reward_fails(client, services, verify_id_token):
    services['storage'].make_public_and_get_url.return_value = "https://public/x.jpg"
    services['rewards'].award_activity_credit.return_value = False

    response = client.post('/api/uploads/finalize', json={"file_path": "log-photos/user-1/x.jpg"},
                           headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert response.get_json() == {"public_url": "https://public/x.jpg"}
    services['rewards'].award_activity_credit.assert_called_once_with(
        TEST_USER_ID, 'photo_upload', {"file_path": "log-photos/user-1/x.jpg"})


def test_upload_url_requires_token(client, services, verify_id_token):
    response = client.post('/api/uploads/url', json=_upload_body())
    assert response.status_code == 401
    services['storage'].generate_upload_url.assert_not_called()
