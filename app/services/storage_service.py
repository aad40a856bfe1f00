# app/services/storage_service.py
import uuid
import logging
from datetime import timedelta
from typing import Optional
from flask import Flask
from firebase_admin import storage

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def validate_upload(filename: str, content_type: str, size_bytes: int,
                    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> Optional[str]:
    """
    업로드 전에 파일 형식과 크기를 확인합니다.
    예외를 던지지 않고, 문제가 있으면 사용자에게 보여줄 메시지를, 없으면 None을 반환합니다.
    """
    if not filename:
        return "Please choose a file to upload."
    if not content_type or not content_type.startswith('image/'):
        return "Please select an image file."
    if size_bytes is None or size_bytes <= 0:
        return "The selected file is empty."
    if size_bytes > max_bytes:
        return f"Image must be less than {max_bytes // (1024 * 1024)}MB."
    return None


class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 서비스 클래스입니다.
    반려동물 사진/배변 기록 사진 업로드용 Pre-signed URL 생성과 공개 URL 발급을 제공합니다.
    """

    def __init__(self):
        """
        실제 버킷 객체는 init_app 메서드를 통해 주입됩니다.
        """
        self.bucket = None
        self.max_upload_bytes = DEFAULT_MAX_UPLOAD_BYTES

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        self.max_upload_bytes = app.config.get('MAX_UPLOAD_BYTES', DEFAULT_MAX_UPLOAD_BYTES)
        logging.info("StorageService: Firebase Storage 서비스가 초기화되었습니다.")

    def generate_upload_url(self, user_id: str, upload_type: str, filename: str, content_type: str) -> dict:
        """
        업로드 종류에 맞는 경로로 PUT 전용 Pre-signed URL을 생성합니다.

        :param user_id: 인증된 사용자 ID
        :param upload_type: "pet_photo" 또는 "log_photo"
        :param filename: 원본 파일명 (확장자 파악에 사용)
        :param content_type: 업로드할 파일의 MIME 타입 (예: "image/jpeg")
        :return: 업로드 URL과 파일 경로가 담긴 딕셔너리
        """
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        path_map = {
            "pet_photo": f"pet-photos/{user_id}",
            "log_photo": f"log-photos/{user_id}",
        }

        folder_path = path_map.get(upload_type)
        if not folder_path:
            raise ValueError(f"'{upload_type}'은(는) 유효한 업로드 타입이 아닙니다.")

        extension = filename.rsplit('.', 1)[-1] if '.' in filename else ''
        unique_filename = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())
        destination_blob_name = f"{folder_path}/{unique_filename}"

        blob = self.bucket.blob(destination_blob_name)

        # 15분 동안 유효
        upload_url = blob.generate_signed_url(
            version="v4",
            expiration=timedelta(minutes=15),
            method="PUT",
            content_type=content_type
        )

        return {
            "upload_url": upload_url,
            "file_path": destination_blob_name
        }

    def make_public_and_get_url(self, file_path: str) -> str:
        """
        지정된 파일을 공개로 설정하고 URL을 반환합니다.

        :param file_path: 공개로 전환할 파일의 경로
        :return: 공개 URL
        """
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        blob = self.bucket.blob(file_path)

        if not blob.exists():
            raise FileNotFoundError(f"파일을 찾을 수 없습니다: {file_path}")

        blob.make_public()
        return blob.public_url
