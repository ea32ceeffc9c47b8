# linkcamp/services/storage_service.py
import re
import uuid
import logging
from typing import Optional
from urllib.parse import unquote

from flask import Flask
from firebase_admin import storage
from werkzeug.datastructures import FileStorage

from linkcamp.core.exceptions import InvalidInputError, StorageError

_ALLOWED_IMAGE_TYPES = re.compile(r'^image/(jpeg|jpg|png|webp|avif)$', re.IGNORECASE)


class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 서비스 클래스입니다.
    게시물/프로필 이미지 업로드와 게시물 삭제 시 이미지 정리를 담당합니다.
    """

    def __init__(self):
        """실제 버킷 객체는 init_app 메서드를 통해 주입됩니다."""
        self.bucket = None

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        logging.info("StorageService: Firebase Storage 서비스가 성공적으로 초기화되었습니다.")

    def upload_image(self, file: FileStorage, email: str, upload_type: str) -> str:
        """
        업로드된 이미지 파일을 버킷에 저장하고 공개 URL 을 반환합니다.

        :param file: multipart 요청의 'photo' 파일
        :param email: 업로드한 사용자 email (저장 경로에 사용)
        :param upload_type: "user_profile" 또는 "post_image"
        :return: 공개적으로 접근 가능한 URL
        """
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        if not file.mimetype or not _ALLOWED_IMAGE_TYPES.match(file.mimetype):
            raise InvalidInputError("Only image files are allowed")

        path_map = {
            "user_profile": f"user_profiles/{email}",
            "post_image": f"posts/{email}",
        }
        folder_path = path_map.get(upload_type)
        if not folder_path:
            raise ValueError(f"'{upload_type}'은(는) 유효한 업로드 타입이 아닙니다.")

        filename = file.filename or ''
        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else file.mimetype.split('/')[-1]
        destination_blob_name = f"{folder_path}/{uuid.uuid4()}.{extension}"

        try:
            blob = self.bucket.blob(destination_blob_name)
            blob.upload_from_file(file.stream, content_type=file.mimetype)
            blob.make_public()
            return blob.public_url
        except Exception as e:
            logging.error(f"이미지 업로드 실패 ({destination_blob_name}): {e}", exc_info=True)
            raise StorageError(f"Image upload failed: {e}")

    def delete_by_url(self, url: Optional[str]) -> None:
        """공개 URL 에 해당하는 파일을 삭제합니다. 실패해도 예외를 전파하지 않습니다."""
        if not url or not self.bucket:
            return
        prefix = f"https://storage.googleapis.com/{self.bucket.name}/"
        if not url.startswith(prefix):
            return
        file_path = unquote(url.split("?")[0][len(prefix):])
        try:
            blob = self.bucket.blob(file_path)
            if blob.exists():
                blob.delete()
        except Exception as e:
            logging.error(f"Storage 이미지 삭제 실패 (url: {url}): {e}")
