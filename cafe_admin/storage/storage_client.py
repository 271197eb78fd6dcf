import logging
from typing import Optional

import requests

from cafe_admin import config

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class StorageClient:
    """HTTP-клиент к object storage бэкенда (картинки товаров)"""

    def __init__(self, base_url: str, key: str, bucket: str, timeout: int = 15):
        self.base_url = (base_url or "").rstrip("/")
        self.key = key or ""
        self.bucket = bucket
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.key)

    def _headers(self, content_type: Optional[str] = None) -> dict:
        headers = {"Authorization": f"Bearer {self.key}", "apikey": self.key}
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def public_url(self, name: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{name}"

    def owns(self, url: Optional[str]) -> bool:
        """Картинка лежит в нашем бакете (а не внешняя ссылка)"""
        return bool(url) and url.startswith(self.public_url(""))

    def upload(self, name: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Загрузить файл, вернуть публичный URL"""
        if not self.is_configured:
            raise StorageError("Armazenamento de imagens não configurado")

        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{name}"
        headers = self._headers(content_type)
        headers["x-upsert"] = "true"
        try:
            resp = requests.post(url, data=data, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise StorageError(f"Falha ao enviar imagem: {e}") from e

        if resp.status_code >= 400:
            raise StorageError(f"Falha ao enviar imagem ({resp.status_code}): {resp.text[:200]}")

        logger.info("Imagem enviada: %s/%s", self.bucket, name)
        return self.public_url(name)

    def remove(self, url: str) -> None:
        """Удалить нашу картинку по её публичному URL"""
        if not (self.is_configured and self.owns(url)):
            return
        name = url[len(self.public_url("")):]
        try:
            resp = requests.delete(
                f"{self.base_url}/storage/v1/object/{self.bucket}",
                json={"prefixes": [name]},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StorageError(f"Falha ao remover imagem: {e}") from e
        if resp.status_code >= 400:
            raise StorageError(f"Falha ao remover imagem ({resp.status_code})")


# глобальный экземпляр
storage = StorageClient(
    base_url=config.STORAGE_URL,
    key=config.STORAGE_KEY,
    bucket=config.STORAGE_BUCKET,
)
