# tracker_frontend/services/api_client.py
import logging
import os
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")


class ApiError(RuntimeError):
    """Non-2xx answer from the API; carries the status code and server detail."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def create_session() -> requests.Session:
    session = requests.Session()

    # reads only; mutations are never replayed
    retry_strategy = Retry(
        total=2,
        backoff_factor=0.5,
        status_forcelist=[502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def _err(resp: requests.Response) -> str:
    try:
        j = resp.json()
        if isinstance(j, dict) and "detail" in j:
            return str(j["detail"])
        return str(j)
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"


def _check(resp: requests.Response) -> requests.Response:
    if resp.status_code >= 400:
        raise ApiError(resp.status_code, _err(resp))
    return resp


class OrdersApi:
    """Thin wrapper over the /api routes."""

    def __init__(self, base_url: str = API_BASE_URL, session: Optional[requests.Session] = None,
                 timeout: float = 15):
        self.base_url = base_url.rstrip("/")
        self.session = session or create_session()
        self.timeout = timeout

    def _url(self, p: str) -> str:
        return f"{self.base_url}{p}"

    def fetch_orders(self) -> List[Dict[str, Any]]:
        r = self.session.get(self._url("/api/orders"), timeout=self.timeout)
        return _check(r).json()

    def get_order(self, order_id: str) -> Dict[str, Any]:
        r = self.session.get(self._url(f"/api/orders/{order_id}"), timeout=self.timeout)
        return _check(r).json()

    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        r = self.session.post(self._url("/api/orders"), json=payload, timeout=self.timeout)
        return _check(r).json()

    def update_order(self, order_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        r = self.session.patch(self._url(f"/api/orders/{order_id}"), json=changes, timeout=self.timeout)
        return _check(r).json()

    def delete_order(self, order_id: str) -> None:
        r = self.session.delete(self._url(f"/api/orders/{order_id}"), timeout=self.timeout)
        _check(r)

    def upload_image(self, image_path: str) -> str:
        """Upload one image and return its public URL."""
        if not os.path.exists(image_path):
            raise FileNotFoundError(image_path)
        with open(image_path, "rb") as image_file:
            files = {"image": (os.path.basename(image_path), image_file)}
            r = self.session.post(self._url("/api/upload"), files=files, timeout=30)
        return _check(r).json()["url"]

    def upload_images(self, image_paths: List[str]) -> List[str]:
        return [self.upload_image(p) for p in image_paths]
