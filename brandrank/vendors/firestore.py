"""Client utilities for the Firestore REST API."""

import logging
from typing import Any, Dict, Iterator, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)
_BASE_URL = "https://firestore.googleapis.com/v1"


def _build_session() -> requests.Session:
    session = requests.Session()
    retries = Retry(
        total=3,
        backoff_factor=1,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET",),
    )
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


_SESSION = _build_session()


class FirestoreError(RuntimeError):
    """Raised when the Firestore API returns an error payload."""


def list_documents(
    project_id: str,
    collection: str,
    api_key: Optional[str] = None,
    page_size: int = 300,
    page_token: Optional[str] = None,
) -> Dict[str, Any]:
    url = f"{_BASE_URL}/projects/{project_id}/databases/(default)/documents/{collection}"
    params: Dict[str, Any] = {"pageSize": page_size}
    if api_key:
        params["key"] = api_key
    if page_token:
        params["pageToken"] = page_token
    response = _SESSION.get(url, params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    error = payload.get("error")
    if error:
        logger.error("list_documents failed: status=%s, message=%s", error.get("status"), error.get("message"))
        raise FirestoreError(error.get("message") or error.get("status") or "unknown error")
    return payload


def iter_documents(
    project_id: str,
    collection: str,
    api_key: Optional[str] = None,
    page_size: int = 300,
) -> Iterator[Dict[str, Any]]:
    """Yield every document in ``collection``, following page tokens."""
    page_token = None
    page = 0
    while True:
        payload = list_documents(project_id, collection, api_key=api_key, page_size=page_size, page_token=page_token)
        documents = payload.get("documents", [])
        page += 1
        logger.info("Fetched %d documents on page %d", len(documents), page)
        yield from documents

        page_token = payload.get("nextPageToken")
        if not page_token:
            break
