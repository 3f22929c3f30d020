import time
from typing import Any, Dict, List, Optional

import requests

TOPIC_KEYS = ("topic0", "topic1", "topic2", "topic3")


class HypersyncClient:
    """Thin wrapper around the HyperSync JSON API with basic retry."""

    def __init__(
        self,
        url: str,
        api_token: Optional[str] = None,
        timeout: Optional[float] = 30.0,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
    ) -> None:
        base = (url or "").strip()
        if not base:
            raise ValueError("url must be a non-empty string.")

        self.url = base.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, int(max_retries))
        self.backoff_seconds = float(backoff_seconds)
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if api_token:
            self.session.headers.update({"Authorization": f"Bearer {api_token}"})

    def get_height(self) -> int:
        payload = self._request("GET", f"{self.url}/height")
        height = payload.get("height") if isinstance(payload, dict) else None
        if not isinstance(height, int) or isinstance(height, bool) or height < 0:
            raise ValueError("Unexpected height response (missing integer height).")
        return height

    def query(self, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = self._request("POST", f"{self.url}/query", json_body=body)
        if not isinstance(payload, dict):
            raise ValueError("Unexpected query response (non-object).")
        return payload

    def get_active_chains(self, directory_url: str) -> List[Any]:
        payload = self._request("GET", directory_url)
        if not isinstance(payload, list):
            raise ValueError("Unexpected directory response (expected a list).")
        return payload

    def stream(self, query: Dict[str, Any]) -> "LogStream":
        return LogStream(self, query)

    def _request(
        self,
        method: str,
        url: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                if method == "POST":
                    response = self.session.post(url, json=json_body, timeout=self.timeout)
                else:
                    response = self.session.get(url, timeout=self.timeout)
                if response.status_code == 429 or response.status_code >= 500:
                    if attempt < self.max_retries:
                        time.sleep(self.backoff_seconds * attempt)
                        continue

                response.raise_for_status()
                return response.json()
            except requests.RequestException as exc:
                last_error = exc
                if attempt < self.max_retries:
                    time.sleep(self.backoff_seconds * attempt)
                else:
                    raise
            except ValueError as exc:
                last_error = exc
                if attempt < self.max_retries:
                    time.sleep(self.backoff_seconds * attempt)
                else:
                    raise ValueError(f"Failed to parse response from {url}.") from exc

        if last_error:
            raise last_error

        raise RuntimeError("Request failed without raising an exception.")


class LogStream:
    """
    Cursor loop over the /query endpoint.

    recv() yields {"nextBlock": int, "data": {"logs": [...]}} per page and
    returns None once the previous page reached the archive height.
    """

    def __init__(self, client: HypersyncClient, query: Dict[str, Any]) -> None:
        self._client = client
        self._query = dict(query)
        self._from_block = int(query.get("from_block", 0) or 0)
        self._done = False

    def recv(self) -> Optional[Dict[str, Any]]:
        if self._done:
            return None

        body = dict(self._query)
        body["from_block"] = self._from_block
        payload = self._client.query(body)

        next_block = payload.get("next_block")
        archive_height = payload.get("archive_height")
        logs = _collect_logs(payload.get("data"))

        result: Dict[str, Any] = {"data": {"logs": logs}}
        if isinstance(next_block, int) and not isinstance(next_block, bool):
            result["nextBlock"] = next_block
            if next_block > self._from_block:
                self._from_block = next_block
            if isinstance(archive_height, int) and next_block >= archive_height:
                self._done = True
        return result

    def close(self) -> None:
        self._done = True


def _collect_logs(data: Any) -> List[Any]:
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return []

    logs: List[Any] = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        raw_logs = entry.get("logs")
        if not isinstance(raw_logs, list):
            continue
        logs.extend(_normalize_log(log) for log in raw_logs)
    return logs


def _normalize_log(log: Any) -> Any:
    if not isinstance(log, dict) or "topics" in log:
        return log
    if not any(key in log for key in TOPIC_KEYS):
        return log

    topics: List[Optional[str]] = [log.get(key) for key in TOPIC_KEYS]
    while topics and topics[-1] is None:
        topics.pop()
    normalized = {k: v for k, v in log.items() if k not in TOPIC_KEYS}
    normalized["topics"] = topics
    return normalized
