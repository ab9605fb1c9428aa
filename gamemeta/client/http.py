import json
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from gamemeta.services.errors import EmptyObservation, TransportFailure, Unauthorized, UnknownEntity


def _error_message(exc: HTTPError) -> str | None:
    body = ""
    try:
        body = exc.read().decode("utf-8")
    except OSError:
        body = ""

    if not body:
        return None
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return None
    if isinstance(payload, dict):
        message = payload.get("detail") or payload.get("message") or payload.get("error")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def request_json(
    url: str,
    *,
    method: str = "GET",
    payload: object | None = None,
    token: str | None = None,
    timeout: float = 30.0,
    user_agent: str = "GameMetaSync/1.0",
) -> object:
    """Send a request and decode the JSON body.

    HTTP status codes are mapped onto the sync error taxonomy, everything
    else that goes wrong on the wire becomes TransportFailure.
    """
    headers = {"User-Agent": user_agent, "Accept": "application/json"}
    data = None
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"
    if token:
        headers["Authorization"] = f"Bearer {token}"

    req = Request(url, data=data, headers=headers, method=method)
    try:
        with urlopen(req, timeout=timeout) as response:
            raw = response.read().decode("utf-8")
    except HTTPError as exc:
        message = _error_message(exc)
        if exc.code == 401:
            raise Unauthorized(message or "Unauthorized") from exc
        if exc.code == 404:
            raise UnknownEntity("resource", message or url) from exc
        if exc.code == 422:
            raise EmptyObservation(message or "Rejected observation") from exc
        raise TransportFailure(message or f"Upstream request failed: HTTP {exc.code}") from exc
    except (URLError, TimeoutError) as exc:
        raise TransportFailure(f"Could not reach {url}: {exc}") from exc

    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise TransportFailure(f"Invalid JSON from {url}") from exc
