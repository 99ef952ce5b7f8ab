"""
HTTP client for the Postal Ledger Service API.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx


def parcel_path(parcel_id: str, action: str = "") -> str:
    """URL path of a parcel; the id is percent-encoded as a single segment."""
    path = f"/parcels/{quote(parcel_id, safe='')}"
    return f"{path}/{action}" if action else path


class LedgerClientError(Exception):
    """Error reported by the service (or the connection to it)."""

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class LedgerClient:
    """
    Thin wrapper over httpx for submitting and evaluating transactions.

    Args:
        base_url: Service root, e.g. http://127.0.0.1:8000
        token: Bearer token of the identity to act as
        transport: Optional httpx transport (tests)
    """

    def __init__(self, base_url: str, token: Optional[str] = None, api_version: str = "v1",
                 transport: Optional[httpx.BaseTransport] = None, timeout: float = 30.0):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.prefix = f"/{api_version}"
        self.http = httpx.Client(base_url=base_url, headers=headers, transport=transport, timeout=timeout)
        self.last_tx_id: Optional[str] = None

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            resp = self.http.request(method, f"{self.prefix}{path}", **kwargs)
        except httpx.HTTPError as e:
            raise LedgerClientError(f"Cannot reach ledger service: {e}")

        if resp.status_code >= 400:
            try:
                body = resp.json()
                message = body.get("message") or resp.text
                error_code = body.get("error_code")
            except ValueError:
                message, error_code = resp.text, None
            raise LedgerClientError(message, status_code=resp.status_code, error_code=error_code)

        self.last_tx_id = resp.headers.get("X-Transaction-ID")
        return resp.json()

    # Membership

    def enroll_admin(self, username: str, secret: str) -> Dict[str, Any]:
        return self._request("POST", "/identities/admin/enroll", json={"username": username, "secret": secret})

    def register(self, username: str, role: str) -> Dict[str, Any]:
        return self._request("POST", "/identities", json={"username": username, "role": role})

    def enroll(self, username: str, secret: str) -> Dict[str, Any]:
        return self._request("POST", "/identities/enroll", json={"username": username, "secret": secret})

    # Parcel transactions

    def create_parcel(self, parcel_id: str, destination: str) -> Dict[str, Any]:
        return self._request("POST", "/parcels", json={"id": parcel_id, "destination": destination})

    def transport(self, parcel_id: str, new_address: str) -> Dict[str, Any]:
        return self._request("POST", parcel_path(parcel_id, "transport"), json={"new_address": new_address})

    def change_status(self, parcel_id: str, status: str) -> Dict[str, Any]:
        return self._request("POST", parcel_path(parcel_id, "status"), json={"status": status})

    def query_parcel(self, parcel_id: str) -> Dict[str, Any]:
        return self._request("GET", parcel_path(parcel_id))

    def events(self, **filters) -> Dict[str, Any]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._request("GET", "/events", params=params)
