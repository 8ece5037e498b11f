# lineserver/clients/relay_client.py

import base64
import logging
import secrets
from typing import Any, Dict, List, Optional

import requests

from lineserver.core.config import MAX_CHUNK_SIZE

logger = logging.getLogger(__name__)

# =========================
# CONFIGURATION
# =========================

SERVER_URL = "http://127.0.0.1:3000"


def new_identifier() -> str:
    """Fresh 32-char hex participant identifier"""
    return secrets.token_hex(16)


class RelayClientError(Exception):
    def __init__(self, status_code: int, error: str):
        super().__init__(f"{status_code}: {error}")
        self.status_code = status_code
        self.error = error


# =========================
# RELAY CLIENT
# =========================

class RelayClient:
    """
    Thin HTTP client for the relay. Payloads must already be encrypted;
    see ``lineserver.core.crypto.seal``.
    """

    def __init__(self, base_url: str = SERVER_URL, session=None, timeout: Optional[float] = None,
                 chunk_size: int = MAX_CHUNK_SIZE):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        resp = getattr(self.session, method)(f"{self.base_url}{path}", **kwargs)
        if resp.status_code != 200:
            try:
                error = resp.json().get("error", resp.text)
            except ValueError:
                error = resp.text
            raise RelayClientError(resp.status_code, error)
        return resp.json()

    def health(self) -> Dict[str, Any]:
        return self._request("get", "/health")

    def register_user(self, identifier: str) -> Optional[str]:
        """Register ``identifier`` and return the journalist public key, if any"""
        data = self._request("post", "/api/register-user", json={"hash": identifier})
        return data.get("journalistPublicKey")

    def register_journalist(self, public_key: str, secret: Optional[str] = None) -> None:
        body = {"publicKey": public_key}
        if secret is not None:
            body["secret"] = secret
        self._request("post", "/api/register-journalist", json=body)

    def send_message(self, sender: str, encrypted_data: str, to: Optional[str] = None,
                     user_public_key: Optional[str] = None, has_files: bool = False) -> str:
        body = {
            "from": sender,
            "encryptedData": encrypted_data,
            "hasFiles": has_files,
        }
        if to is not None:
            body["to"] = to
        if user_public_key is not None:
            body["userPublicKey"] = user_public_key
        return self._request("post", "/api/send-message", json=body)["messageId"]

    def send_file(self, sender: str, file_name: str, data: bytes,
                  file_type: Optional[str] = None) -> Dict[str, Any]:
        """Base64 the file and upload it chunk by chunk. Returns the final response."""
        if not data:
            raise ValueError("Cannot upload an empty file")

        encoded = base64.b64encode(data).decode("ascii")
        pieces = [encoded[i:i + self.chunk_size] for i in range(0, len(encoded), self.chunk_size)]

        result: Dict[str, Any] = {}
        for index, piece in enumerate(pieces):
            result = self._request("post", "/api/send-chunk", json={
                "from": sender,
                "chunkIndex": index,
                "totalChunks": len(pieces),
                "chunkData": piece,
                "fileName": file_name,
                "fileType": file_type,
                "fileSize": len(data),
            })
            logger.debug("Uploaded chunk %d/%d of %s", result["received"], result["total"], file_name)
        return result

    def get_messages(self, identifier: Optional[str] = None) -> List[Dict[str, Any]]:
        """All messages when ``identifier`` is None (journalist view), else the user's own"""
        if identifier is None:
            return self._request("get", "/api/get-messages/journalist")["messages"]
        return self._request("get", "/api/get-messages/user", params={"hash": identifier})["messages"]

    def nuke(self, identifier: str) -> None:
        self._request("post", "/api/nuke-user", json={"hash": identifier})


def reassemble(file_data: Dict[str, Any]) -> bytes:
    """Rebuild file bytes from a message's ``fileData`` bundle"""
    chunks = file_data["chunks"]
    ordered = [chunks[k] for k in sorted(chunks, key=int)]
    return base64.b64decode("".join(ordered))
