"""HTTP client for the chat API."""
from typing import Any, Optional
import logging

import httpx

logger = logging.getLogger(__name__)


class ChatAPIError(Exception):
    """Non-success response from the chat API."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class ChatAPIClient:
    """
    Thin wrapper over the /chats endpoints.

    Args:
        base_url: Service root, e.g. http://localhost:8000
        token: Bearer session token
        user_id: Identity-provider user id the token was issued for
        http_client: Optional preconfigured httpx.Client (tests)
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        user_id: str,
        timeout: float = 60.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.user_id = user_id
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._http.headers["Authorization"] = f"Bearer {token}"

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ChatAPIClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        response = self._http.request(method, url, **kwargs)
        if response.is_success:
            return response.json()

        try:
            body = response.json()
            detail = body.get("detail") or body.get("message") or response.text
        except ValueError:
            detail = response.text
        logger.debug(f"{method} {url} failed: {response.status_code} {detail}")
        raise ChatAPIError(response.status_code, str(detail))

    def send_message(self, message: str, chat_id: Optional[str] = None) -> dict[str, Any]:
        """
        Post a chat turn.

        Returns:
            {"success", "chat"} for a new chat, or
            {"success", "message", "chatId"} when continuing chat_id
        """
        payload: dict[str, Any] = {"message": message, "userId": self.user_id}
        if chat_id:
            payload["chatId"] = chat_id
        return self._request("POST", "/chats", json=payload)

    def list_chats(self) -> list[dict[str, Any]]:
        return self._request("GET", "/chats", params={"userId": self.user_id})["chats"]

    def get_chat(self, chat_id: str) -> dict[str, Any]:
        return self._request("GET", f"/chats/{chat_id}", params={"userId": self.user_id})["chat"]

    def delete_chat(self, chat_id: str) -> None:
        self._request("DELETE", f"/chats/{chat_id}", json={"userId": self.user_id})
