"""Python client for the chat API: HTTP wrapper, view state and CLI."""
from chatapp.client.api import ChatAPIClient, ChatAPIError
from chatapp.client.state import ChatViewState, ViewChat, ViewMessage

__all__ = ["ChatAPIClient", "ChatAPIError", "ChatViewState", "ViewChat", "ViewMessage"]
