"""Shared fixtures: in-memory database, fake completion provider, auth tokens."""
import base64
import json
import os
import time
from datetime import datetime, timezone

os.environ.setdefault("DATABASE_URL", "sqlite://")

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session
from svix.webhooks import Webhook

from chatapp.core.auth import TokenVerifier
from chatapp.core.deps import (
    get_chat_service,
    get_db,
    get_token_verifier,
    get_webhook_verifier,
)
from chatapp.database import init_db, make_engine
from chatapp.main import app
from chatapp.services.chat_service import ChatService
from chatapp.services.completion import CompletionError

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"
WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"test-webhook-signing-secret").decode()


class FakeProvider:
    """Completion provider double recording every prompt."""

    def __init__(self, title="Recursion Explained", reply="Recursion is a function calling itself."):
        self.title = title
        self.reply = reply
        self.fail_title = False
        self.fail_reply = False
        self.prompts = []

    def complete(self, prompt, max_tokens=500):
        self.prompts.append(prompt)
        if "generate a short, concise title" in prompt:
            if self.fail_title:
                raise CompletionError("title failed")
            return self.title
        if self.fail_reply:
            raise CompletionError("reply failed")
        return self.reply


def make_token(user_id, secret=TEST_SECRET, expires_in=3600, **claims):
    payload = {"sub": user_id, "exp": int(time.time()) + expires_in, **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def signed_post(client, path, payload, secret=WEBHOOK_SECRET, msg_id="msg_1"):
    """POST a webhook event signed the way the identity provider signs it."""
    body = json.dumps(payload)
    timestamp = datetime.now(timezone.utc)
    headers = {
        "Content-Type": "application/json",
        "svix-id": msg_id,
        "svix-timestamp": str(int(timestamp.timestamp())),
        "svix-signature": Webhook(secret).sign(msg_id, timestamp, body),
    }
    return client.post(path, content=body, headers=headers)


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def chat_service(provider):
    return ChatService(provider=provider)


@pytest.fixture
def client(engine, chat_service):
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    app.dependency_overrides[get_token_verifier] = lambda: TokenVerifier(secret=TEST_SECRET)
    app.dependency_overrides[get_webhook_verifier] = lambda: Webhook(WEBHOOK_SECRET)

    yield TestClient(app)

    app.dependency_overrides.clear()
