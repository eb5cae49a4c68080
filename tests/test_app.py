import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient
from rollbar_unfurler.errors import RemoteError
from rollbar_unfurler.main import app
from rollbar_unfurler.schemas.slack import OAuthGrant

TOKEN = "test-verification-token"

@pytest.fixture
def client(test_db):
    # Entering the context runs the lifespan (opens the store on test_db's path)
    with TestClient(app) as c:
        yield c

def _link_shared(links, token=TOKEN):
    return {
        "token": token,
        "team_id": "T1",
        "type": "event_callback",
        "event": {
            "type": "link_shared",
            "channel": "C1",
            "user": "U1",
            "message_ts": "1500000000.000100",
            "links": [{"domain": "rollbar.com", "url": url} for url in links],
        },
    }

def test_url_verification(client):
    """
    WHY: Slack requires a handshake (url_verification) before sending events.
    EXPECTED: The challenge is echoed back.
    """
    response = client.post("/slack", json={"token": TOKEN, "type": "url_verification", "challenge": "abc"})
    assert response.status_code == 200
    assert response.json() == {"challenge": "abc"}

def test_events_reject_wrong_token(client):
    pipeline = MagicMock()
    app.state.pipeline = pipeline

    response = client.post("/slack", json=_link_shared(["https://rollbar.com/a/b/items/1"], token="forged"))

    assert response.status_code == 403
    pipeline.run.assert_not_called()

def test_events_reject_invalid_json(client):
    response = client.post("/slack", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400

def test_link_shared_dispatches_pipeline(client):
    """
    WHY: Slack expects a fast ack; unfurling happens in the background.
    HOW: Swap the pipeline for a mock and post a link_shared event.
    EXPECTED: 200 ok, pipeline.run scheduled once with the team and the parsed event.
    """
    pipeline = MagicMock()
    app.state.pipeline = pipeline
    url = "https://rollbar.com/acme/web/items/42"

    response = client.post("/slack", json=_link_shared([url]))

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    pipeline.run.assert_called_once()
    team, event = pipeline.run.call_args.args
    assert team == "T1"
    assert event.channel == "C1"
    assert [link.url for link in event.links] == [url]

def test_tokens_revoked_deletes_user_tokens(client):
    store = app.state.store
    store.save_user_token("T1", "U1", "xoxp-1")
    store.save_user_token("T1", "U2", "xoxp-2")

    response = client.post("/slack", json={
        "token": TOKEN,
        "team_id": "T1",
        "type": "event_callback",
        "event": {"type": "tokens_revoked", "tokens": {"oauth": ["U1"], "bot": []}},
    })

    assert response.status_code == 200
    assert store.get_auth_token("T1") == "xoxp-2"

def test_app_uninstalled_deletes_team(client):
    store = app.state.store
    store.save_project_token("T1", "acme/web", "read-web")

    response = client.post("/slack", json={
        "token": TOKEN,
        "team_id": "T1",
        "type": "event_callback",
        "event": {"type": "app_uninstalled"},
    })

    assert response.status_code == 200
    assert store.get_project_token("T1", "acme/web") == ""
    assert not store.team_exists("T1")

def test_unknown_event_is_ignored(client):
    response = client.post("/slack", json={"token": TOKEN, "type": "event_callback", "event": {"type": "reaction_added"}})
    assert response.json() == {"status": "ignored"}

def test_slash_command_list(client):
    response = client.post("/slash", data={
        "token": TOKEN, "team_id": "T1", "user_id": "U1", "command": "/rollbar", "text": "list",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["response_type"] == "ephemeral"
    assert body["text"].startswith("No Rollbar projects have been configured")

def test_slash_command_wrong_token(client):
    response = client.post("/slash", data={
        "token": "forged", "team_id": "T1", "user_id": "U1", "command": "/rollbar", "text": "list",
    })
    assert response.status_code == 403

def test_slash_unsupported_command(client):
    response = client.post("/slash", data={
        "token": TOKEN, "team_id": "T1", "user_id": "U1", "command": "/sentry", "text": "list",
    })
    assert response.status_code == 200
    assert response.content == b""

def test_oauth_saves_user_token(client):
    slack = MagicMock()
    slack.exchange_oauth_code.return_value = OAuthGrant(
        access_token="xoxp-new", user_id="U7", team_id="T9", team_name="Acme"
    )
    app.state.slack = slack

    response = client.get("/oauth", params={"code": "code-123"})

    assert response.status_code == 200
    assert "Thanks!" in response.text
    slack.exchange_oauth_code.assert_called_once_with("code-123")
    assert app.state.store.get_auth_token("T9") == "xoxp-new"

def test_oauth_failure_still_thanks(client):
    slack = MagicMock()
    slack.exchange_oauth_code.side_effect = RemoteError("oauth.access failed: invalid_code")
    app.state.slack = slack

    response = client.get("/oauth", params={"code": "bad"})

    assert response.status_code == 200
    assert app.state.store.get_auth_token("T1") == ""
