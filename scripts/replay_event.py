import httpx
import json
import time

# Sends a link_shared event to a running server. Requests are checked against
# UNFURLER_VERIFICATION_TOKEN, so the same value is read from settings here.

from rollbar_unfurler.config import get_settings

settings = get_settings()
URL = f"http://localhost:{settings.PORT}/slack"

def send_event(team_id: str, channel: str, link: str):
    timestamp = str(int(time.time()))
    payload = {
        "token": settings.VERIFICATION_TOKEN,
        "team_id": team_id,
        "type": "event_callback",
        "event": {
            "type": "link_shared",
            "channel": channel,
            "user": "U12345",
            "message_ts": f"{timestamp}.000100",
            "links": [{"domain": "rollbar.com", "url": link}],
        },
    }

    with httpx.Client() as client:
        print(f"Sending event to {URL}...")
        resp = client.post(URL, content=json.dumps(payload), headers={"Content-Type": "application/json"})
        print(f"Status: {resp.status_code}")
        print(f"Response: {resp.text}")

if __name__ == "__main__":
    team = input("Team ID (default: T12345): ") or "T12345"
    channel = input("Channel ID (default: C12345): ") or "C12345"
    link = input("Rollbar item link: ") or "https://rollbar.com/MyOrganization/MyProject/items/1/"
    send_event(team, channel, link)
