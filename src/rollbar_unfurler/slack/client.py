from typing import Mapping, Optional
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError
from ..config import get_settings
from ..errors import RemoteError
from ..log import get_logger
from ..schemas.slack import Attachment, OAuthGrant
from .payloads import build_unfurl_payload

logger = get_logger("slack_client")

class SlackClientWrapper:
    """
    Thin wrapper over slack_sdk's WebClient. The client carries no token of
    its own: each call authenticates with the token of the team it acts for.
    """

    def __init__(self, client: Optional[WebClient] = None):
        self.client = client or WebClient()

    def post_unfurl(self, token: str, channel: str, ts: str, unfurls: Mapping[str, Attachment]) -> dict:
        """
        Posts chat.unfurl for one message. Returns the Slack response data.
        Raises RemoteError if Slack rejects the call or cannot be reached.
        """
        payload = build_unfurl_payload(token=token, channel=channel, ts=ts, unfurls=unfurls)
        logger.info(f"Posting chat.unfurl (channel={channel},ts={ts})")
        try:
            response = self.client.api_call("chat.unfurl", data=payload)
        except SlackApiError as e:
            logger.error(f"chat.unfurl error: {e.response['error']}")
            raise RemoteError(f"chat.unfurl failed: {e.response['error']}") from e
        except (SlackClientError, OSError) as e:
            raise RemoteError(f"chat.unfurl failed: {e}") from e
        logger.debug(f"chat.unfurl resp: {response.data}")
        return response.data

    def exchange_oauth_code(self, code: str) -> OAuthGrant:
        """
        Trades an OAuth authorization code for a user access token.
        Requires 'links:read' and 'links:write' scopes on the app.
        """
        settings = get_settings()
        logger.info("Posting oauth.access")
        try:
            response = self.client.oauth_access(
                client_id=settings.CLIENT_ID,
                client_secret=settings.CLIENT_SECRET,
                code=code
            )
        except SlackApiError as e:
            logger.error(f"oauth.access reported an error: {e.response['error']}")
            raise RemoteError(f"oauth.access failed: {e.response['error']}") from e
        except (SlackClientError, OSError) as e:
            raise RemoteError(f"oauth.access failed: {e}") from e
        try:
            return OAuthGrant.model_validate(response.data)
        except ValueError as e:
            raise RemoteError(f"Unexpected oauth.access response: {e}") from e
