"""Pydantic schemas for Slack payloads.

Inbound: Events API envelope, slash command form, oauth.access response.
Outbound: legacy message attachments used by chat.unfurl.
"""

from pydantic import BaseModel, Field
from typing import List, Optional

class SharedLink(BaseModel):
    domain: str = ""
    url: str

class RevokedTokens(BaseModel):
    oauth: List[str] = Field(default_factory=list)
    bot: List[str] = Field(default_factory=list)

class SlackEvent(BaseModel):
    type: str = ""
    # link_shared
    channel: str = ""
    user: str = ""
    message_ts: str = ""
    links: List[SharedLink] = Field(default_factory=list)
    # tokens_revoked
    tokens: RevokedTokens = Field(default_factory=RevokedTokens)

class SlackEventEnvelope(BaseModel):
    token: str = ""
    team_id: str = ""
    api_app_id: str = ""
    type: str = ""
    challenge: str = ""
    event_id: str = ""
    event: SlackEvent = Field(default_factory=SlackEvent)

class SlashCommand(BaseModel):
    token: str = ""
    team_id: str = ""
    user_id: str = ""
    command: str = ""
    text: str = ""

class SlashCommandResponse(BaseModel):
    response_type: str = "ephemeral"
    text: str

class OAuthGrant(BaseModel):
    access_token: str
    user_id: str
    team_id: str
    team_name: str = ""
    scope: str = ""

class AttachmentField(BaseModel):
    title: str
    value: str
    short: bool = True

class Attachment(BaseModel):
    fallback: str
    title: str
    ts: int
    fields: List[AttachmentField] = Field(default_factory=list)
    mrkdwn_in: Optional[List[str]] = None
