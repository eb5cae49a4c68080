"""Slack payload builders.

Provides the form body for chat.unfurl and the slash command response.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from rollbar_unfurler.schemas.slack import Attachment, SlashCommandResponse


def serialize_unfurls(unfurls: Mapping[str, Attachment]) -> str:
    """URL -> attachment map as the JSON string chat.unfurl expects."""
    return json.dumps({url: a.model_dump(exclude_none=True) for url, a in unfurls.items()})


def build_unfurl_payload(
    token: str,
    channel: str,
    ts: str,
    unfurls: Mapping[str, Attachment],
) -> Dict[str, str]:
    """
    Form-encoded body for chat.unfurl.
    The token travels in the form, not as a bearer header, since it differs per team.
    """
    return {
        "token": token,
        "channel": channel,
        "ts": ts,
        "unfurls": serialize_unfurls(unfurls),
    }


def build_command_response(text: str) -> Dict[str, Any]:
    return SlashCommandResponse(text=text).model_dump()
