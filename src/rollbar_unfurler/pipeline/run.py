from typing import Dict, Iterable, Optional
from ..errors import RemoteError
from ..log import get_logger
from ..rendering.unfurl import MAX_STACKTRACE_FRAMES, build_unfurl
from ..rollbar.client import RollbarClient
from ..rollbar.links import match_item_link
from ..schemas.rollbar import Occurrence
from ..schemas.slack import Attachment, SlackEvent
from ..slack.client import SlackClientWrapper
from ..store.credentials import CredentialStore

logger = get_logger("pipeline")

class UnfurlPipeline:
    def __init__(
        self,
        store: CredentialStore,
        rollbar: RollbarClient,
        slack: SlackClientWrapper,
        max_frames: int = MAX_STACKTRACE_FRAMES,
    ):
        self.store = store
        self.rollbar = rollbar
        self.slack = slack
        self.max_frames = max_frames

    def run(self, team_id: str, event: SlackEvent):
        """Background entry point for a link_shared event. Outcomes are only logged."""
        try:
            self.process_links(team_id, event.channel, event.message_ts, [link.url for link in event.links])
        except Exception:
            logger.exception(f"Unfurl pipeline error (team={team_id},channel={event.channel},ts={event.message_ts})")

    def process_links(self, team_id: str, channel: str, message_ts: str, urls: Iterable[str]) -> Optional[Dict[str, Attachment]]:
        """
        Builds a preview for every resolvable link and posts them in a single
        chat.unfurl call. Returns the posted previews by URL, or None if nothing was posted.
        """
        unfurls: Dict[str, Attachment] = {}
        for url in urls:
            attachment = self.unfurl_link(team_id, url)
            if attachment is not None:
                unfurls[url] = attachment

        if not unfurls:
            logger.info(f"No links processed (channel={channel},ts={message_ts})")
            return None

        token = self.store.get_auth_token(team_id)
        if not token:
            logger.warning(f"Couldn't retrieve oAuth token for team {team_id}")
            return None

        try:
            self.slack.post_unfurl(token=token, channel=channel, ts=message_ts, unfurls=unfurls)
        except RemoteError as e:
            logger.error(f"Posting unfurls failed (channel={channel},ts={message_ts}): {e}")
            return None
        return unfurls

    def unfurl_link(self, team_id: str, url: str) -> Optional[Attachment]:
        link = match_item_link(url)
        if link is None:
            logger.info(f"{url} is not a Rollbar item link")
            return None

        token = self.store.get_project_token(team_id, link.project)
        if not token:
            logger.info(f"Project {link.project} isn't configured for team {team_id}")
            return None

        try:
            item = self.rollbar.fetch_item(link.counter, token)
        except RemoteError as e:
            logger.warning(f"error getting data for {url}: {e}")
            return None

        # TODO: cache occurrence data, it does not change once recorded
        occurrence: Optional[Occurrence] = None
        if item.occurrence_id is not None:
            try:
                occurrence = self.rollbar.fetch_occurrence(item.occurrence_id, token)
            except RemoteError as e:
                # Still unfurl the item, just without a stack trace
                logger.warning(f"couldn't fetch occurrence data for {url}: {e}")

        return build_unfurl(item, occurrence, max_frames=self.max_frames)
