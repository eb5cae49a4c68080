"""The /rollbar slash command.

Lets a team register, remove and list the Rollbar projects whose links get
unfurled:

    /rollbar set <project url> <project token>
    /rollbar clear <project url>
    /rollbar list

Every outcome, including failures, is a short text reply for the user.
"""

from typing import List, Optional

from ..config import get_settings
from ..errors import StorageError, ValidationError
from ..log import get_logger
from ..rollbar.client import RollbarClient
from ..rollbar.links import match_project_url, project_url
from ..store.credentials import CredentialStore

logger = get_logger("commands")

USAGE = (
    "Usage:\n"
    "`/rollbar set <project url> <project token>` - set read access token for project\n"
    "`/rollbar clear <project url>` - clear access token for project\n"
    "`/rollbar list` - list all projects that I will unfurl\n\n"
    "For example: `/rollbar set {web_url}/MyOrganization/MyProject/ abcdef12345`"
)
INVALID_PROJECT_URL = (
    "Sorry, {url} doesn't look like a Rollbar project URL. It should look like this: "
    "{web_url}/MyOrganization/MyProject/"
)
INVALID_TOKEN = (
    "Sorry, Rollbar reports {token} is not a valid access token. Please copy the _read_ token from "
    "{web_url}/{project}/settings/access_tokens/"
)
TOKEN_ADDED = "Thanks! I will now unfurl links from {web_url}/{project}/items/ for you."
TOKEN_REMOVED = "Done! I will no longer unfurl links from {web_url}/{project}/items/."
GENERAL_ERROR = "An error occurred while executing the command. Please try again!"
NO_PROJECTS = "No Rollbar projects have been configured for your team.\nUse `/rollbar set` to add one."
PROJECT_LIST = "I will unfurl links from the following projects:\n{projects}"


class CommandProcessor:
    def __init__(self, store: CredentialStore, rollbar: RollbarClient, web_url: Optional[str] = None):
        self.store = store
        self.rollbar = rollbar
        self.web_url = (web_url or get_settings().ROLLBAR_WEB_URL).rstrip("/")

    def handle(self, team_id: str, text: str) -> str:
        """Runs one command for a team and returns the reply text. Never raises."""
        parts = text.split()
        command, args = (parts[0].lower(), parts[1:]) if parts else ("", [])
        try:
            if command == "list":
                return self._list(team_id)
            if command == "set":
                return self._set(team_id, args)
            if command == "clear":
                return self._clear(team_id, args)
            raise ValidationError(self._usage())
        except ValidationError as e:
            return str(e)
        except StorageError as e:
            logger.error(f"Command '{command}' failed for team {team_id}: {e}")
            return GENERAL_ERROR

    def _usage(self) -> str:
        return USAGE.format(web_url=self.web_url)

    def _parse_project(self, url: str) -> str:
        project = match_project_url(url, self.web_url)
        if project is None:
            raise ValidationError(INVALID_PROJECT_URL.format(url=url, web_url=self.web_url))
        return project

    def _list(self, team_id: str) -> str:
        projects: List[str] = [project_url(self.web_url, p) for p in self.store.list_projects(team_id)]
        if not projects:
            return NO_PROJECTS
        return PROJECT_LIST.format(projects="\n".join(projects))

    def _set(self, team_id: str, args: List[str]) -> str:
        if len(args) != 2:
            raise ValidationError(self._usage())
        url, token = args
        project = self._parse_project(url)
        if not self.rollbar.validate_token(token):
            raise ValidationError(INVALID_TOKEN.format(token=token, project=project, web_url=self.web_url))
        self.store.save_project_token(team_id, project, token)
        logger.info(f"Saved token for project {project} (team {team_id})")
        return TOKEN_ADDED.format(project=project, web_url=self.web_url)

    def _clear(self, team_id: str, args: List[str]) -> str:
        if len(args) != 1:
            raise ValidationError(self._usage())
        project = self._parse_project(args[0])
        self.store.delete_project_token(team_id, project)
        logger.info(f"Cleared token for project {project} (team {team_id})")
        return TOKEN_REMOVED.format(project=project, web_url=self.web_url)
