from fastapi import FastAPI, Request, BackgroundTasks
from fastapi.responses import HTMLResponse, JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from .config import get_settings
from .errors import AuthMismatch, RemoteError, StorageError
from .log import setup_logging, get_logger
from .store.credentials import CredentialStore
from .rollbar.client import RollbarClient
from .slack.client import SlackClientWrapper
from .slack.commands import CommandProcessor
from .slack.payloads import build_command_response
from .slack.verify import verify_token
from .schemas.slack import SlackEventEnvelope, SlackEvent, SlashCommand
from .pipeline.run import UnfurlPipeline
from contextlib import asynccontextmanager

settings = get_settings()
setup_logging()
logger = get_logger("server")

THANKS_PAGE = """<!doctype html>
<html><head><title>Rollbar Unfurler</title></head>
<body><p>Thanks! Rollbar links posted in your team will now be unfurled.
Use <code>/rollbar set</code> to add a project.</p></body></html>
"""

@asynccontextmanager
async def lifespan(app: FastAPI):
    store = CredentialStore(settings.DB_PATH).open()
    rollbar = RollbarClient()
    slack = SlackClientWrapper()
    app.state.store = store
    app.state.slack = slack
    app.state.pipeline = UnfurlPipeline(store, rollbar, slack, max_frames=settings.MAX_STACKTRACE_FRAMES)
    app.state.commands = CommandProcessor(store, rollbar)
    try:
        yield
    finally:
        rollbar.close()
        store.close()

app = FastAPI(lifespan=lifespan)

@app.exception_handler(AuthMismatch)
async def auth_mismatch_handler(request: Request, exc: AuthMismatch):
    return JSONResponse(status_code=403, content={"detail": str(exc)})

@app.post("/slack")
async def slack_events(request: Request, background_tasks: BackgroundTasks):
    # 1. Parse Body
    try:
        envelope = SlackEventEnvelope.model_validate(await request.json())
    except ValueError as e:  # bad JSON or unexpected envelope shape
        logger.warning(f"Invalid JSON received: {e}")
        return JSONResponse(status_code=400, content={"detail": "Invalid JSON"})

    # 2. Verify Token
    verify_token(envelope.token, endpoint="/slack")

    team = envelope.team_id
    logger.info(f"Received event of type {envelope.type}/{envelope.event.type} from team {team}")

    # 3. Handle URL Verification (Handshake)
    if envelope.type == "url_verification":
        return {"challenge": envelope.challenge}

    # 4. Handle Event Callback
    if envelope.type == "event_callback":
        event = envelope.event
        if event.type == "link_shared":
            handle_link_shared(request.app.state.pipeline, team, event, background_tasks)
            return {"status": "ok"}
        if event.type == "tokens_revoked":
            await run_in_threadpool(handle_tokens_revoked, request.app.state.store, team, event)
            return {"status": "ok"}
        if event.type == "app_uninstalled":
            await run_in_threadpool(handle_app_uninstalled, request.app.state.store, team)
            return {"status": "ok"}
        logger.info(f"Unsupported event subtype {event.type}")
        return {"status": "ignored"}

    logger.info(f"Unknown event type {envelope.type}")
    return {"status": "ignored"}

def handle_link_shared(pipeline: UnfurlPipeline, team: str, event: SlackEvent, background_tasks: BackgroundTasks):
    links = "".join(f"\n-- {link.url}" for link in event.links)
    logger.info(f"link shared event (channel={event.channel},ts={event.message_ts}), links:{links}")
    # Respond to Slack right away; the unfurl is posted when the pipeline finishes.
    background_tasks.add_task(pipeline.run, team, event)

def handle_tokens_revoked(store: CredentialStore, team: str, event: SlackEvent):
    for user in event.tokens.oauth:
        logger.info(f"Deleting oAuth token for user {user} (team {team})")
        try:
            store.delete_user_token(team, user)
        except StorageError as e:
            logger.error(f"DeleteUserToken: {e}")

def handle_app_uninstalled(store: CredentialStore, team: str):
    logger.info(f"Deleting team {team}'s data")
    try:
        store.delete_team(team)
    except StorageError as e:
        logger.error(f"DeleteTeam: {e}")

@app.post("/slash")
async def slash_command(request: Request):
    form = await request.form()
    command = SlashCommand.model_validate({k: v for k, v in form.items() if isinstance(v, str)})
    verify_token(command.token, endpoint="/slash")

    logger.info(f"Received slash command (team {command.team_id}, user {command.user_id}): {command.command} {command.text}")
    if command.command != settings.SLASH_COMMAND:
        logger.info(f"Unsupported slack command {command.command}")
        return Response(status_code=200)

    # Commands validate tokens against Rollbar and hit the store; keep both off the event loop.
    text = await run_in_threadpool(request.app.state.commands.handle, command.team_id, command.text)
    return build_command_response(text)

@app.get("/oauth", response_class=HTMLResponse)
def oauth_callback(request: Request, code: str = ""):
    if code:
        exchange_oauth_code(request.app.state.slack, request.app.state.store, code)
    return THANKS_PAGE

def exchange_oauth_code(slack: SlackClientWrapper, store: CredentialStore, code: str) -> bool:
    try:
        grant = slack.exchange_oauth_code(code)
    except RemoteError as e:
        logger.error(f"OAuth exchange failed: {e}")
        return False
    try:
        store.save_user_token(grant.team_id, grant.user_id, grant.access_token)
    except StorageError as e:
        logger.error(f"Could not save auth token: {e}")
        return False
    logger.info(f"Saved auth token for user {grant.user_id}/team {grant.team_id} ({grant.team_name})")
    return True

def main():
    import uvicorn

    logger.info(f"Unfurler listening on {settings.HOST}:{settings.PORT}...")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)

if __name__ == "__main__":
    main()
