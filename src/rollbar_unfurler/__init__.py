"""Rollbar Unfurler - A Slack app that previews shared Rollbar item links.

When someone posts a link to a Rollbar item, the app fetches the item's status,
occurrence count and latest stack trace and attaches them to the message.

Components:
- main: FastAPI endpoints (events, slash command, OAuth callback)
- pipeline: link_shared -> chat.unfurl orchestration
- rollbar: link matching and the Rollbar REST client
- rendering: Slack attachment assembly
- slack: Slack API integration and the /rollbar command
- store: per-team token storage (SQLite)
"""
