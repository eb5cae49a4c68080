"""Slack attachment assembly for Rollbar items.

Builds the chat.unfurl attachment for one item: status, occurrence count,
first/last seen and, when occurrence data is available, a stack trace.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from rollbar_unfurler.schemas.rollbar import Frame, Item, Occurrence
from rollbar_unfurler.schemas.slack import Attachment, AttachmentField

MAX_STACKTRACE_FRAMES = 10
NOT_AVAILABLE = "n/a"


def time_ago(seconds: float) -> str:
    """
    Single-unit relative time: 45 -> "45s ago", 3600 -> "1h ago".
    """
    t = seconds
    if t < 1:
        return "just now"
    if t < 60:
        return f"{t:.0f}s ago"
    t /= 60  # minutes
    if t < 60:
        return f"{t:.0f}m ago"
    t /= 60  # hours
    if t < 24:
        return f"{t:.0f}h ago"
    t /= 24  # days
    return f"{t:.0f}d ago"


def format_timestamp(ts: Optional[int]) -> str:
    """Absolute UTC time like "Jan 2 15:04:05"."""
    if ts is None:
        return NOT_AVAILABLE
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return f"{dt:%b} {dt.day} {dt:%H:%M:%S}"


def _frame_line(frame: Frame) -> str:
    method = frame.method or "<anonymous>"
    name = f"{frame.class_name}.{method}" if frame.class_name else method
    location = frame.filename if frame.lineno is None else f"{frame.filename}:{frame.lineno}"
    return f"at {name} ({location})"


def render_stacktrace(frames: List[Frame], max_frames: int = MAX_STACKTRACE_FRAMES) -> str:
    """
    Most recent call first, capped at max_frames with an elision note.
    Rollbar lists frames oldest first.
    """
    lines = [_frame_line(f) for f in reversed(frames[-max_frames:])]
    if len(frames) > max_frames:
        lines.append(f"(... {len(frames) - max_frames} more frames ...)")
    return "```" + "".join(f"{line}\n" for line in lines) + "```"


def build_unfurl(
    item: Item,
    occurrence: Optional[Occurrence] = None,
    now: Optional[datetime] = None,
    max_frames: int = MAX_STACKTRACE_FRAMES,
) -> Attachment:
    now = now or datetime.now(timezone.utc)

    if item.last_occurrence_timestamp is None:
        last_seen = NOT_AVAILABLE
    else:
        last_seen = time_ago(now.timestamp() - item.last_occurrence_timestamp)

    attachment = Attachment(
        fallback=item.title,
        title=item.title,
        ts=int(now.timestamp()),
        fields=[
            AttachmentField(title="Status", value=item.status),
            AttachmentField(title="Occurrences", value=str(item.total_occurrences)),
            AttachmentField(title="First seen", value=format_timestamp(item.first_occurrence_timestamp)),
            AttachmentField(title="Last seen", value=last_seen),
        ],
    )

    frames = occurrence.frames if occurrence is not None else []
    if frames:
        attachment.fields.append(
            AttachmentField(title="Stack trace", value=render_stacktrace(frames, max_frames), short=False)
        )
        attachment.mrkdwn_in = ["fields"]

    return attachment
