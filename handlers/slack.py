# Slack Handlers
# summarize_chat fetches recent channel history and reposts it to the same
# channel; slack_whoami reports the identity behind the bot token.

import logging
import re
import traceback
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional

from slack_sdk.errors import SlackApiError

from handlers.base import best_effort, error_message, optional_str, require_args, require_secret
from src.runtime.deps import Deps
from src.runtime.dispatch import register
from src.runtime.envelope import Invocation, Outcome
from src.runtime.errors import UpstreamError

logger = logging.getLogger(__name__)

TOKEN_SECRET = "SLACK_BOT_TOKEN"
TOKEN_MISSING = f"Slack token not configured. Please set {TOKEN_SECRET}."

DEFAULT_LIMIT = 50
MAX_LIMIT = 200
NO_MESSAGES = "No recent messages found in this channel."

# ASCII digits only; int() rejects superscripts and other Unicode digits
_LIMIT_PREFIX = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ChatSummaryArgs:
    channel_id: Optional[str] = None
    user_id: Optional[str] = None
    text: Optional[str] = None

    @classmethod
    def from_invocation(cls, invocation: Invocation) -> "ChatSummaryArgs":
        return cls(
            channel_id=optional_str(invocation.get("channel_id")),
            user_id=optional_str(invocation.get("user_id")),
            text=optional_str(invocation.get("text")),
        )


def parse_limit(text: Optional[str]) -> int:
    """Message count requested in text, or DEFAULT_LIMIT.

    Only 1..MAX_LIMIT is accepted; anything else (including values above the
    maximum) falls back to the default rather than being clamped.
    """
    if not text:
        return DEFAULT_LIMIT
    match = _LIMIT_PREFIX.match(text.strip())
    if not match:
        return DEFAULT_LIMIT
    value = int(match.group(0))
    if 0 < value <= MAX_LIMIT:
        return value
    return DEFAULT_LIMIT


def format_timestamp(ts: Any) -> str:
    """Slack ts (fractional unix seconds) as local date/time."""
    if not ts:
        return ""
    try:
        return datetime.fromtimestamp(float(ts)).strftime("%c")
    except (TypeError, ValueError, OverflowError, OSError):
        return ""


def format_message(msg: Mapping[str, Any]) -> str:
    user = msg.get("user")
    author = f"<@{user}>" if user else "Unknown User"
    return f"*{author}* [{format_timestamp(msg.get('ts'))}]: {msg.get('text') or ''}"


def build_history_text(messages: List[Mapping[str, Any]]) -> str:
    lines = [format_message(m) for m in messages]
    return f"*Chat History ({len(lines)} messages):*\n\n" + "\n\n".join(lines)


def slack_error_message(exc: BaseException) -> str:
    if isinstance(exc, SlackApiError):
        return f"An API error occurred: {exc.response.get('error', 'unknown_error')}"
    return error_message(exc, "An unknown error occurred while processing messages.")


@register("summarize_chat", category="slack")
def handle_summarize_chat(invocation: Invocation, deps: Deps) -> Outcome:
    """Fetch recent channel messages and post them back to the channel.

    Test Event:
    {
        "action": "summarize_chat",
        "args": {"channel_id": "C0123456", "user_id": "U0123456", "text": "20"},
        "secrets": {"SLACK_BOT_TOKEN": "xoxb-..."}
    }
    """
    args = ChatSummaryArgs.from_invocation(invocation)
    require_args({"channel_id": args.channel_id, "user_id": args.user_id}, ["channel_id", "user_id"])
    token = require_secret(invocation, TOKEN_SECRET, TOKEN_MISSING)

    web = deps.slack_client(token)
    limit = parse_limit(args.text)
    logger.info(f"Fetching {limit} messages from channel: {args.channel_id}")

    try:
        history = web.conversations_history(channel=args.channel_id, limit=limit)
        messages = history.get("messages") or []
        logger.info(f"Fetched {len(messages)} messages from Slack")

        if not messages:
            web.chat_postMessage(channel=args.channel_id, text=NO_MESSAGES)
            return Outcome.success(message=NO_MESSAGES, messages=[])

        post = web.chat_postMessage(
            channel=args.channel_id,
            text=build_history_text(messages),
            unfurl_links=False,
            unfurl_media=False,
        )
    except Exception as e:
        logger.exception(f"Error fetching or posting Slack messages: {e}")
        message = slack_error_message(e)
        details = traceback.format_exc()
        best_effort(
            "error notice to Slack",
            web.chat_postMessage,
            channel=args.channel_id,
            text=f"❌ Error: {message}",
        )
        raise UpstreamError(message, details=details) from e

    ok = bool(post.get("ok"))
    logger.info(f"Message posted successfully: {ok}")
    return Outcome.success(
        message=f"Successfully posted {len(messages)} messages back to Slack channel.",
        channel_id=args.channel_id,
        message_count=len(messages),
        slack_response=ok,
    )


@register("slack_whoami", category="slack")
def handle_slack_whoami(invocation: Invocation, deps: Deps) -> Outcome:
    """Identify the Slack user behind the bot token."""
    token = require_secret(invocation, TOKEN_SECRET, TOKEN_MISSING)
    try:
        auth = deps.slack_client(token).auth_test()
    except Exception as e:
        logger.exception(f"Error getting user info: {e}")
        raise UpstreamError("Failed to get current user information from Slack") from e
    return Outcome.success(user_id=auth.get("user_id"), username=auth.get("user"))
