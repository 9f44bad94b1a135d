# Google Sheets Handlers
# write_to_sheet is the core action; ensure_sheet and list_sheets cover the
# spreadsheet lookup/creation calls a deployment may wire up.

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from handlers.base import (
    error_message, optional_str, parse_service_account_key, require_args, require_secret
)
from src.runtime.deps import Deps
from src.runtime.dispatch import register
from src.runtime.envelope import Invocation, Outcome
from src.runtime.errors import UpstreamError

logger = logging.getLogger(__name__)

KEY_SECRET = "GOOGLE_SERVICE_ACCOUNT_KEY"
KEY_MISSING = f"Google service account key not configured. Please set {KEY_SECRET}."

DEFAULT_SHEET_TITLE = "Summary Sheet"
SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"


@dataclass(frozen=True)
class SheetWriteArgs:
    sheet_id: Optional[str] = None
    range: Optional[str] = None
    summary: Optional[str] = None

    @classmethod
    def from_invocation(cls, invocation: Invocation) -> "SheetWriteArgs":
        return cls(
            sheet_id=optional_str(invocation.get("sheet_id")),
            range=optional_str(invocation.get("range")),
            summary=optional_str(invocation.get("summary")),
        )


def _credentials(invocation: Invocation) -> Dict[str, Any]:
    return parse_service_account_key(require_secret(invocation, KEY_SECRET, KEY_MISSING))


@register("write_to_sheet", category="sheets")
def handle_write_to_sheet(invocation: Invocation, deps: Deps) -> Outcome:
    """Write a summary value into a spreadsheet range (overwrite, RAW input).

    Test Event:
    {
        "args": {"sheet_id": "1efj3u3z...", "range": "Sheet1!A1", "summary": "Weekly recap"},
        "secrets": {"GOOGLE_SERVICE_ACCOUNT_KEY": "{\"type\": \"service_account\", ...}"}
    }
    """
    args = SheetWriteArgs.from_invocation(invocation)
    require_args({"sheet_id": args.sheet_id, "range": args.range, "summary": args.summary},
                 ["sheet_id", "range", "summary"])
    credentials = _credentials(invocation)

    logger.info(f"Writing summary to sheet={args.sheet_id} range={args.range}")
    try:
        sheets = deps.sheets_service(credentials)
        response = sheets.spreadsheets().values().update(
            spreadsheetId=args.sheet_id,
            range=args.range,
            valueInputOption="RAW",
            body={"values": [[args.summary]]},
        ).execute()
    except Exception as e:
        logger.exception(f"Error writing to Google Sheet: {e}")
        raise UpstreamError(error_message(e, "An unknown error occurred while writing to Google Sheets.")) from e

    return Outcome.success(
        message="Successfully wrote summary to Google Sheet.",
        updatedRange=response.get("updatedRange"),
    )


@register("ensure_sheet", category="sheets")
def handle_ensure_sheet(invocation: Invocation, deps: Deps) -> Outcome:
    """Return the spreadsheet id, creating a new spreadsheet if it cannot be read."""
    sheet_id = optional_str(invocation.get("sheet_id"))
    title = optional_str(invocation.get("title")) or DEFAULT_SHEET_TITLE
    require_args({"sheet_id": sheet_id}, ["sheet_id"])
    credentials = _credentials(invocation)

    try:
        sheets = deps.sheets_service(credentials)
    except Exception as e:
        logger.exception(f"Could not build Sheets client: {e}")
        raise UpstreamError(error_message(e)) from e

    try:
        sheets.spreadsheets().get(spreadsheetId=sheet_id).execute()
        return Outcome.success(spreadsheetId=sheet_id, created=False)
    except Exception as e:
        logger.info(f"Sheet {sheet_id} not readable ({error_message(e)}), creating new sheet: {title}")

    resource = {
        "properties": {"title": title},
        "sheets": [{"properties": {"title": "Sheet1"}}],
    }
    try:
        created = sheets.spreadsheets().create(body=resource).execute()
    except Exception as e:
        logger.exception(f"Error creating Google Sheet: {e}")
        raise UpstreamError(error_message(e)) from e

    new_id = created.get("spreadsheetId") or sheet_id
    logger.info(f"Created new sheet with ID: {new_id}")
    return Outcome.success(spreadsheetId=new_id, created=True)


@register("list_sheets", category="sheets")
def handle_list_sheets(invocation: Invocation, deps: Deps) -> Outcome:
    """List spreadsheets visible to the service account (first 10)."""
    credentials = _credentials(invocation)
    try:
        drive = deps.drive_service(credentials)
        response = drive.files().list(
            q=f"mimeType='{SPREADSHEET_MIME_TYPE}'",
            fields="files(id,name,webViewLink)",
            pageSize=10,
        ).execute()
    except Exception as e:
        logger.exception(f"Error listing sheets: {e}")
        raise UpstreamError(error_message(e)) from e

    return Outcome.success(sheets=[
        {"id": f.get("id"), "name": f.get("name"), "link": f.get("webViewLink")}
        for f in response.get("files", [])
    ])
