# Handlers package
# Importing the modules registers their actions with the dispatcher.
#
# Actions:
#   sheets: write_to_sheet, ensure_sheet, list_sheets
#   slack:  summarize_chat, slack_whoami

from handlers import sheets, slack

__all__ = ["sheets", "slack"]
