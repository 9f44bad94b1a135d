# =============================================================================
# Dependency Injection Container
# =============================================================================
# Provides external API clients and configuration to handlers.
# Handlers receive Deps instead of creating their own clients, so tests can
# hand them fakes.
# =============================================================================

import json
import logging
import os
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from slack_sdk import WebClient

logger = logging.getLogger(__name__)

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
DRIVE_READONLY_SCOPE = "https://www.googleapis.com/auth/drive.readonly"

# Secret names the handlers understand
SECRET_NAMES = ("GOOGLE_SERVICE_ACCOUNT_KEY", "SLACK_BOT_TOKEN")


@dataclass
class Deps:
    """
    Dependency injection container for handlers.

    Clients are built per call from the credentials carried by the
    invocation; nothing secret is cached on the container.

    Usage:
        def handle_my_action(inv: Invocation, deps: Deps) -> Outcome:
            client = deps.slack_client(inv.secret("SLACK_BOT_TOKEN"))
            client.chat_postMessage(channel="C123", text="hi")
    """
    region: str = field(default_factory=lambda: os.environ.get("AWS_REGION", "us-east-1"))

    # ==========================================================================
    # External clients
    # ==========================================================================

    def slack_client(self, token: str) -> WebClient:
        """Slack Web API client for a bot token."""
        return WebClient(token=token)

    def google_credentials(self, info: Dict[str, Any], scopes):
        """Service-account credentials from an already parsed key."""
        return service_account.Credentials.from_service_account_info(info, scopes=list(scopes))

    def sheets_service(self, info: Dict[str, Any]):
        """Google Sheets v4 service with read/write scope."""
        credentials = self.google_credentials(info, [SHEETS_SCOPE])
        return build("sheets", "v4", credentials=credentials, cache_discovery=False)

    def drive_service(self, info: Dict[str, Any]):
        """Google Drive v3 service with read-only scope."""
        credentials = self.google_credentials(info, [DRIVE_READONLY_SCOPE])
        return build("drive", "v3", credentials=credentials, cache_discovery=False)

    @cached_property
    def secretsmanager(self):
        """Secrets Manager client."""
        return boto3.client("secretsmanager", region_name=self.region)

    # ==========================================================================
    # Configuration
    # ==========================================================================

    @cached_property
    def config(self) -> Dict[str, Any]:
        """Environment configuration."""
        return {
            "SERVICE_NAME": os.environ.get("SERVICE_NAME", "Google Sheets Writer"),
            "APP_ENV": os.environ.get("APP_ENV", "development"),
            "DEFAULT_ACTION": os.environ.get("DEFAULT_ACTION", "write_to_sheet"),
            "LOG_LEVEL": os.environ.get("LOG_LEVEL", "INFO").upper(),
            "SECRETS_MANAGER_SECRET_ID": os.environ.get("SECRETS_MANAGER_SECRET_ID", ""),
        }

    def _managed_secrets(self) -> Dict[str, str]:
        secret_id = self.config["SECRETS_MANAGER_SECRET_ID"]
        if not secret_id:
            return {}
        try:
            resp = self.secretsmanager.get_secret_value(SecretId=secret_id)
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Could not read secret {secret_id}: {e}")
            return {}
        raw = resp.get("SecretString") or "{}"
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Secret {secret_id} is not a JSON object")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Secret {secret_id} is not a JSON object")
            return {}
        return {k: v for k, v in data.items() if k in SECRET_NAMES and v}

    def resolve_secrets(self) -> Dict[str, str]:
        """
        Secrets configured for this deployment.

        Environment variables win over the Secrets Manager secret named by
        SECRETS_MANAGER_SECRET_ID. Only the names in SECRET_NAMES are returned.
        """
        secrets = self._managed_secrets()
        for name in SECRET_NAMES:
            value = os.environ.get(name)
            if value:
                secrets[name] = value
        logger.info(f"Configured secrets available: {sorted(secrets)}")
        return secrets


def create_deps(region: Optional[str] = None) -> Deps:
    """Create a new Deps instance."""
    return Deps(region=region or os.environ.get("AWS_REGION", "us-east-1"))


_global_deps: Optional[Deps] = None


def get_deps() -> Deps:
    """Get or create global Deps instance."""
    global _global_deps
    if _global_deps is None:
        _global_deps = create_deps()
    return _global_deps
