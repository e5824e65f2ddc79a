"""Firebase app bootstrap from service-account values in the environment."""
from __future__ import annotations

import logging
import os

import firebase_admin
from firebase_admin import credentials

from notifier.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_ENV: dict[str, str] = {
    "project_id": "FIREBASE_PROJECT_ID",
    "client_email": "FIREBASE_CLIENT_EMAIL",
    "private_key": "FIREBASE_PRIVATE_KEY",
}


def load_credentials(env_names: dict[str, str] | None = None) -> dict[str, str]:
    """Read service-account values; raises ConfigurationError when any is missing."""
    names = {**DEFAULT_CREDENTIALS_ENV, **(env_names or {})}
    values = {key: os.environ.get(var, "").strip() for key, var in names.items()}
    missing = [names[key] for key, value in values.items() if not value]
    if missing:
        raise ConfigurationError(f"missing Firebase environment variables: {', '.join(missing)}")
    # Keys pasted into .env files carry literal "\n" sequences.
    values["private_key"] = values["private_key"].replace("\\n", "\n")
    return values


def init_app(channel_config: dict | None = None) -> firebase_admin.App:
    """Initialize the default Firebase app once and return it."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    channel_config = channel_config or {}
    values = load_credentials(channel_config.get("credentials_env"))
    try:
        cred = credentials.Certificate(
            {
                "type": "service_account",
                "project_id": values["project_id"],
                "client_email": values["client_email"],
                "private_key": values["private_key"],
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        )
    except ValueError as e:
        raise ConfigurationError(f"invalid Firebase service account: {e}") from e
    options = {"projectId": values["project_id"]}
    http_timeout = channel_config.get("http_timeout")
    if http_timeout:
        options["httpTimeout"] = float(http_timeout)
    app = firebase_admin.initialize_app(cred, options)
    logger.info("Firebase app initialized for project %s", values["project_id"])
    return app
