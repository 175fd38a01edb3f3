from __future__ import annotations
"""Authentication options and boto3 session construction."""
import logging
from pathlib import Path
from typing import Callable

import boto3
import botocore.session
from botocore.exceptions import BotoCoreError
from dotenv import find_dotenv, load_dotenv

from .models import AuthSelection
from .profiles import ConnectionProfile


LOGGER = logging.getLogger(__name__)

AUTH_DEFAULT = "Default"
AUTH_ENVIRONMENT = "Environment Variables"
AUTH_PROFILE = "Profile"
AUTH_SSO = "SSO"
AUTH_SAVED = "Saved connection"
AUTH_OPTIONS = (AUTH_DEFAULT, AUTH_ENVIRONMENT, AUTH_PROFILE, AUTH_SSO, AUTH_SAVED)


class AuthError(RuntimeError):
    """Raised when an authentication choice cannot be turned into a session."""


class AuthResolver:
    """Discovers local credentials and builds sessions from an :class:`AuthSelection`."""

    def __init__(
        self,
        *,
        session_factory: Callable[..., object] | None = None,
        config_loader: Callable[[], dict] | None = None,
        dotenv_loader: Callable[..., bool] | None = None,
        dotenv_path: str | Path | None = None,
    ):
        self._session_factory = session_factory or boto3.session.Session
        self._config_loader = config_loader or _load_full_config
        self._dotenv_loader = dotenv_loader or load_dotenv
        self._dotenv_path = dotenv_path

    def list_profiles(self) -> list[str]:
        """Return every profile named in the AWS config and credentials files."""

        return sorted(self._profiles())

    def list_sso_profiles(self) -> list[str]:
        """Return the profiles that authenticate through IAM Identity Center."""

        return sorted(
            name
            for name, config in self._profiles().items()
            if isinstance(config, dict) and (config.get("sso_session") or config.get("sso_start_url"))
        )

    def create_session(self, selection: AuthSelection):
        method = selection.method
        LOGGER.debug("Creating session using '%s' authentication", method)
        if method == AUTH_DEFAULT:
            return self._session_factory()
        if method == AUTH_ENVIRONMENT:
            dotenv_path = self._dotenv_path or find_dotenv(usecwd=True)
            if not dotenv_path or not self._dotenv_loader(dotenv_path=dotenv_path, override=True):
                LOGGER.debug("No .env file found; using the current environment only")
            return self._session_factory()
        if method in (AUTH_PROFILE, AUTH_SSO):
            if not selection.profile_name:
                raise AuthError(f"{method} authentication needs a profile name")
            return self._session_factory(profile_name=selection.profile_name)
        if method == AUTH_SAVED:
            if not selection.access_key or not selection.secret_key:
                raise AuthError("The saved connection is missing its access key or secret")
            return self._session_factory(
                aws_access_key_id=selection.access_key,
                aws_secret_access_key=selection.secret_key,
                region_name=selection.region_name,
            )
        raise AuthError(f"Unknown authentication option '{method}'")

    def _profiles(self) -> dict:
        profiles = self._config_loader().get("profiles", {})
        return profiles if isinstance(profiles, dict) else {}


def selection_for_connection(profile: ConnectionProfile) -> AuthSelection:
    return AuthSelection(
        method=AUTH_SAVED,
        profile_name=profile.name,
        endpoint_url=profile.endpoint_url or None,
        access_key=profile.access_key,
        secret_key=profile.secret_key,
        region_name=profile.region or None,
    )


def _load_full_config() -> dict:
    try:
        return botocore.session.get_session().full_config
    except BotoCoreError:
        LOGGER.debug("Unable to read the AWS config files", exc_info=True)
        return {}
