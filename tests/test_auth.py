import unittest

from s3_manager.auth import (
    AUTH_DEFAULT,
    AUTH_ENVIRONMENT,
    AUTH_PROFILE,
    AUTH_SAVED,
    AUTH_SSO,
    AuthError,
    AuthResolver,
    selection_for_connection,
)
from s3_manager.models import AuthSelection
from s3_manager.profiles import ConnectionProfile


class FakeSession:
    def __init__(self, **kwargs):
        self.kwargs = kwargs


FULL_CONFIG = {
    "profiles": {
        "default": {"region": "us-east-1"},
        "dev": {"aws_access_key_id": "a"},
        "corp-admin": {"sso_session": "corp", "sso_account_id": "123"},
        "legacy-sso": {"sso_start_url": "https://corp.awsapps.com/start"},
    },
    "sso_sessions": {"corp": {"sso_start_url": "https://corp.awsapps.com/start"}},
}


class AuthResolverTests(unittest.TestCase):
    def setUp(self):
        self.dotenv_calls = []

        def fake_dotenv(**kwargs):
            self.dotenv_calls.append(kwargs)
            return False

        self.resolver = AuthResolver(
            session_factory=FakeSession,
            config_loader=lambda: FULL_CONFIG,
            dotenv_loader=fake_dotenv,
            dotenv_path="/tmp/project.env",
        )

    def test_lists_all_profiles(self):
        self.assertEqual(["corp-admin", "default", "dev", "legacy-sso"], self.resolver.list_profiles())

    def test_lists_only_sso_profiles(self):
        self.assertEqual(["corp-admin", "legacy-sso"], self.resolver.list_sso_profiles())

    def test_missing_config_yields_no_profiles(self):
        resolver = AuthResolver(config_loader=lambda: {})

        self.assertEqual([], resolver.list_profiles())
        self.assertEqual([], resolver.list_sso_profiles())

    def test_default_uses_credential_chain(self):
        session = self.resolver.create_session(AuthSelection(method=AUTH_DEFAULT))

        self.assertEqual({}, session.kwargs)
        self.assertEqual([], self.dotenv_calls)

    def test_environment_loads_dotenv_first(self):
        session = self.resolver.create_session(AuthSelection(method=AUTH_ENVIRONMENT))

        self.assertEqual({}, session.kwargs)
        self.assertEqual([{"dotenv_path": "/tmp/project.env", "override": True}], self.dotenv_calls)

    def test_profile_and_sso_pass_profile_name(self):
        for method in (AUTH_PROFILE, AUTH_SSO):
            with self.subTest(method=method):
                session = self.resolver.create_session(AuthSelection(method=method, profile_name="corp-admin"))

                self.assertEqual({"profile_name": "corp-admin"}, session.kwargs)

    def test_profile_requires_name(self):
        with self.assertRaises(AuthError):
            self.resolver.create_session(AuthSelection(method=AUTH_PROFILE))

    def test_saved_connection_uses_static_keys(self):
        profile = ConnectionProfile(
            name="minio",
            endpoint_url="http://localhost:9000",
            access_key="minioadmin",
            secret_key="secret",
            region="us-west-2",
        )
        selection = selection_for_connection(profile)

        session = self.resolver.create_session(selection)

        self.assertEqual(AUTH_SAVED, selection.method)
        self.assertEqual("http://localhost:9000", selection.endpoint_url)
        self.assertEqual(
            {
                "aws_access_key_id": "minioadmin",
                "aws_secret_access_key": "secret",
                "region_name": "us-west-2",
            },
            session.kwargs,
        )

    def test_saved_connection_requires_secret(self):
        with self.assertRaises(AuthError):
            self.resolver.create_session(AuthSelection(method=AUTH_SAVED, access_key="a"))

    def test_unknown_method_is_rejected(self):
        with self.assertRaises(AuthError):
            self.resolver.create_session(AuthSelection(method="Carrier pigeon"))


if __name__ == "__main__":
    unittest.main()
