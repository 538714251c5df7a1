from unittest.mock import patch, MagicMock
from django.test import SimpleTestCase, override_settings

import cookbook.firebase_admin_client as client


@patch("firebase_admin._apps", {})
class FirebaseAdminClientTests(SimpleTestCase):

    def tearDown(self):
        client._app = None

    @override_settings(FIREBASE_SERVICE_ACCOUNT_FILE=None)
    def test_get_app_returns_none_without_credentials(self):
        with patch("firebase_admin.initialize_app") as init_mock:
            with self.assertLogs("cookbook.firebase_admin_client", level="WARNING"):
                self.assertIsNone(client.get_app())
            init_mock.assert_not_called()

    @override_settings(FIREBASE_SERVICE_ACCOUNT_FILE="/missing/file")
    def test_get_app_setting_points_at_missing_file(self):
        with patch("os.path.exists", return_value=False):
            self.assertIsNone(client.get_app())

    @override_settings(FIREBASE_SERVICE_ACCOUNT_FILE="/works.json")
    def test_get_app_initializes_once_when_valid(self):
        cred_mock = MagicMock()
        init_mock = MagicMock(return_value="APPX")

        with patch("os.path.exists", return_value=True), \
             patch("firebase_admin.credentials.Certificate", return_value=cred_mock), \
             patch("firebase_admin.initialize_app", init_mock):
            self.assertEqual(client.get_app(), "APPX")
            self.assertEqual(client.get_app(), "APPX")
            init_mock.assert_called_once_with(cred_mock)

    @override_settings(FIREBASE_SERVICE_ACCOUNT_FILE="/bad.json")
    def test_get_app_initialization_failure_is_logged(self):
        with patch("os.path.exists", return_value=True), \
             patch("firebase_admin.credentials.Certificate", side_effect=ValueError("bad")):
            with self.assertLogs("cookbook.firebase_admin_client", level="ERROR"):
                self.assertIsNone(client.get_app())

    def test_get_app_reuses_existing_app(self):
        with patch("firebase_admin._apps", {"[DEFAULT]": "existing"}), \
             patch("firebase_admin.get_app", return_value="EXISTING"):
            self.assertEqual(client.get_app(), "EXISTING")

    def test_firestore_client_needs_an_app(self):
        with patch("cookbook.firebase_admin_client.get_app", return_value=None), \
             patch("cookbook.firebase_admin_client.firestore.client") as build:
            self.assertIsNone(client.get_firestore_client())
            build.assert_not_called()

    def test_firestore_client_built_from_app(self):
        with patch("cookbook.firebase_admin_client.get_app", return_value="APP"), \
             patch("cookbook.firebase_admin_client.firestore.client", return_value="DB") as build:
            self.assertEqual(client.get_firestore_client(), "DB")
            build.assert_called_once_with("APP")
