"""Lazy Firebase Admin app for token checks and the Firestore store."""

import logging
import os

import firebase_admin
from django.conf import settings
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

_app = None


def get_app():
    """
    Lazily initialise the Firebase Admin app.
    Returns None if credentials are missing or invalid.
    """
    global _app
    if _app:
        return _app
    if firebase_admin._apps:
        _app = firebase_admin.get_app()
        return _app

    cred_path = settings.FIREBASE_SERVICE_ACCOUNT_FILE
    if not cred_path or not os.path.exists(cred_path):
        logger.warning("FIREBASE_SERVICE_ACCOUNT_FILE not found; Firebase features are disabled.")
        return None
    try:
        _app = firebase_admin.initialize_app(credentials.Certificate(cred_path))
    except (ValueError, OSError) as e:
        logger.error("Failed to initialize Firebase: %s", e)
        return None
    return _app


def get_firestore_client():
    """Firestore client for the configured app, or None without one."""
    app = get_app()
    if not app:
        return None
    return firestore.client(app)
