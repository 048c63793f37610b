"""
Firebase Configuration

Lazily initialises the firebase_admin app and hands out a Firestore client.
get_db() returns None when no credentials are configured or initialisation
fails; callers raise RuntimeError("Firestore is not available") in that case.
"""

import logging

import firebase_admin
from firebase_admin import credentials, firestore

from config.settings import get_settings


logger = logging.getLogger(__name__)

_db = None


def get_db():
    """
    Return the shared Firestore client, initialising it on first use.

    Returns:
        google.cloud.firestore.Client | None: Client, or None if unavailable.
    """
    global _db
    if _db is not None:
        return _db

    cred_path = get_settings().firebase_credentials
    if not cred_path:
        logger.warning("BILLSPLIT_FIREBASE_CREDENTIALS not set; Firestore disabled")
        return None

    try:
        if not firebase_admin._apps:
            firebase_admin.initialize_app(credentials.Certificate(cred_path))
        _db = firestore.client()
    except (ValueError, OSError) as e:
        logger.error("Failed to initialise Firestore: %s", e)
        return None

    return _db
