import json
import logging

import firebase_admin
from firebase_admin import credentials, firestore

from config.settings import settings

logger = logging.getLogger(__name__)

_db = None


def get_db():
    global _db
    if _db:
        return _db

    try:
        # Hosted deployments pass the service account as an env variable
        if settings.FIREBASE_SERVICE_ACCOUNT:
            cred_dict = json.loads(settings.FIREBASE_SERVICE_ACCOUNT)
            cred = credentials.Certificate(cred_dict)
        else:
            cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)

        if not firebase_admin._apps:
            firebase_admin.initialize_app(cred)

        _db = firestore.client()
        return _db

    except Exception as e:
        logger.error("Firebase init failed: %s", e)
        raise RuntimeError(f"Firebase init failed: {e}")
