import json
import logging
import firebase_admin
from firebase_admin import credentials, firestore

from config.settings import Settings

logger = logging.getLogger(__name__)

_db = None

def get_db():
    global _db
    if _db:
        return _db

    try:
        if Settings.FIREBASE_SERVICE_ACCOUNT:
            cred_dict = json.loads(Settings.FIREBASE_SERVICE_ACCOUNT)
            cred = credentials.Certificate(cred_dict)
        else:
            cred = credentials.Certificate(Settings.FIREBASE_CREDENTIALS_PATH)

        if not firebase_admin._apps:
            firebase_admin.initialize_app(cred)

        _db = firestore.client()
        logger.info("Connected to Firestore")
        return _db

    except Exception as e:
        raise RuntimeError(f"Firebase init failed: {e}")
