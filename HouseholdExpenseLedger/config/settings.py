import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from the app directory or the repository root
env_path = Path(__file__).parent.parent / '.env'
if not env_path.exists():
    env_path = Path(__file__).parent.parent.parent / '.env'
load_dotenv(env_path)


class Settings:
    # "firestore" for the Firebase-backed store, "memory" for local runs
    EXPENSE_STORE = os.environ.get('EXPENSE_STORE', 'firestore').lower()

    # Service account JSON as a string (Render / production)
    FIREBASE_SERVICE_ACCOUNT = os.environ.get('FIREBASE_SERVICE_ACCOUNT')
    # Local fallback
    FIREBASE_CREDENTIALS_PATH = os.environ.get(
        'FIREBASE_CREDENTIALS_PATH', 'config/serviceAccountKey.json'
    )

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
