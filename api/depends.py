from fastapi import Depends
from services.cache import get_valkey_backend
from auth.security import get_current_client

# --- DEPENDENCY INJECTION SETUP ---
CLIENT_AUTH = Depends(get_current_client)
VALKEY_BACKEND = Depends(get_valkey_backend)
