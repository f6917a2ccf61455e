from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fastapi import Depends, HTTPException, status
from config import config

# Server-side callers (e.g. the storefront app proxy) authenticate with a
# Bearer token listed in VALID_TOKENS.
bearer_scheme = HTTPBearer(auto_error=False)

def get_current_client(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)):
    """Validates the Bearer token for every secured endpoint."""
    if (
        credentials is None
        or credentials.scheme.lower() != "bearer"
        or credentials.credentials not in config.valid_tokens
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing Bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    # Returns the token value, which can be used to identify the client if needed
    return credentials.credentials
