from typing import Optional
from datetime import datetime, timezone
from hrms.core.security import verify_token

def _decode(token: str, token_type: str) -> Optional[dict]:
    payload = verify_token(token)
    if payload is None:
        return None

    # Check token type
    if payload.get("type") != token_type:
        return None

    # Check expiration
    exp = payload.get("exp")
    if exp is None or datetime.now(timezone.utc).timestamp() > exp:
        return None

    return payload

def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate access token"""
    return _decode(token, "access")

def decode_refresh_token(token: str) -> Optional[dict]:
    """Decode and validate refresh token"""
    return _decode(token, "refresh")
