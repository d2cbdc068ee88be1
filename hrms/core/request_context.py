from typing import Optional, Dict
from fastapi import Request

HDR_FORWARDED_FOR = "X-Forwarded-For"

def get_request_context(request: Request) -> Dict[str, Optional[str]]:
    """
    Client IP and user-agent used to stamp audit log entries.
    The first X-Forwarded-For hop wins over the socket peer when present.
    """
    forwarded = request.headers.get(HDR_FORWARDED_FOR)
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return {
        "ip_address": ip_address,
        "user_agent": request.headers.get("user-agent"),
    }
