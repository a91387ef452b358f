from fastapi import Request


def client_address(request: Request) -> str:
    """
    Coarse client identifier: first X-Forwarded-For hop, then X-Real-IP,
    then the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
