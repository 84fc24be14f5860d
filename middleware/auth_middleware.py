from fastapi import Request, HTTPException


async def get_current_user(request: Request):
    """
    Resolve the caller from the Authorization header.

    The session token is verified by the identity provider in front of this
    service; what reaches us is ``Bearer <userId>``.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Not authenticated")

    scheme, _, user_id = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not user_id.strip():
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    return {"userId": user_id.strip()}


def ensure_same_user(current_user: dict, user_id: str):
    if current_user.get("userId") != user_id:
        raise HTTPException(status_code=403, detail="Unauthorized access")
