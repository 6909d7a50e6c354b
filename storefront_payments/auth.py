from fastapi import Header, HTTPException, Request
from jose import JWTError, jwt

from storefront_payments.errors import ConfigurationError


def verify_token(request: Request, authorization: str = Header(None)):
    settings = request.app.state.settings
    if not settings.require_auth:
        return None
    if not settings.jwt_secret:
        raise ConfigurationError("Auth secret not configured")

    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError(scheme)
        # platform tokens carry aud="authenticated"; only the signature matters here
        return jwt.decode(
            token, settings.jwt_secret, algorithms=["HS256"], options={"verify_aud": False}
        )
    except (AttributeError, ValueError, JWTError):
        raise HTTPException(status_code=401, detail="Invalid or missing token")
