import logging
from typing import Optional

from django.http import HttpRequest
from ninja.security import HttpBearer

from .jwt_auth import RequestIdentity, get_identity_from_token

logger = logging.getLogger(__name__)


class JWTAuth(HttpBearer):
    """
    Bearer token authentication for Django Ninja routes.

    Usage:
        router = Router(auth=JWTAuth())

        @router.get("/protected")
        def view(request):
            user_id = request.auth.user_id

    A missing, expired or malformed token makes Ninja answer 401.
    """

    def authenticate(self, request: HttpRequest, token: str) -> Optional[RequestIdentity]:
        identity = get_identity_from_token(token)
        if identity is None:
            logger.warning(f"Rejected bearer token on {request.method} {request.path}")
        return identity
