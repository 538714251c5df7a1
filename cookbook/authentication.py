from dataclasses import dataclass, field

from firebase_admin import auth
from rest_framework import authentication
from rest_framework import exceptions

from .firebase_admin_client import get_app


@dataclass
class FirebaseUser:
    """Request identity backed by a verified Firebase ID token."""
    uid: str
    claims: dict = field(default_factory=dict)
    is_authenticated: bool = True
    is_anonymous: bool = False

    @property
    def pk(self):
        return self.uid

    def __str__(self):
        return self.uid


class FirebaseAuthentication(authentication.BaseAuthentication):
    """DRF authentication backend validating Firebase ID tokens."""

    def authenticate(self, request):
        """Validate Authorization header token and return (user, auth)."""
        auth_header = request.META.get('HTTP_AUTHORIZATION')
        if not auth_header:
            return None

        id_token = auth_header.split(' ').pop()

        try:
            get_app()
            decoded_token = auth.verify_id_token(id_token)
        except Exception:
            raise exceptions.AuthenticationFailed('Invalid Firebase token')

        uid = decoded_token.get("uid")
        if not uid:
            raise exceptions.AuthenticationFailed('Token carries no uid')
        return (FirebaseUser(uid=uid, claims=decoded_token), id_token)

    def authenticate_header(self, request):
        return 'Bearer'
