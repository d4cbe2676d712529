"""
Client for the external user-identity service.

Manual order operations confirm the acting user exists before they mutate
anything. With no service URL configured the check is skipped.
"""
import logging
from typing import Any, Dict

import requests
from django.conf import settings

from apps.core.exceptions import IdentityUnavailable, ValidationError

logger = logging.getLogger(__name__)


class IdentityClient:
    def __init__(self, base_url: str = "", timeout: float = 3.0, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def validate_user(self, user_id) -> Dict[str, Any]:
        if not self.base_url:
            return {"id": user_id, "username": None}

        url = f"{self.base_url}/users/{user_id}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Identity service unreachable for user {user_id}: {e}")
            raise IdentityUnavailable(f"Identity service unreachable: {e}") from e

        if response.status_code == 404:
            raise ValidationError(f"Unknown user: {user_id}")
        if response.status_code != 200:
            logger.error(
                f"Identity service returned {response.status_code} for user {user_id}"
            )
            raise IdentityUnavailable(
                f"Identity service returned status {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise IdentityUnavailable(f"Identity service sent invalid JSON: {e}") from e
        return {"id": data.get("id", user_id), "username": data.get("username")}


_identity_client = None


def get_identity_client():
    global _identity_client
    if _identity_client is None:
        _identity_client = IdentityClient(
            base_url=settings.USER_SERVICE_URL,
            timeout=settings.USER_SERVICE_TIMEOUT,
        )
    return _identity_client
