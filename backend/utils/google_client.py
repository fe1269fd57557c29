# backend/utils/google_client.py
import httpx
import logging
from dataclasses import dataclass
from config import settings

logger = logging.getLogger(__name__)


class GoogleAuthError(Exception):
    pass


@dataclass
class GoogleIdentity:
    subject: str
    email: str
    name: str


class GoogleClient:
    def __init__(self):
        # Google validates the signature; we check the audience and e-mail flags
        self.tokeninfo_url = settings.GOOGLE_TOKENINFO_URL
        self.client_id = settings.GOOGLE_CLIENT_ID

    async def verify_id_token(self, id_token: str) -> GoogleIdentity:
        # Without a client id any Google-issued token would pass the audience check
        if not self.client_id:
            logger.error("Google sign-in attempted but GOOGLE_CLIENT_ID is not configured")
            raise GoogleAuthError("Google sign-in is not configured")

        async with httpx.AsyncClient(timeout=10) as client:
            try:
                response = await client.get(self.tokeninfo_url, params={"id_token": id_token})
                response.raise_for_status()
                payload = response.json()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error(f"Google tokeninfo error: {e}")
                raise GoogleAuthError("Google token could not be verified") from e

        if payload.get("aud") != self.client_id:
            logger.warning("Google token issued for another client: %s", payload.get("aud"))
            raise GoogleAuthError("Google token audience mismatch")
        if not payload.get("email") or str(payload.get("email_verified")).lower() != "true":
            raise GoogleAuthError("Google account e-mail is not verified")

        return GoogleIdentity(
            subject=payload.get("sub", ""),
            email=payload["email"].strip().lower(),
            name=payload.get("name") or payload["email"],
        )


google_client = GoogleClient()

# FastAPI dependency, overridden in tests
def get_google_client() -> GoogleClient:
    return google_client
