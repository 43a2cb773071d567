"""Signed, client-held routing sessions.

After each step the session is handed back to the client as an HS256 JWT
bound to the campaign and visit. A tampered, expired or foreign token is
rejected, so a client cannot jump past the feedback step by editing its own
state. The only per-visit state on the server is the locked rating
(``OutcomeSink.lock_rating``), which stops an earlier rating-step token from
being replayed with a different rating.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

import jwt

from core.constants import RoutingState
from core.exceptions import ConfigurationError, ValidationError
from services.review_router import RoutingSession

ALGORITHM = "HS256"
TOKEN_TYPE = "routing_session"


class RoutingSessionCodec:
    """Encode and decode routing sessions as signed tokens."""

    def __init__(self, secret_key: str, ttl_minutes: int = 120):
        if not secret_key:
            raise ConfigurationError("SECRET_KEY is required to sign routing sessions")
        self.secret_key = secret_key
        self.ttl = timedelta(minutes=ttl_minutes)

    @staticmethod
    def new_visit_id() -> str:
        return str(uuid4())

    def encode(self, campaign_id: str, visit_id: str, session: RoutingSession) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "typ": TOKEN_TYPE,
            "cid": campaign_id,
            "vid": visit_id,
            "st": session.state.value,
            "r": session.rating,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)

    def decode(self, token: str, campaign_id: str) -> tuple[str, RoutingSession]:
        """Return ``(visit_id, session)`` for a token issued for this campaign.

        Raises:
            ValidationError: If the token is invalid, expired, or belongs to
                another campaign
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise ValidationError("Routing session has expired, please reopen the link")
        except jwt.InvalidTokenError:
            raise ValidationError("Invalid routing session")

        visit_id = payload.get("vid")
        if payload.get("typ") != TOKEN_TYPE or payload.get("cid") != campaign_id or not visit_id:
            raise ValidationError("Invalid routing session")

        try:
            state = RoutingState(payload.get("st"))
        except ValueError:
            raise ValidationError("Invalid routing session")

        rating: Optional[int] = payload.get("r")
        return visit_id, RoutingSession(state=state, rating=rating)
