"""Magic-link review routing.

A single-pass state machine walked by one customer:

    rating -> feedback  -> done
           \\          \\
            -> platforms -> done

With reputation protection enabled, ratings strictly below the campaign
threshold go to a private feedback step first. The customer may leave that
step for the public platforms explicitly; nothing else skips it. The rating
is set once and never changes afterwards.

Everything here is pure computation over an already-fetched policy. Sessions
are immutable values: every transition returns a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from core.constants import (
    DEFAULT_PLATFORMS,
    DEFAULT_REPUTATION_THRESHOLD,
    FALLBACK_REVIEW_URL,
    MAX_RATING,
    MIN_RATING,
    REVIEW_PLATFORMS,
    OutcomeType,
    RoutingState,
)
from core.exceptions import ValidationError

VALID_TRANSITIONS: dict[RoutingState, tuple[RoutingState, ...]] = {
    RoutingState.RATING: (RoutingState.FEEDBACK, RoutingState.PLATFORMS),
    RoutingState.FEEDBACK: (RoutingState.DONE, RoutingState.PLATFORMS),
    RoutingState.PLATFORMS: (RoutingState.DONE,),
    RoutingState.DONE: (),  # terminal
}

DEFAULT_RATING_PROMPT = "We'd love to hear your feedback!"


def _check_rating(value) -> int:
    # bool is an int subclass; True is not a rating
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}")
    if not MIN_RATING <= value <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {value}")
    return value


@dataclass(frozen=True)
class CampaignPolicy:
    """Routing configuration read from the campaign store."""

    target_platforms: tuple[str, ...] = ()
    reputation_protection_enabled: bool = False
    reputation_threshold: int = DEFAULT_REPUTATION_THRESHOLD
    message_template: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "target_platforms", tuple(self.target_platforms or ()))
        _check_rating(self.reputation_threshold)

    @property
    def platforms(self) -> tuple[str, ...]:
        """Platforms to offer, falling back to the default pair."""
        return self.target_platforms or DEFAULT_PLATFORMS

    def routes_to_feedback(self, rating: int) -> bool:
        return self.reputation_protection_enabled and rating < self.reputation_threshold


@dataclass(frozen=True)
class RoutingOutcome:
    """Terminal event emitted when a session reaches ``done``."""

    type: OutcomeType
    rating: int
    platform: Optional[str] = None
    text: Optional[str] = None

    def as_dict(self) -> dict:
        data = {"type": self.type.value, "rating": self.rating}
        if self.platform is not None:
            data["platform"] = self.platform
        if self.text is not None:
            data["text"] = self.text
        return data


@dataclass(frozen=True)
class RoutingSession:
    """Client-held progress through the flow."""

    state: RoutingState = RoutingState.RATING
    rating: Optional[int] = None
    feedback_text: Optional[str] = None
    outcome: Optional[RoutingOutcome] = field(default=None)

    @property
    def is_done(self) -> bool:
        return self.state == RoutingState.DONE


@dataclass(frozen=True)
class PlatformChoice:
    """A review platform offered on the platforms step."""

    id: str
    label: str
    review_url: str


class ReviewRouter:
    """Applies customer actions to a routing session under a campaign policy."""

    def __init__(self, policy: CampaignPolicy):
        self.policy = policy

    def start(self) -> RoutingSession:
        return RoutingSession()

    def _move(self, session: RoutingSession, target: RoutingState, **changes) -> RoutingSession:
        if target not in VALID_TRANSITIONS[session.state]:
            raise ValidationError(
                f"Cannot go from '{session.state.value}' to '{target.value}'"
            )
        return replace(session, state=target, **changes)

    def _expect(self, session: RoutingSession, state: RoutingState, action: str) -> None:
        if session.state != state:
            raise ValidationError(
                f"'{action}' is only allowed in the '{state.value}' step "
                f"(current step: '{session.state.value}')"
            )

    # ─── Transitions ───────────────────────────────────────

    def rate(self, session: RoutingSession, rating: int) -> RoutingSession:
        """Record the satisfaction rating and pick the next step."""
        self._expect(session, RoutingState.RATING, "rate")
        rating = _check_rating(rating)
        if self.policy.routes_to_feedback(rating):
            return self._move(session, RoutingState.FEEDBACK, rating=rating)
        return self._move(session, RoutingState.PLATFORMS, rating=rating)

    def submit_feedback(self, session: RoutingSession, text: str) -> RoutingSession:
        """Capture private feedback and finish."""
        self._expect(session, RoutingState.FEEDBACK, "submit_feedback")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Feedback text is required")
        text = text.strip()
        outcome = RoutingOutcome(type=OutcomeType.FEEDBACK, rating=session.rating, text=text)
        return self._move(session, RoutingState.DONE, feedback_text=text, outcome=outcome)

    def request_public_review(self, session: RoutingSession) -> RoutingSession:
        """Customer opts out of private feedback; the rating is kept."""
        self._expect(session, RoutingState.FEEDBACK, "public_review")
        return self._move(session, RoutingState.PLATFORMS)

    def choose_platform(self, session: RoutingSession, platform: str) -> RoutingSession:
        """Customer picked a platform to review on."""
        self._expect(session, RoutingState.PLATFORMS, "choose_platform")
        if platform not in self.policy.platforms:
            raise ValidationError(f"Platform '{platform}' is not offered by this campaign")
        outcome = RoutingOutcome(
            type=OutcomeType.PLATFORM_REFERRAL, rating=session.rating, platform=platform
        )
        return self._move(session, RoutingState.DONE, outcome=outcome)

    def decline(self, session: RoutingSession) -> RoutingSession:
        """Customer chose "maybe later"."""
        self._expect(session, RoutingState.PLATFORMS, "decline")
        outcome = RoutingOutcome(type=OutcomeType.DECLINED, rating=session.rating)
        return self._move(session, RoutingState.DONE, outcome=outcome)

    # ─── Presentation ──────────────────────────────────────

    def platform_choices(self) -> list[PlatformChoice]:
        choices = []
        for platform_id in self.policy.platforms:
            known = REVIEW_PLATFORMS.get(platform_id, {})
            choices.append(PlatformChoice(
                id=platform_id,
                label=known.get("label") or platform_id,
                review_url=known.get("review_url") or FALLBACK_REVIEW_URL,
            ))
        return choices

    def review_url(self, platform: str) -> str:
        for choice in self.platform_choices():
            if choice.id == platform:
                return choice.review_url
        return FALLBACK_REVIEW_URL

    def step_copy(self, session: RoutingSession) -> dict[str, str]:
        """Title and description shown for the session's current step."""
        if session.state == RoutingState.RATING:
            return {
                "title": "How was your experience?",
                "description": self.policy.message_template or DEFAULT_RATING_PROMPT,
            }
        if session.state == RoutingState.FEEDBACK:
            return {
                "title": "We're sorry to hear that",
                "description": "Please share your feedback so we can improve. "
                               "Your response goes directly to our team.",
            }
        if session.state == RoutingState.PLATFORMS:
            return {
                "title": "Great!" if session.rating and session.rating >= 4 else "Thank you!",
                "description": "Would you mind sharing your experience on one of these platforms?",
            }
        return {"title": "Thank you!", "description": self.closing_message(session)}

    def closing_message(self, session: RoutingSession) -> str:
        """Apology for any visit the rating sent through feedback, even after an override."""
        if session.rating is not None and self.policy.routes_to_feedback(session.rating):
            return ("Your feedback has been sent to our team. "
                    "We'll work on improving your experience.")
        return "Your review means a lot to us. Thank you for taking the time!"
