"""Constants and enums for the reputation engine."""

from enum import Enum


class CampaignStatus(str, Enum):
    """Campaign lifecycle status."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class CampaignType(str, Enum):
    """Channel a campaign is distributed through."""

    EMAIL = "email"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    MAGIC_LINK = "magic_link"
    QR_CODE = "qr_code"


class RoutingState(str, Enum):
    """Magic-link review routing steps."""

    RATING = "rating"
    FEEDBACK = "feedback"
    PLATFORMS = "platforms"
    DONE = "done"


class OutcomeType(str, Enum):
    """Terminal routing outcome."""

    FEEDBACK = "feedback"
    PLATFORM_REFERRAL = "platform_referral"
    DECLINED = "declined"


class IntegrationType(str, Enum):
    """Third-party integrations a tenant can store credentials for."""

    SLACK = "slack"
    GMAIL = "gmail"
    OUTLOOK = "outlook"
    TEAMS = "teams"
    LIVE_AGENT = "live_agent"
    ZAPIER = "zapier"
    HUBSPOT = "hubspot"
    SALESFORCE = "salesforce"


MIN_RATING = 1
MAX_RATING = 5
DEFAULT_REPUTATION_THRESHOLD = 3
DEFAULT_PLATFORMS = ("google", "tripadvisor")
FALLBACK_REVIEW_URL = "#"

# Known review platforms: display label and review submission URL (when known)
REVIEW_PLATFORMS: dict[str, dict] = {
    "google": {"label": "Google", "review_url": "https://search.google.com/local/writereview"},
    "tripadvisor": {"label": "TripAdvisor", "review_url": None},
    "g2": {"label": "G2", "review_url": "https://www.g2.com/products"},
    "capterra": {"label": "Capterra", "review_url": "https://www.capterra.com"},
    "trustpilot": {"label": "Trustpilot", "review_url": "https://www.trustpilot.com"},
    "appstore": {"label": "App Store", "review_url": None},
    "playstore": {"label": "Play Store", "review_url": None},
}


class RoutingAction(str, Enum):
    """Customer actions accepted by the magic-link flow."""

    RATE = "rate"
    SUBMIT_FEEDBACK = "submit_feedback"
    PUBLIC_REVIEW = "public_review"
    CHOOSE_PLATFORM = "choose_platform"
    DECLINE = "decline"
