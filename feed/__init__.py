"""Client-side state machines for the news feed UI."""

from .card import ArticleCard, Expansion, Interaction, LoginRequiredError  # noqa: F401
from .client import BackendClient, BackendError  # noqa: F401
from .controller import LOAD_FAILED_MESSAGE, NO_NEWS_MESSAGE, ArticleFeedController  # noqa: F401
from .profile import ProfilePanel, SurveyState  # noqa: F401

__all__ = [
    "ArticleCard",
    "ArticleFeedController",
    "BackendClient",
    "BackendError",
    "Expansion",
    "Interaction",
    "LOAD_FAILED_MESSAGE",
    "LoginRequiredError",
    "NO_NEWS_MESSAGE",
    "ProfilePanel",
    "SurveyState",
]
