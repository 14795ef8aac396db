"""Per-article presentation state: reactions, expansion and chat toggle."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from gateway.models.domain import NO_DESCRIPTION, PLACEHOLDER_IMAGE, Article
from gateway.services.content import ContentFetchError
from gateway.utils.logging import get_logger

from .client import BackendError

logger = get_logger(__name__)

FULL_CONTENT_FAILED = "Failed to load full article content."
LIKE_LOGIN_PROMPT = "Please log in to like articles"
DISLIKE_LOGIN_PROMPT = "Please log in to dislike articles"
CHAT_LOGIN_PROMPT = "Please log in to chat about articles"

ContentLoader = Callable[[str], Awaitable[str]]
Callback = Callable[[], None]


class Interaction(str, Enum):
    NONE = "none"
    LIKED = "liked"
    DISLIKED = "disliked"


class Expansion(str, Enum):
    COLLAPSED = "collapsed"
    EXPANDING = "expanding"
    EXPANDED = "expanded"


class LoginRequiredError(Exception):
    """Raised for interactions that need a signed-in user; carries the prompt."""

    def __init__(self, prompt: str):
        super().__init__(prompt)
        self.prompt = prompt


def time_ago(published_at: datetime, now: Optional[datetime] = None) -> str:
    current = now or datetime.now(timezone.utc)
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    minutes = int((current - published_at).total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    return "Just now"


class ArticleCard:
    """Local, ephemeral state for one rendered article.

    Like/dislike counters are display-only; nothing is written back to the
    store. Each card is independent of every other card.
    """

    def __init__(
        self,
        article: Article,
        *,
        is_logged_in: bool,
        content_loader: Optional[ContentLoader] = None,
        on_like: Optional[Callback] = None,
        on_dislike: Optional[Callback] = None,
        on_chat: Optional[Callback] = None,
    ) -> None:
        self.article = article
        self.is_logged_in = is_logged_in
        self._content_loader = content_loader
        self._on_like = on_like
        self._on_dislike = on_dislike
        self._on_chat = on_chat

        self.likes = article.likes or 0
        self.dislikes = article.dislikes or 0
        self.interaction = Interaction.NONE
        self.expansion = Expansion.COLLAPSED
        self.full_content: Optional[str] = None
        self.show_chat = False
        self._image_failed = False

    @property
    def key(self) -> str:
        return self.article.url

    @property
    def description(self) -> str:
        return self.article.description or NO_DESCRIPTION

    @property
    def image_src(self) -> str:
        if self._image_failed:
            return PLACEHOLDER_IMAGE
        return self.article.image_url or PLACEHOLDER_IMAGE

    def on_image_error(self) -> None:
        logger.debug("card.image.failed", extra={"url": self.article.url, "image": self.article.image_url})
        self._image_failed = True

    def _require_login(self, prompt: str) -> None:
        if not self.is_logged_in:
            raise LoginRequiredError(prompt)

    def like(self) -> None:
        self._require_login(LIKE_LOGIN_PROMPT)
        likes, dislikes = self.likes, self.dislikes
        if self.interaction is Interaction.LIKED:
            likes -= 1
            interaction = Interaction.NONE
        else:
            if self.interaction is Interaction.DISLIKED:
                dislikes -= 1
            likes += 1
            interaction = Interaction.LIKED
        self.likes, self.dislikes, self.interaction = likes, dislikes, interaction
        if self._on_like:
            self._on_like()

    def dislike(self) -> None:
        self._require_login(DISLIKE_LOGIN_PROMPT)
        likes, dislikes = self.likes, self.dislikes
        if self.interaction is Interaction.DISLIKED:
            dislikes -= 1
            interaction = Interaction.NONE
        else:
            if self.interaction is Interaction.LIKED:
                likes -= 1
            dislikes += 1
            interaction = Interaction.DISLIKED
        self.likes, self.dislikes, self.interaction = likes, dislikes, interaction
        if self._on_dislike:
            self._on_dislike()

    def open_chat(self) -> None:
        self._require_login(CHAT_LOGIN_PROMPT)
        self.show_chat = True
        if self._on_chat:
            self._on_chat()

    def close_chat(self) -> None:
        self.show_chat = False

    async def expand(self) -> None:
        """Expand a collapsed card and fetch the full text for inline display.

        A failed fetch leaves the card expanded with a placeholder message.
        """
        if self.expansion is not Expansion.COLLAPSED:
            return
        self.expansion = Expansion.EXPANDING
        try:
            if self._content_loader is None:
                raise ContentFetchError("no content loader configured")
            self.full_content = await self._content_loader(self.article.url)
        except (BackendError, ContentFetchError) as exc:
            logger.warning("card.content.failed", extra={"url": self.article.url, "error": str(exc)})
            self.full_content = FULL_CONTENT_FAILED
        finally:
            self.expansion = Expansion.EXPANDED

    def collapse(self) -> None:
        self.expansion = Expansion.COLLAPSED
        self.full_content = None
