from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from sqlalchemy.orm import Session

from gateway.db.models import UserAccount
from gateway.models.domain import Account, Article, InterestPoint, SurveyQuestion
from gateway.services.content import ContentFetchError, fetch_article_content
from gateway.services.gateway import ContentGateway
from gateway.services.identity import (
    DuplicateAccountError,
    InvalidCredentialsError,
    WeakPasswordError,
    resolve_token,
    sign_in,
    sign_up,
    update_profile,
)
from gateway.settings import get_settings
from gateway.tasks.populate import run_population

from .chat_service import ChatService, ChatServiceError
from .database import session_dependency
from .models import (
    ArticleContent,
    ChatRequest,
    ChatResponse,
    PopulateSummary,
    ProfileUpdate,
    SignInRequest,
    SignUpRequest,
    SurveyAck,
    SurveyUpdate,
    TokenResponse,
)
from .repositories import (
    SurveyCooldownError,
    interest_trends,
    submit_survey,
    update_survey_response,
)

router = APIRouter(prefix="/api")

SessionDep = Annotated[Session, Depends(session_dependency)]


def get_gateway(request: Request) -> ContentGateway:
    return request.app.state.gateway


def get_chat_service(request: Request) -> ChatService:
    service = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Chat assistant is not configured.")
    return service


def current_account(
    session: SessionDep,
    authorization: Annotated[str | None, Header()] = None,
) -> UserAccount:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Please log in to continue.")
    try:
        return resolve_token(session, token.strip())
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


GatewayDep = Annotated[ContentGateway, Depends(get_gateway)]
AccountDep = Annotated[UserAccount, Depends(current_account)]


@router.get("/news", response_model=list[Article])
def list_news_route(
    gateway: GatewayDep,
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> list[Article]:
    return gateway.fetch_cached_articles(offset, limit)


@router.post("/news/populate", response_model=PopulateSummary)
def populate_news_route(gateway: GatewayDep) -> PopulateSummary:
    counts = run_population(gateway, get_settings().populate_targets)
    return PopulateSummary(total=sum(counts.values()), **counts)


@router.get("/news/content", response_model=ArticleContent)
def article_content_route(request: Request, url: str = Query(..., min_length=1)) -> ArticleContent:
    fetcher = getattr(request.app.state, "content_fetcher", None)
    try:
        content = fetch_article_content(url, fetcher=fetcher)
    except ContentFetchError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to load full article content: {exc}") from exc
    return ArticleContent(url=url, content=content)


@router.post("/auth/signup", response_model=Account, status_code=201)
async def signup_route(payload: SignUpRequest, session: SessionDep) -> Account:
    try:
        return sign_up(
            session,
            email=payload.email,
            password=payload.password,
            username=payload.username,
            mobile_number=payload.mobile_number,
            preferences=payload.preferences,
        )
    except WeakPasswordError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DuplicateAccountError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/auth/signin", response_model=TokenResponse)
async def signin_route(payload: SignInRequest, session: SessionDep) -> TokenResponse:
    try:
        token = sign_in(session, email=payload.email, password=payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return TokenResponse(access_token=token)


@router.get("/auth/me", response_model=Account)
async def me_route(account: AccountDep) -> Account:
    return Account.model_validate(account)


@router.get("/interest-data", response_model=list[InterestPoint])
async def interest_data_route(session: SessionDep) -> list[InterestPoint]:
    return interest_trends(session)


@router.post("/submit-survey", response_model=SurveyAck)
async def submit_survey_route(
    payload: list[SurveyQuestion],
    account: AccountDep,
    session: SessionDep,
) -> SurveyAck:
    if not payload:
        raise HTTPException(status_code=400, detail="Survey has no answers.")
    try:
        next_at = submit_survey(session, account.email, payload)
    except SurveyCooldownError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SurveyAck(next_survey_at=next_at)


@router.post("/update-survey", response_model=SurveyAck)
async def update_survey_route(
    payload: SurveyUpdate,
    account: AccountDep,
    session: SessionDep,
) -> SurveyAck:
    update_survey_response(session, account.email, payload.id, payload.rating)
    return SurveyAck()


@router.put("/update-profile", response_model=Account)
async def update_profile_route(
    payload: ProfileUpdate,
    account: AccountDep,
    session: SessionDep,
) -> Account:
    try:
        return update_profile(
            session,
            account,
            username=payload.username,
            old_password=payload.old_password,
            new_password=payload.new_password,
            preferences=payload.preferences,
        )
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except WeakPasswordError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/chat", response_model=ChatResponse)
def chat_route(
    payload: ChatRequest,
    session: SessionDep,
    service: Annotated[ChatService, Depends(get_chat_service)],
) -> ChatResponse:
    try:
        session_id, reply = service.handle_message(session, payload.article_url, payload.message, payload.session_id)
    except ChatServiceError as exc:
        status = {"article_not_found": 404, "invalid_input": 400, "cost_limit": 413}.get(exc.code, 503)
        raise HTTPException(status_code=status, detail=exc.detail) from exc
    return ChatResponse(session_id=session_id, reply=reply)
