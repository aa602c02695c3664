import logging

import httpx
import sentry_sdk
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from focus_tracker.config import Settings, get_settings
from focus_tracker.dependencies import get_github_client
from focus_tracker.exceptions import UpstreamProviderError
from focus_tracker.schemas.auth import AuthorizeResponse, CallbackQuery, LoginResponse
from focus_tracker.services import auth_service
from focus_tracker.validation import Invalid, invalid_response, parse_input

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

GENERIC_ERROR_MESSAGE = "There something wrong."


@router.get("", response_model=AuthorizeResponse)
async def auth(settings: Settings = Depends(get_settings)):
    """Return the GitHub authorize URL the client should redirect to."""
    return AuthorizeResponse(redirect_url=auth_service.build_authorize_url(settings))


@router.get("/callback", response_model=LoginResponse)
async def auth_callback(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_github_client),
):
    """Exchange the GitHub code for a profile and a session token."""
    parsed = parse_input(CallbackQuery, dict(request.query_params))
    if isinstance(parsed, Invalid):
        return invalid_response(parsed)

    try:
        result = await auth_service.complete_login(
            parsed.value.code, settings, http_client=http_client
        )
    except UpstreamProviderError as e:
        return JSONResponse(status_code=400, content=e.payload)
    except httpx.HTTPError as e:
        logger.warning("GitHub request failed: %s", e)
        return JSONResponse(status_code=400, content={"message": str(e)})
    except Exception as e:
        logger.exception("GitHub login failed")
        sentry_sdk.capture_exception(e)
        return JSONResponse(status_code=500, content={"message": GENERIC_ERROR_MESSAGE})

    return LoginResponse(**result)
