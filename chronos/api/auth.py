"""
Sign-in routes: Microsoft Entra ID authorization code flow with a session cookie.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from msal import ConfidentialClientApplication
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.api.deps import get_current_user
from chronos.config import settings
from chronos.database import get_session
from chronos.exceptions import AuthenticationError, ConfigurationError
from chronos.logging_config import get_logger
from chronos.models import User
from chronos.schemas import UserInfo
from chronos.services.user_service import upsert_user, fetch_provider_profile

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ============================================
# MSAL CLIENT (LAZY INITIALIZATION)
# ============================================

_msal_app = None


def get_msal_app() -> ConfidentialClientApplication:
    """Get or create MSAL application instance."""
    global _msal_app
    if _msal_app is None:
        if not settings.is_oauth_configured:
            raise ConfigurationError(
                "Azure AD not configured. Please set CLIENT_ID, CLIENT_SECRET, and TENANT_ID in .env file"
            )
        _msal_app = ConfidentialClientApplication(
            settings.client_id,
            authority=settings.authority,
            client_credential=settings.client_secret
        )
    return _msal_app


# ============================================
# ROUTES
# ============================================

@router.get("/login")
async def login(request: Request):
    """Initiate the OAuth2 authorization code flow."""
    flow = get_msal_app().initiate_auth_code_flow(
        scopes=settings.scopes,
        redirect_uri=settings.redirect_uri
    )
    if "error" in flow:
        raise AuthenticationError(f"Failed to initiate auth flow: {flow.get('error_description')}")

    request.session["auth_flow"] = flow
    return RedirectResponse(url=flow["auth_uri"])


@router.get("/callback", response_model=UserInfo)
async def callback(request: Request, session: AsyncSession = Depends(get_session)):
    """Handle OAuth2 callback, create or refresh the account and start a session."""
    flow = request.session.get("auth_flow")
    if not flow:
        raise AuthenticationError("No auth flow found in session")

    result = get_msal_app().acquire_token_by_auth_code_flow(flow, dict(request.query_params))
    if "error" in result:
        logger.warning("token_exchange_failed", error=result.get("error"))
        raise AuthenticationError(f"{result.get('error')}: {result.get('error_description')}")

    claims = result.get("id_token_claims", {})
    provider_id = claims.get("oid")
    if not provider_id:
        raise AuthenticationError("Identity token has no object id")

    email = claims.get("preferred_username") or claims.get("email")
    name = claims.get("name")
    if not email or not name:
        profile = await fetch_provider_profile(result["access_token"])
        email = email or profile.get("mail") or profile.get("userPrincipalName")
        name = name or profile.get("displayName") or email

    if not email:
        raise AuthenticationError("Identity provider returned no email")

    user = await upsert_user(session, provider_id=provider_id, email=email, name=name)

    request.session.pop("auth_flow", None)
    request.session["user_id"] = str(user.id)
    logger.info("user_signed_in", user_id=str(user.id))

    return UserInfo.model_validate(user)


@router.get("/me", response_model=UserInfo)
async def me(user: User = Depends(get_current_user)):
    """Current signed-in user."""
    return UserInfo.model_validate(user)


@router.post("/logout", status_code=204)
async def logout(request: Request):
    """Clear session."""
    request.session.clear()
