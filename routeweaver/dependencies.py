"""Dependencies for FastAPI routes."""
import logging

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from routeweaver.config import Settings
from routeweaver.services.destinations import PopularDestinationService
from routeweaver.services.geocoder import Geocoder
from routeweaver.services.google_places import GooglePlacesClient
from routeweaver.services.landmarks import LandmarkBrowser
from routeweaver.services.rate_limiter import FixedWindowRateLimiter
from routeweaver.services.routing import RoutingProvider
from routeweaver.services.suggestions import SuggestionEngine
from routeweaver.services.text_generation import TextGenerator

logger = logging.getLogger(__name__)

# HTTP Bearer token security
security = HTTPBearer()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_text_generator(request: Request) -> TextGenerator:
    return request.app.state.text_generator


def get_google_client(request: Request) -> GooglePlacesClient:
    return request.app.state.google


def get_geocoder(request: Request) -> Geocoder:
    return request.app.state.geocoder


def get_routing_provider(request: Request) -> RoutingProvider:
    return request.app.state.routing_provider


def get_suggestion_engine(request: Request) -> SuggestionEngine:
    return request.app.state.suggestion_engine


def get_destination_service(request: Request) -> PopularDestinationService:
    return request.app.state.destinations


def get_landmark_browser(google: GooglePlacesClient = Depends(get_google_client)) -> LandmarkBrowser:
    return LandmarkBrowser(google)


def enforce_rate_limit(request: Request) -> None:
    """Reject the request with 429 when the fixed window is full."""
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    if not limiter.allow():
        logger.warning(f"Rate limit exceeded for {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please try again shortly",
        )


def verify_auth0_token(token: str, settings: Settings) -> dict:
    """
    Validate an Auth0 JWT token and return its claims.

    Raises:
        HTTPException: If token is invalid or Auth0 is not configured
    """
    auth0_domain = settings.auth0_domain
    if not auth0_domain:
        logger.warning("Auth0 domain not configured, rejecting token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Auth0 not configured on server",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        jwks_client = PyJWKClient(f"https://{auth0_domain}/.well-known/jwks.json")
        signing_key = jwks_client.get_signing_key_from_jwt(token)

        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=settings.auth0_audience,
            issuer=f"https://{auth0_domain}/",
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.PyJWKClientError as e:
        logger.error(f"Could not fetch signing key: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unable to verify token signature",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def user_identity(claims: dict, auth0_domain: str) -> str:
    """Email claim (plain or namespaced), falling back to the Auth0 subject."""
    identity = claims.get("email") or claims.get(f"https://{auth0_domain}/email") or claims.get("sub")
    if not identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token carries no user identity",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Verify the bearer token and return the identity saved routes are keyed by.
    """
    claims = verify_auth0_token(credentials.credentials, settings)
    return user_identity(claims, settings.auth0_domain)
