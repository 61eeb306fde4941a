"""HTTP Basic authentication check.

Parses the ``Authorization`` header, decodes ``username:password`` and
compares it against the configured users with ``timing_safe_equal``.
Requests either proceed or get a ``401 Unauthorized`` challenge.

Example:
    check = basic_auth(
        {"username": "admin", "password": "s3cret", "realm": "Admin"},
        {"username": "ops", "password": "hunter2"},
    )

    async def handler(request):
        return await check(request, lambda: serve(request))
"""

from __future__ import annotations

import base64
import binascii
import inspect
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog
from aiohttp import web
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tollgate.security.timing import HashFunction, timing_safe_equal

logger = structlog.get_logger()

AUTH_HEADER = "Authorization"
AUTH_CHALLENGE = "WWW-Authenticate"
DEFAULT_REALM = "Secure Area"

CREDENTIALS_PATTERN = re.compile(r" *[Bb][Aa][Ss][Ii][Cc] +([A-Za-z0-9._~+/-]+=*) *")


class ConfigurationError(TypeError):
    """Raised when basic auth is set up or invoked incorrectly.

    These are integration mistakes, never client errors, so they are raised
    instead of being turned into a 401.
    """


class AuthFailure(Enum):
    """Why a request was not authorized. Never sent to the client."""

    MISSING_HEADER = "missing_header"
    MALFORMED_HEADER = "malformed_header"
    UNDECODABLE_PAYLOAD = "undecodable_payload"
    MISSING_SEPARATOR = "missing_separator"
    INVALID_CREDENTIALS = "invalid_credentials"


@dataclass(frozen=True)
class Credential:
    """A registered username/password pair."""

    username: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.username, str) or not isinstance(self.password, str):
            raise ConfigurationError("username and password must be strings")


@dataclass(frozen=True)
class ParsedCredentials:
    """Credentials decoded from one request's Authorization header."""

    username: str
    password: str = field(repr=False)


@dataclass
class AuthResult:
    allowed: bool
    reason: str
    failure: AuthFailure | None = None
    username: str | None = None


class BasicAuthOptions(BaseModel):
    """Setup options for :func:`basic_auth`."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    username: str
    password: str = Field(repr=False)
    realm: str = DEFAULT_REALM
    hash_function: Callable[[str], Any] | None = None

    @field_validator("realm", mode="before")
    @classmethod
    def _default_realm(cls, value: Any) -> Any:
        return value or DEFAULT_REALM


def build_challenge(realm: str) -> str:
    """Build the WWW-Authenticate value, escaping double quotes in the realm."""
    escaped = realm.replace('"', '\\"')
    return f'Basic realm="{escaped}"'


def unauthorized_response(realm: str) -> web.Response:
    return web.Response(
        text="Unauthorized",
        status=401,
        headers={AUTH_CHALLENGE: build_challenge(realm)},
    )


def encode_credentials(username: str, password: str) -> str:
    """Build an Authorization header value for the given credentials."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


def _decode_token(token: str) -> str | None:
    # Accept URL-safe characters and tolerate missing padding
    data = token.rstrip("=").replace("-", "+").replace("_", "/")
    data += "=" * (-len(data) % 4)
    try:
        return base64.b64decode(data, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


def extract_credentials(value: Any) -> ParsedCredentials | AuthFailure:
    """Parse an Authorization header value.

    Args:
        value: Raw header value, or None when the header is missing.

    Returns:
        ParsedCredentials on success, otherwise the AuthFailure describing
        why no credentials could be read.
    """
    if not value:
        return AuthFailure.MISSING_HEADER
    if not isinstance(value, str):
        return AuthFailure.MALFORMED_HEADER

    match = CREDENTIALS_PATTERN.fullmatch(value)
    if match is None:
        return AuthFailure.MALFORMED_HEADER

    payload = _decode_token(match.group(1))
    if payload is None:
        return AuthFailure.UNDECODABLE_PAYLOAD

    username, sep, password = payload.partition(":")
    if not sep:
        return AuthFailure.MISSING_SEPARATOR

    return ParsedCredentials(username=username, password=password)


def parse_authorization(value: Any) -> ParsedCredentials | None:
    """Parse an Authorization header value, returning None if credentials are absent."""
    parsed = extract_credentials(value)
    if isinstance(parsed, AuthFailure):
        return None
    return parsed


def _request_headers(request: Any) -> Any:
    if request is None:
        raise ConfigurationError("argument request is required")

    headers = getattr(request, "headers", None)
    if headers is None or not callable(getattr(headers, "get", None)):
        raise ConfigurationError("argument request is required to have headers property")
    return headers


def _to_credential(user: Any) -> Credential:
    if isinstance(user, Credential):
        return user
    if isinstance(user, Mapping):
        try:
            return Credential(username=user["username"], password=user["password"])
        except KeyError as e:
            raise ConfigurationError(f"user is missing {e.args[0]!r}") from e
    if isinstance(user, tuple) and len(user) == 2:
        return Credential(username=user[0], password=user[1])
    raise ConfigurationError(f"Unsupported user entry: {type(user).__name__}")


class BasicAuthenticator:
    """Evaluates requests against an immutable list of users.

    The primary user from the options is always checked first, followed by
    the additional users in the order given. Each candidate's username and
    password are both compared, and the first full match wins.
    """

    def __init__(self, options: BasicAuthOptions, users: tuple[Credential, ...]) -> None:
        self._options = options
        self._users = users

    @property
    def realm(self) -> str:
        return self._options.realm

    @property
    def users(self) -> tuple[Credential, ...]:
        return self._users

    @property
    def hash_function(self) -> HashFunction | None:
        return self._options.hash_function

    async def authenticate(self, request: Any) -> AuthResult:
        """Decide whether a request carries valid credentials.

        Raises:
            ConfigurationError: If the request has no usable headers.
        """
        headers = _request_headers(request)
        parsed = extract_credentials(headers.get(AUTH_HEADER))

        if isinstance(parsed, AuthFailure):
            return AuthResult(allowed=False, reason="Credentials absent", failure=parsed)

        for user in self._users:
            username_equal = await timing_safe_equal(
                user.username, parsed.username, self.hash_function
            )
            password_equal = await timing_safe_equal(
                user.password, parsed.password, self.hash_function
            )
            if username_equal and password_equal:
                return AuthResult(allowed=True, reason="Authenticated", username=user.username)

        return AuthResult(
            allowed=False,
            reason="Invalid credentials",
            failure=AuthFailure.INVALID_CREDENTIALS,
        )

    async def check(self, request: Any, proceed: Callable[[], Any]) -> Any:
        """Run ``proceed`` for authorized requests, otherwise return a 401.

        Args:
            request: Request object exposing ``headers.get``.
            proceed: Continuation called with no arguments; awaited if it
                returns an awaitable.

        Returns:
            Whatever ``proceed`` returns, or the 401 response.
        """
        result = await self.authenticate(request)

        if not result.allowed:
            logger.debug(
                "Basic auth rejected",
                reason=result.failure.value if result.failure else None,
                realm=self.realm,
            )
            return unauthorized_response(self.realm)

        logger.debug("Basic auth accepted", username=result.username)
        outcome = proceed()
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome

    async def __call__(self, request: Any, proceed: Callable[[], Any]) -> Any:
        return await self.check(request, proceed)


def basic_auth(
    options: BasicAuthOptions | Mapping[str, Any] | None,
    *users: Credential | Mapping[str, str] | tuple[str, str],
) -> BasicAuthenticator:
    """Configure a basic auth check.

    Args:
        options: Primary ``username`` and ``password``, plus optional
            ``realm`` (default ``"Secure Area"``) and ``hash_function``.
        *users: Additional users, checked after the primary one in order.

    Returns:
        BasicAuthenticator, callable as ``await check(request, proceed)``.

    Raises:
        ConfigurationError: If options are missing or malformed.
    """
    if options is None:
        raise ConfigurationError('basic auth requires options for "username and password"')

    if not isinstance(options, BasicAuthOptions):
        if not isinstance(options, Mapping):
            raise ConfigurationError("basic auth options must be a mapping")
        try:
            options = BasicAuthOptions.model_validate(dict(options))
        except ValidationError as e:
            # Field names only; the error text would otherwise echo the password
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ConfigurationError(f"Invalid basic auth options: {fields}") from e

    credentials = (
        Credential(username=options.username, password=options.password),
        *(_to_credential(user) for user in users),
    )

    logger.info("Basic auth configured", realm=options.realm, users=len(credentials))
    return BasicAuthenticator(options, credentials)
