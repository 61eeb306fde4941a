"""Security module for Tollgate.

This module provides:
- HTTP Basic authentication check
- Timing-safe equality
- Digest functions (SHA-256, BLAKE3)
"""

# Basic authentication
from tollgate.security.basicauth import (
    AUTH_CHALLENGE,
    AUTH_HEADER,
    DEFAULT_REALM,
    AuthFailure,
    AuthResult,
    BasicAuthenticator,
    BasicAuthOptions,
    ConfigurationError,
    Credential,
    ParsedCredentials,
    basic_auth,
    build_challenge,
    encode_credentials,
    extract_credentials,
    parse_authorization,
    unauthorized_response,
)

# Digest functions
from tollgate.security.hashing import (
    HashAlgorithm,
    Hasher,
    blake3_digest,
    get_digest_function,
    sha256_digest,
)

# Timing-safe comparison
from tollgate.security.timing import (
    UNDEFINED_PLACEHOLDER,
    constant_time_compare,
    normalize_operand,
    timing_safe_equal,
)

__all__ = [
    # Basic authentication
    "AUTH_CHALLENGE",
    "AUTH_HEADER",
    "DEFAULT_REALM",
    "AuthFailure",
    "AuthResult",
    "BasicAuthenticator",
    "BasicAuthOptions",
    "ConfigurationError",
    "Credential",
    "ParsedCredentials",
    "basic_auth",
    "build_challenge",
    "encode_credentials",
    "extract_credentials",
    "parse_authorization",
    "unauthorized_response",
    # Digest functions
    "HashAlgorithm",
    "Hasher",
    "blake3_digest",
    "get_digest_function",
    "sha256_digest",
    # Timing-safe comparison
    "UNDEFINED_PLACEHOLDER",
    "constant_time_compare",
    "normalize_operand",
    "timing_safe_equal",
]
