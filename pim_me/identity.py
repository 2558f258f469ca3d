# ============================================================================
# IDENTITY - Resolve the signed-in user's object id
# ============================================================================

import base64
import binascii
import json
import logging

from .errors import IdentityError, PimError
from .utils import MANAGEMENT_RESOURCE, run_az

logger = logging.getLogger(__name__)


def decode_token_claims(token: str) -> dict:
    """
    Decodes the claims segment of a JWT without verifying its signature.

    The token was just issued to the az CLI session, so it is trusted as is.
    """
    parts = token.strip().split(".")
    if len(parts) < 2:
        raise IdentityError("Invalid token format")

    payload = parts[1]
    payload += "=" * (-len(payload) % 4)

    try:
        claims = json.loads(base64.urlsafe_b64decode(payload).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise IdentityError(f"Could not decode token claims: {e}") from e

    if not isinstance(claims, dict):
        raise IdentityError("Token claims are not a JSON object")
    return claims


def get_current_user_principal_id(runner=run_az) -> str:
    """Returns the oid claim of a management-plane access token for the current az session."""
    try:
        token = runner([
            "account", "get-access-token",
            "--resource", MANAGEMENT_RESOURCE,
            "--query", "accessToken", "-o", "tsv"
        ])
    except PimError as e:
        raise IdentityError(f"Could not get an access token: {e}") from e

    claims = decode_token_claims(token)
    oid = claims.get("oid")
    if not oid:
        raise IdentityError("No oid claim in token")
    return oid
