"""
Identity assertion decoding.

The sign-in widget hands the client a Google ID token (a JWT). The map only
needs the profile claims to label the session and to stamp `authorId` on new
entries, so the token is decoded without signature verification; the API
does not trust the author field for authorization.
"""
from datetime import datetime, timezone
from typing import Optional

from jose import JWTError, jwt

from mapsync.errors import IdentityError
from mapsync.schemas import IdentityClaims


def decode_assertion(assertion: str, now: Optional[datetime] = None) -> IdentityClaims:
    """Decode `assertion` into profile claims; raise IdentityError if unusable or expired."""
    try:
        claims = jwt.get_unverified_claims(assertion)
    except JWTError as exc:
        raise IdentityError("Identity assertion could not be decoded") from exc

    email = claims.get("email")
    if not email:
        raise IdentityError("Identity assertion carries no email")
    try:
        issued_at = datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc)
        expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
    except (KeyError, TypeError, ValueError) as exc:
        raise IdentityError("Identity assertion lacks iat/exp") from exc

    if expires_at <= (now or datetime.now(timezone.utc)):
        raise IdentityError("Identity assertion has expired")

    return IdentityClaims(
        email=email,
        name=claims.get("name"),
        picture=claims.get("picture"),
        issued_at=issued_at,
        expires_at=expires_at,
    )
