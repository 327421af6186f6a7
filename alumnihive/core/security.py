import hashlib
import hmac
import logging
import bcrypt
from passlib.context import CryptContext
from datetime import datetime, timedelta
from typing import Optional, Union
from jose import jwt
from alumnihive.core.config import (
    SECRET_KEY,
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    RAZORPAY_KEY_SECRET,
    RAZORPAY_WEBHOOK_SECRET,
)

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72

# Legacy hashes (e.g. $2y$ exported from the old user store) are verified through passlib
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _password_bytes(password: str) -> bytes:
    """Encode and clamp to bcrypt's 72-byte limit without splitting a UTF-8 sequence."""
    encoded = password.encode("utf-8")
    if len(encoded) <= BCRYPT_MAX_BYTES:
        return encoded
    logger.warning("Password exceeds 72 bytes, truncating before hashing")
    return encoded[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore").encode("utf-8")


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt.

    Raises:
        ValueError: If the password cannot be hashed
    """
    try:
        return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")
    except (TypeError, ValueError) as e:
        logger.error(f"Password hashing failed: {e}")
        raise ValueError("Invalid password") from e


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except ValueError:
        # Not a native bcrypt hash, let passlib identify it
        try:
            return pwd_context.verify(password, hashed)
        except ValueError:
            logger.warning("Unrecognised password hash format")
            return False


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


# ============================================
# ✅ RAZORPAY SIGNATURES
# ============================================

def _resolve_secret(secret: Optional[str], fallback: str) -> str:
    return secret if secret is not None else fallback


def _hmac_sha256_hex(secret: str, payload: Union[str, bytes]) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def compute_payment_signature(order_id: str, payment_id: str, secret: Optional[str] = None) -> str:
    """Signature Razorpay's checkout returns for ``order_id|payment_id``."""
    return _hmac_sha256_hex(_resolve_secret(secret, RAZORPAY_KEY_SECRET), f"{order_id}|{payment_id}")


def verify_payment_signature(
    order_id: str,
    payment_id: str,
    signature: Optional[str],
    secret: Optional[str] = None,
) -> bool:
    key = _resolve_secret(secret, RAZORPAY_KEY_SECRET)
    # An empty key is public knowledge, so nothing signed with it is authentic
    if not signature or not key:
        return False
    expected = compute_payment_signature(order_id, payment_id, key)
    return hmac.compare_digest(expected, signature)


def verify_webhook_signature(body: bytes, signature: Optional[str], secret: Optional[str] = None) -> bool:
    """Check the X-Razorpay-Signature header against the raw request body."""
    key = _resolve_secret(secret, RAZORPAY_WEBHOOK_SECRET)
    if not signature or not key:
        return False
    expected = _hmac_sha256_hex(key, body)
    return hmac.compare_digest(expected, signature)
