# backend/app/auth/security.py
from jose import jwt, JWTError
from fastapi import HTTPException, status
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

class AuthSecurity:
    """
    Handles cryptographic verification of Supabase JWTs locally.
    This avoids an HTTP round-trip to Supabase Auth for every API request.
    """

    @staticmethod
    def verify_token(token: str, secret: Optional[str], algorithm: str = "HS256") -> Dict[str, Any]:
        """
        Decodes and validates a JWT token.

        Args:
            token (str): The raw JWT string from the Authorization header.
            secret (str): The Supabase project JWT secret of the running app.
            algorithm (str): Signing algorithm configured for the project.

        Returns:
            Dict[str, Any]: The decoded user payload (sub, email, role, metadata).

        Raises:
            HTTPException: If token is expired, invalid, or signature verification fails.
        """
        if not secret:
            logger.error("SUPABASE_JWT_SECRET is not configured; cannot verify tokens.")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Authentication service error"
            )

        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[algorithm],
                options={"verify_aud": False} # Supabase sets aud="authenticated", not our API
            )
        except jwt.ExpiredSignatureError:
            logger.info("Token expired")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except JWTError as e:
            logger.warning(f"JWT Verification Failed: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired authentication token.",
                headers={"WWW-Authenticate": "Bearer"},
            )

        # Anonymous Supabase sessions are not users of this API
        if payload.get("role") != "authenticated":
            logger.warning(f"Rejected token with role: {payload.get('role')}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid user role"
            )

        if not payload.get("sub"):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token missing user ID (sub)",
            )

        return payload
