import logging
from functools import wraps
from flask import request, g
from firebase_admin import auth as firebase_auth

from app.core.exceptions import AuthenticationError


def get_bearer_token() -> str:
    """Authorization 헤더에서 Bearer 토큰을 꺼냅니다."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError("Missing Authorization header")

    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise AuthenticationError("Missing Authorization header")
    return token


def verify_token(token: str) -> str:
    """
    Firebase Auth에 토큰을 검증하고 사용자 uid를 반환합니다.
    세션 캐시 없이 매 요청마다 폐기 여부까지 확인합니다.
    """
    try:
        decoded = firebase_auth.verify_id_token(token, check_revoked=True)
    except firebase_auth.RevokedIdTokenError:
        raise AuthenticationError("Session token has been revoked")
    except firebase_auth.ExpiredIdTokenError:
        raise AuthenticationError("Session token has expired")
    except (firebase_auth.InvalidIdTokenError, ValueError):
        raise AuthenticationError("Invalid session token")
    except Exception as e:
        logging.error(f"토큰 검증 중 인증 서버 오류: {e}", exc_info=True)
        raise AuthenticationError("Authentication failed")

    user_id = decoded.get("uid")
    if not user_id:
        raise AuthenticationError("Invalid session token")
    return user_id


def auth_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.user_id = verify_token(get_bearer_token())
        return f(*args, **kwargs)

    return decorated_function
