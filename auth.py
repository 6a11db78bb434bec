import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError

from config import Settings, get_settings

logger = logging.getLogger("clinica.auth")

# auto_error=False: a ausência do token vira 401 com a nossa mensagem
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)

# Cache simples do JWKS por projeto (as chaves públicas não são configuração)
_jwks_cache: Dict[str, Dict[str, Any]] = {}


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _fetch_jwks(supabase_url: str):
    async with httpx.AsyncClient() as client:
        resp = await client.get(f"{supabase_url}/auth/v1/.well-known/jwks.json", timeout=10.0)
        resp.raise_for_status()
        return resp.json()


def _find_key_by_kid(jwks, kid: str):
    for k in jwks.get("keys", []):
        if k.get("kid") == kid:
            return k
    return None


async def get_supabase_key_for_token(token: str, supabase_url: str):
    """Seleciona a chave pública correta do JWKS com base no 'kid' do token."""
    header = jwt.get_unverified_header(token)
    kid = header.get("kid")
    if not kid:
        raise _unauthorized()

    key = _find_key_by_kid(_jwks_cache.get(supabase_url, {}), kid)
    if key:
        return key

    try:
        jwks = await _fetch_jwks(supabase_url)
    except httpx.HTTPError as exc:
        logger.error("jwks_fetch_failed url=%s error=%r", supabase_url, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
    _jwks_cache[supabase_url] = jwks

    key = _find_key_by_kid(jwks, kid)
    if not key:
        raise _unauthorized()
    return key


def _decode_claims(token: str, key, algorithms, settings: Settings) -> Dict[str, Any]:
    options = {"verify_aud": True, "verify_iss": bool(settings.supabase_url)}
    kwargs: Dict[str, Any] = {"audience": "authenticated"}
    if settings.supabase_url:
        kwargs["issuer"] = f"{settings.supabase_url.rstrip('/')}/auth/v1"
    return jwt.decode(token, key, algorithms=algorithms, options=options, **kwargs)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
):
    """Valida o JWT da sessão Supabase e retorna dados básicos do usuário.

    Com SUPABASE_JWT_SECRET definido, a verificação é HS256 com o segredo do
    projeto; caso contrário, usa a chave pública do JWKS indicada pelo 'kid'.
    """
    if not token:
        raise _unauthorized()

    if not settings.supabase_jwt_secret and not settings.supabase_url:
        logger.error("auth_misconfigured missing=SUPABASE_URL,SUPABASE_JWT_SECRET")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    try:
        if settings.supabase_jwt_secret:
            payload = _decode_claims(token, settings.supabase_jwt_secret, ["HS256"], settings)
        else:
            supabase_url = settings.supabase_url.rstrip("/")
            key = await get_supabase_key_for_token(token, supabase_url)
            payload = _decode_claims(token, key, ["RS256", "ES256"], settings)

        user_id: str = payload.get("sub")
        if not user_id:
            raise _unauthorized()

        return {"id": user_id, "email": payload.get("email")}
    except JWTError:
        raise _unauthorized()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("auth_unexpected_error error=%r", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
