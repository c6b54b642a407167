"""
Utilidades de autenticación JWT
Valida el token de sesión emitido por el backend de gestión y construye
la Session explícita de cada request
"""
from typing import Optional

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError

from ..config import settings
from ..models.enums import StaffRole
from ..schemas.session import Session

# HTTP Bearer scheme para el header Authorization (más simple para Swagger)
http_bearer = HTTPBearer(auto_error=False)

MANAGER_ROLES = (StaffRole.BOSS, StaffRole.MANAGER)
DISPATCH_ROLES = (
    StaffRole.BOSS,
    StaffRole.MANAGER,
    StaffRole.DISPATCH_SUPERVISOR,
    StaffRole.BACK_OFFICE,
)


def decode_token(token: str) -> Session:
    """
    Decodifica y valida un token de sesión

    Args:
        token: Token JWT a decodificar

    Returns:
        Session: Sesión construida desde los claims

    Raises:
        HTTPException: Si el token es inválido o le faltan claims
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudieron validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return Session.from_claims(claims, token)
    except (JWTError, KeyError, TypeError, ValidationError):
        raise credentials_exception


async def get_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> Session:
    """
    Obtiene la sesión actual desde la cookie de sesión o el header Authorization

    Raises:
        HTTPException: Si no hay token o es inválido
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token and credentials:
        token = credentials.credentials

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de autenticación requerido",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return decode_token(token)


async def require_manager(session: Session = Depends(get_session)) -> Session:
    """
    Verifica que la sesión sea de un manager (boss o manager)

    Raises:
        HTTPException: Si el rol no puede revisar excepciones ni ver reportes
    """
    if not session.has_role(*MANAGER_ROLES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos de manager"
        )
    return session


async def require_dispatch(session: Session = Depends(get_session)) -> Session:
    """Verifica que la sesión pueda operar el despacho de bodega"""
    if not session.has_role(*DISPATCH_ROLES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos de despacho"
        )
    return session
