from typing import Optional
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session, select
from vidshare.core.config import settings
from vidshare.db.session import get_session
from vidshare.models.user import User
from vidshare.models.enums import UserRole

pwd_context = CryptContext(schemes=['bcrypt'], deprecated='auto')
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return pwd_context.verify(password, hashed_password)


def create_access_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        'sub': user.id,
        'type': 'access',
        'email': user.email,
        'username': user.username,
        'role': user.role.value,
        'iat': now,
        'exp': now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user(
    session: Session,
    email: str,
    password: str,
    username: Optional[str] = None,
    role: UserRole = UserRole.USER,
) -> User:
    user = User(email=email, username=username, hashed_password=hash_password(password), role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def find_user(session: Session, email: Optional[str] = None, username: Optional[str] = None) -> Optional[User]:
    if email:
        return session.exec(select(User).where(User.email == email)).first()
    if username:
        return session.exec(select(User).where(User.username == username)).first()
    return None


def user_exists(session: Session, email: str, username: Optional[str]) -> bool:
    condition = User.email == email
    if username:
        condition = condition | (User.username == username)
    return session.exec(select(User).where(condition)).first() is not None


def _user_from_token(session: Session, token: str) -> User:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid token') from exc

    if payload.get('type') != 'access':
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid token type')

    user_id = payload.get('sub')
    user = session.exec(select(User).where(User.id == user_id)).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='User not found')
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: Session = Depends(get_session),
) -> User:
    return _user_from_token(session, credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    session: Session = Depends(get_session),
) -> Optional[User]:
    """Resolve the caller when a valid bearer token is sent; anything else is a guest."""
    if credentials is None:
        return None
    try:
        return _user_from_token(session, credentials.credentials)
    except HTTPException:
        return None


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Admin only')
    return user
