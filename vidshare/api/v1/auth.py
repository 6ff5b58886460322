from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from vidshare.db.session import get_session
from vidshare.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from vidshare.schemas.user import UserOut
from vidshare.services.auth_service import (
    create_access_token,
    create_user,
    find_user,
    user_exists,
    verify_password,
)
from vidshare.services.user_service import to_user_out

router = APIRouter(prefix='/auth', tags=['auth'])


@router.post('/register', response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, session: Session = Depends(get_session)) -> UserOut:
    if user_exists(session, payload.email, payload.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='User already exists')
    user = create_user(session, payload.email, payload.password, username=payload.username)
    return to_user_out(user)


@router.post('/login', response_model=TokenResponse)
def login(payload: LoginRequest, session: Session = Depends(get_session)) -> TokenResponse:
    user = find_user(session, email=payload.email, username=payload.username)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
    if not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid password')
    return TokenResponse(access_token=create_access_token(user))
