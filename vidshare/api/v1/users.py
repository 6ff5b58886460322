from fastapi import APIRouter, Depends
from vidshare.models.user import User
from vidshare.schemas.user import UserOut
from vidshare.services.auth_service import get_current_user
from vidshare.services.user_service import to_user_out

router = APIRouter(prefix='/users', tags=['users'])


@router.get('/me', response_model=UserOut)
def me(user: User = Depends(get_current_user)) -> UserOut:
    return to_user_out(user)
