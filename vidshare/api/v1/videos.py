from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from vidshare.db.session import get_session
from vidshare.models.enums import VideoStatus
from vidshare.models.user import User
from vidshare.schemas.video import VideoCreate, VideoDetail, VideoOut, VideoViewsOut, ViewsIncremented
from vidshare.services.auth_service import get_current_user, get_optional_user
from vidshare.services.user_service import get_user_summary
from vidshare.services.video_service import (
    create_video,
    get_video,
    increment_views,
    tags_for_videos,
    to_video_out,
)

router = APIRouter(prefix='/videos', tags=['videos'])


@router.post('', response_model=VideoOut, status_code=status.HTTP_201_CREATED)
def create_video_endpoint(
    payload: VideoCreate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> VideoOut:
    video = create_video(session, payload, user.id)
    tags = tags_for_videos(session, [video.id])
    return to_video_out(video, tags[video.id])


@router.get('/{video_id}', response_model=VideoDetail)
def get_video_endpoint(
    video_id: str,
    session: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
) -> VideoDetail:
    video = get_video(session, video_id)
    # private videos are only visible to their owner
    if not video or (video.status == VideoStatus.PRIVATE and (user is None or user.id != video.user_id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Video not found')
    tags = tags_for_videos(session, [video.id])
    out = to_video_out(video, tags[video.id])
    return VideoDetail(**out.model_dump(), user=get_user_summary(session, video.user_id))


@router.post('/{video_id}/views', response_model=ViewsIncremented)
def increment_views_endpoint(video_id: str, session: Session = Depends(get_session)) -> ViewsIncremented:
    video = increment_views(session, video_id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Video not found')
    return ViewsIncremented(video=VideoViewsOut(id=video.id, title=video.title, views=video.views))
