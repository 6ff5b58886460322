from typing import Any, Iterable, Optional
from datetime import datetime, timedelta, timezone
from loguru import logger
from sqlalchemy import func
from sqlmodel import Session, select
from vidshare.models.base import utc_now
from vidshare.models.enums import TrendingTimeframe
from vidshare.models.tag import Tag, VideoTag
from vidshare.models.video import Video
from vidshare.schemas.video import VideoCreate, VideoOut

TIKTOK_CATEGORY = 'tiktok'
TIMEFRAME_WINDOWS = {
    TrendingTimeframe.DAY: timedelta(days=1),
    TrendingTimeframe.WEEK: timedelta(days=7),
    TrendingTimeframe.MONTH: timedelta(days=30),
}


def parse_tags(raw: Optional[str]) -> list[str]:
    if not raw:
        return []
    seen: list[str] = []
    for item in raw.split(','):
        name = item.strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def _get_or_create_tag(session: Session, name: str) -> Tag:
    tag = session.exec(select(Tag).where(Tag.name == name)).first()
    if tag:
        return tag
    tag = Tag(name=name)
    session.add(tag)
    session.flush()
    return tag


def create_video(session: Session, payload: VideoCreate, user_id: Optional[str]) -> Video:
    video = Video(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        video_url=payload.video_url,
        thumbnail_url=payload.thumbnail_url,
        user_id=user_id,
        status=payload.visibility,
        allow_comments=payload.allow_comments,
        allow_download=payload.allow_download,
        scheduled_at=payload.scheduled_at,
    )
    session.add(video)
    session.flush()
    for name in parse_tags(payload.tags):
        tag = _get_or_create_tag(session, name)
        session.add(VideoTag(video_id=video.id, tag_id=tag.id))
    session.commit()
    session.refresh(video)
    return video


def get_video(session: Session, video_id: str) -> Optional[Video]:
    return session.get(Video, video_id)


def increment_views(session: Session, video_id: str) -> Optional[Video]:
    video = session.get(Video, video_id)
    if not video:
        return None
    video.views = (video.views or 0) + 1
    session.add(video)
    session.commit()
    session.refresh(video)
    return video


def tags_for_videos(session: Session, video_ids: Iterable[str]) -> dict[str, list[str]]:
    ids = list(video_ids)
    result: dict[str, list[str]] = {video_id: [] for video_id in ids}
    if not ids:
        return result
    statement = (
        select(VideoTag.video_id, Tag.name)
        .join(Tag, Tag.id == VideoTag.tag_id)
        .where(VideoTag.video_id.in_(ids))
        .order_by(Tag.name)
    )
    for video_id, name in session.exec(statement).all():
        result[video_id].append(name)
    return result


def _from_epoch(value: Any) -> Optional[datetime]:
    if value in (None, ''):
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def _count(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError, OverflowError):
        return 0


def _apply_remote_fields(video: Video, remote: dict[str, Any]) -> None:
    video.views = _count(remote.get('view_count'))
    video.tiktok_likes = _count(remote.get('like_count'))
    video.tiktok_comments = _count(remote.get('comment_count'))
    video.tiktok_shares = _count(remote.get('share_count'))
    cover = remote.get('cover_image_url')
    if cover:
        video.thumbnail_url = cover


def sync_tiktok_videos(
    session: Session,
    videos: list[dict[str, Any]],
    user_id: Optional[str] = None,
    is_app_content: bool = True,
) -> int:
    """Mirror TikTok videos into the local table, keyed by ``tiktok_id``.

    Existing rows get fresh engagement counters; only newly created rows
    are counted in the return value.
    """
    saved = 0
    for remote in videos:
        remote_id = remote.get('id')
        if not remote_id:
            continue
        tiktok_id = str(remote_id)
        video = session.exec(select(Video).where(Video.tiktok_id == tiktok_id)).first()
        if video is None:
            description = remote.get('video_description') or remote.get('description')
            video = Video(
                title=remote.get('title') or (description or 'TikTok video')[:100],
                description=description,
                category=TIKTOK_CATEGORY,
                video_url=remote.get('share_url') or remote.get('embed_link') or remote.get('video_url') or '',
                user_id=user_id,
                tiktok_id=tiktok_id,
                tiktok_create_time=_from_epoch(remote.get('create_time')),
                is_app_content=is_app_content,
            )
            saved += 1
        _apply_remote_fields(video, remote)
        session.add(video)
    session.commit()
    logger.info('Synced TikTok videos: {} new of {} fetched', saved, len(videos))
    return saved


def list_tiktok_videos(
    session: Session,
    page: int = 1,
    limit: int = 20,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> tuple[list[Video], int]:
    conditions = [Video.tiktok_id.is_not(None)]
    if category:
        conditions.append(Video.category == category)
    if search:
        like = f"%{search}%"
        conditions.append(Video.title.ilike(like) | Video.description.ilike(like))

    total = session.exec(select(func.count()).select_from(Video).where(*conditions)).one()
    statement = (
        select(Video)
        .where(*conditions)
        .order_by(Video.tiktok_create_time.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(session.exec(statement).all()), int(total)


def trending_tiktok_videos(
    session: Session,
    limit: int = 10,
    timeframe: TrendingTimeframe = TrendingTimeframe.WEEK,
    now: Optional[datetime] = None,
) -> list[Video]:
    since = (now or utc_now()) - TIMEFRAME_WINDOWS[timeframe]
    statement = (
        select(Video)
        .where(Video.tiktok_id.is_not(None))
        .where(Video.tiktok_create_time >= since)
        .order_by(Video.tiktok_likes.desc(), Video.views.desc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def to_video_out(video: Video, tags: Optional[list[str]] = None) -> VideoOut:
    return VideoOut(
        id=video.id,
        title=video.title,
        description=video.description,
        category=video.category,
        video_url=video.video_url,
        thumbnail_url=video.thumbnail_url,
        user_id=video.user_id,
        status=video.status,
        views=video.views,
        allow_comments=video.allow_comments,
        allow_download=video.allow_download,
        scheduled_at=video.scheduled_at,
        tiktok_id=video.tiktok_id,
        tiktok_likes=video.tiktok_likes,
        tiktok_comments=video.tiktok_comments,
        tiktok_shares=video.tiktok_shares,
        tiktok_create_time=video.tiktok_create_time,
        is_app_content=video.is_app_content,
        tags=tags or [],
        created_at=video.created_at,
        updated_at=video.updated_at,
    )


def to_video_outs(session: Session, videos: list[Video]) -> list[VideoOut]:
    tag_map = tags_for_videos(session, [video.id for video in videos])
    return [to_video_out(video, tag_map.get(video.id)) for video in videos]
