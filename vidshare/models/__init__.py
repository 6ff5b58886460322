from vidshare.models.base import IDModel, TimestampModel
from vidshare.models.user import User
from vidshare.models.video import Video
from vidshare.models.tag import Tag, VideoTag
from vidshare.models.app_tiktok_token import AppTikTokToken
from vidshare.models.third_party_config import ThirdPartyConfig

__all__ = [
    'IDModel',
    'TimestampModel',
    'User',
    'Video',
    'Tag',
    'VideoTag',
    'AppTikTokToken',
    'ThirdPartyConfig',
]
