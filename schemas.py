# schemas.py (Pydantic v2)
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, List, Literal
from datetime import datetime


# ---------- Users ----------
class UserBase(BaseModel):
    username: str
    display_name: Optional[str] = None
    email: Optional[EmailStr] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None

class UserWrite(UserBase):
    pass

class UserUpdate(BaseModel):
    """Settings edit. The username cannot be changed."""
    display_name: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None

class UserRead(BaseModel):
    firebase_uid: str
    username: str
    display_name: str
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    is_admin: bool
    is_banned: bool
    followers_count: int
    following_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class UserProfileRead(UserRead):
    """Extended user profile with follow status"""
    is_following: Optional[bool] = None  # True if current user follows this user
    is_followed_by: Optional[bool] = None  # True if this user follows current user

class FCMTokenUpdate(BaseModel):
    fcm_token: str


class AdminRoleUpdate(BaseModel):
    is_admin: bool


# ---------- Follows ----------
class FollowRead(BaseModel):
    id: int
    follower_id: str
    following_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Posts ----------
class PostBase(BaseModel):
    type: Literal["image", "video", "audio"] = "image"
    prompt: str
    negative_prompt: Optional[str] = None
    model: Optional[str] = None
    media_url: str
    thumbnail_url: Optional[str] = None
    is_public: bool = True

class PostWrite(PostBase):
    original_post_id: Optional[int] = None  # Set when the post is a remix

class PostRead(PostBase):
    id: int
    author_id: str
    original_post_id: Optional[int] = None
    likes_count: int
    comments_count: int
    remix_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class LikeState(BaseModel):
    is_liked: bool
    likes_count: int

class LikeToggle(BaseModel):
    currently_liked: bool


# ---------- Comments ----------
class CommentWrite(BaseModel):
    text: str = Field(..., max_length=1000)

class CommentRead(BaseModel):
    id: int
    post_id: int
    author_id: str
    text: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Notifications ----------
class NotificationRead(BaseModel):
    id: int
    type: Literal["like", "remix", "comment", "follow"]
    from_user_id: str
    from_username: str
    from_user_photo: Optional[str] = None
    post_id: Optional[int] = None
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class NotificationFeed(BaseModel):
    notifications: List[NotificationRead]
    unread_count: int


# ---------- Reports ----------
class ReportWrite(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

class ReportRead(BaseModel):
    id: int
    post_id: int
    reporter_id: str
    reason: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
