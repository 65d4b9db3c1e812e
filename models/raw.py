"""
Raw Candidate Models
各采集器输出的原始候选结构 (tagged union)
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.contracts import SystemInstruction, Turn


class SourceType(str, Enum):
    """数据来源类型"""
    REDDIT = "reddit"
    GITHUB = "github"
    WEB = "web"
    X = "x"
    MANUAL = "manual"


# author.platform → source tag
PLATFORM_SOURCES = {
    "reddit": SourceType.REDDIT.value,
    "github": SourceType.GITHUB.value,
    "google": SourceType.WEB.value,
    "twitter": SourceType.X.value,
    "x": SourceType.X.value,
    "usersubmission": SourceType.MANUAL.value,
}


def _as_timestamp(value: Any) -> Optional[str]:
    """
    时间戳宽松转换: ISO 字符串原样保留, epoch 秒/毫秒转为 ISO-8601 (UTC)

    无法识别的值返回 None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)):
        seconds = float(value)
        # epoch milliseconds
        if abs(seconds) >= 1e11:
            seconds /= 1000.0
        try:
            moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return None


class _RawModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RawAuthor(_RawModel):
    """作者信息"""
    name: str = ""
    url: Optional[str] = None
    platform: Optional[str] = None


class RawStats(_RawModel):
    """互动数据 (各来源字段不同)"""
    views: int = 0
    copies: int = 0
    likes: int = 0
    upvotes: int = 0
    comments: int = 0
    stars: int = 0
    retweets: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def _as_int(cls, value: Any) -> int:
        try:
            return int(value or 0)
        except (TypeError, ValueError):
            return 0


class RedditPost(_RawModel):
    """Reddit 帖子 (listing JSON 投影)"""
    kind: Literal["reddit"] = "reddit"
    source: str = SourceType.REDDIT.value
    subreddit: Optional[str] = None
    flair: Optional[str] = None
    title: str = ""
    content: str = ""
    selftext: str = ""
    url: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    date: Optional[str] = None
    stats: RawStats = Field(default_factory=RawStats)

    @field_validator("date", mode="before")
    @classmethod
    def _lenient_date(cls, value: Any) -> Optional[str]:
        return _as_timestamp(value)


class StructuredPrompt(_RawModel):
    """
    已结构化的候选 (GitHub issue / notebook, 官方示例页)

    保留未知字段，打过标签的记录原样进入语料库
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    kind: Literal["structured"] = "structured"
    id: Optional[str] = None
    source: Optional[str] = None
    title: str = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    system_instruction: Optional[SystemInstruction] = None
    contents: List[Turn] = Field(default_factory=list)
    author: Optional[RawAuthor] = None
    original_source_url: Optional[str] = None
    url: Optional[str] = None
    stats: Optional[RawStats] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _lenient_timestamps(cls, value: Any) -> Optional[str]:
        return _as_timestamp(value)


class TweetPrompt(_RawModel):
    """X/Twitter 帖子 (FxTwitter 投影)"""
    kind: Literal["tweet"] = "tweet"
    id: Optional[str] = None
    source: str = SourceType.X.value
    title: str = ""
    description: str = ""
    prompt_text: str = ""
    tags: List[str] = Field(default_factory=list)
    author: Optional[RawAuthor] = None
    original_source_url: Optional[str] = None
    stats: RawStats = Field(default_factory=RawStats)
    created_at: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)

    @field_validator("created_at", mode="before")
    @classmethod
    def _lenient_created_at(cls, value: Any) -> Optional[str]:
        return _as_timestamp(value)


class GalleryCard(_RawModel):
    """官方 Prompt Gallery 卡片"""
    kind: Literal["gallery"] = "gallery"
    title: str = ""
    description: str = ""
    url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class ManualEntry(_RawModel):
    """手工整理或无法识别来源的记录"""
    kind: Literal["manual"] = "manual"
    source: Optional[str] = None
    title: str = ""
    text: str = ""
    content: str = ""
    description: str = ""
    url: Optional[str] = None
    author: Optional[str] = None

    @field_validator("title", "text", "content", "description", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("author", mode="before")
    @classmethod
    def _author_name(cls, value: Any) -> Optional[str]:
        if isinstance(value, dict):
            value = value.get("name")
        text = str(value or "").strip()
        return text or None


RawCandidate = Union[RedditPost, StructuredPrompt, TweetPrompt, GalleryCard, ManualEntry]
