from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class VideoData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    title: str | None = None
    channel_id: str | None = Field(default=None, alias="channelId")
    channel_name: str | None = Field(default=None, alias="channelName")
    view_count: int | None = Field(default=None, alias="viewCount")
    published_text: str | None = Field(default=None, alias="publishedText")


class ChannelData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    title: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatar")


class VideoItem(BaseModel):
    type: Literal["video"] = "video"
    data: VideoData


class ChannelItem(BaseModel):
    type: Literal["channel"] = "channel"
    data: ChannelData


Item = Annotated[VideoItem | ChannelItem, Field(discriminator="type")]


class PagedResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[Item] = Field(default_factory=list)
    next_page: int | None = Field(default=None, alias="nextPage")
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        # Absent optional item fields are dropped, nextPage is always present.
        payload: dict[str, Any] = {
            "items": [item.model_dump(by_alias=True, exclude_none=True) for item in self.items],
            "nextPage": self.next_page,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


class SuggestResult(BaseModel):
    suggestions: list[str] = Field(default_factory=list)
