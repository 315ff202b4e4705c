from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, List


class CamelModel(BaseModel):
    """Base for payloads whose JSON keys are camelCase (LINE API, game snapshots, content feeds)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        coerce_numbers_to_str = True


# ==== Dice game ===============================================================


class GameModel(CamelModel):
    # Insertion order is roll order.
    players: Dict[str, int] = Field(default_factory=dict)
    max_players: int
    started_at: int  # epoch milliseconds


class RollResultModel(CamelModel):
    point: int
    is_complete: bool
    players: Dict[str, int]


# ==== LINE webhook (inbound) ==================================================


class LineSourceModel(CamelModel):
    type: str
    group_id: Optional[str] = None
    user_id: Optional[str] = None


class LineMessageContentModel(CamelModel):
    type: str
    id: Optional[str] = None
    text: Optional[str] = None


class LineEventModel(CamelModel):
    type: str
    message: Optional[LineMessageContentModel] = None
    reply_token: Optional[str] = None
    source: Optional[LineSourceModel] = None
    webhook_event_id: Optional[str] = None


class WebhookBodyModel(CamelModel):
    destination: Optional[str] = None
    events: List[LineEventModel] = Field(default_factory=list)


# ==== LINE reply (outbound) ===================================================


class LineMessageModel(CamelModel):
    type: str
    text: Optional[str] = None
    original_content_url: Optional[str] = None
    preview_image_url: Optional[str] = None


# ==== Horoscope feed ==========================================================


class HoroscopeDetailModel(BaseModel):
    """Per-sign fortune text; the feed uses snake_case keys here."""

    ji: str = ""
    yi: str = ""
    all: str = ""
    date: str = ""
    love: str = ""
    work: str = ""
    money: str = ""
    health: str = ""
    notice: str = ""
    discuss: str = ""
    all_text: str = ""
    love_text: str = ""
    work_text: str = ""
    lucky_star: str = ""
    money_text: str = ""
    health_text: str = ""
    lucky_color: str = ""
    lucky_number: str = ""

    class Config:
        coerce_numbers_to_str = True


class HoroscopeDataModel(CamelModel):
    constellation: str = ""
    chinese_name: str = ""
    success: bool = False
    code: str = ""
    msg: str = ""
    data: HoroscopeDetailModel = Field(default_factory=HoroscopeDetailModel)


class HoroscopeResponseModel(CamelModel):
    updated: str = ""
    update_time: str = ""
    total_constellations: int = 0
    success_count: int = 0
    failure_count: int = 0
    processing_time_ms: int = 0
    converted_to_traditional: bool = True
    errors: List[str] = Field(default_factory=list)
    horoscopes: Dict[str, HoroscopeDataModel] = Field(default_factory=dict)


class CachedHoroscopeModel(CamelModel):
    data: HoroscopeDataModel
    cached_at: str


# ==== Copywriting feed ========================================================


class CopywritingItemModel(CamelModel):
    id: int
    content: str
    length: int = 0
    added_at: str = ""


class CopywritingResponseModel(CamelModel):
    type: str = ""
    updated: str = ""
    update_time: str = ""
    total_count: int = 0
    target_count: int = 0
    completion_rate: str = ""
    converted_to_traditional: bool = True
    copywritings: List[CopywritingItemModel] = Field(default_factory=list)


class CachedCopywritingModel(CamelModel):
    data: CopywritingResponseModel
    cached_at: str
