"""
Tuning constants and keyword tables for the compliance engine.

Everything here is plain configuration data handed to the engine at
construction time. The numeric defaults are the values the dashboard
shipped with; they have no documented derivation and are kept as named
fields so they can be overridden from a JSON file rather than edited in
place.
"""
import json
import logging
import os
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class MatcherSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_confidence: float = 0.8
    short_match_length: int = 3
    short_match_penalty: float = 0.3
    long_match_length: int = 10
    long_match_bonus: float = 0.1
    verbatim_bonus: float = 0.1
    min_confidence: float = 0.1
    max_confidence: float = 1.0
    context_window: int = 30


class RecommendationTables(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_risk_score: float = 10.0
    appropriate_expressions: Dict[str, List[str]] = Field(default_factory=lambda: {
        "cosmetics": [
            "肌を整える",
            "うるおいを与える",
            "乾燥を防ぐ",
            "ハリを与える",
            "なめらかにする",
        ],
        "health-food": [
            "健康をサポート",
            "栄養補給に",
            "バランス良い食生活に",
            "美容と健康に",
            "コンディションを整える",
        ],
    })
    category_labels: Dict[str, str] = Field(default_factory=lambda: {
        "medicine": "pharmaceutical",
        "cosmetics": "cosmetics",
        "health-food": "health food",
        "medical-device": "medical device",
    })
    general_warning_prefixes: Tuple[str, ...] = ("com-",)
    general_reminders: List[str] = Field(default_factory=lambda: [
        "Avoid guaranteeing absolute results",
        "Use physician or expert endorsements with care",
        "Verify any claim of official approval before publishing",
    ])
    product_category_keywords: Dict[str, List[str]] = Field(default_factory=lambda: {
        "cosmetics": ["化粧品", "コスメ", "スキンケア", "美容液", "クリーム", "ローション", "ファンデーション", "リップ", "マスカラ"],
        "health-food": ["サプリ", "サプリメント", "健康食品", "栄養補助食品", "ダイエット", "プロテイン"],
        "medical-device": ["医療機器", "マッサージ器", "治療器", "測定器"],
        "medicine": ["薬", "医薬品", "治療", "診断", "処方"],
    })
    default_product_category: str = "cosmetics"


class PlatformLimit(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_seconds: int = Field(..., gt=0)
    recommended: str


class AlignmentSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_alignment_threshold: float = 0.3
    min_keyword_length: int = 3
    tone_min_length: int = 100
    base_confidence: int = 95
    min_confidence: int = 60
    high_penalty: int = 20
    major_medium_penalty: int = 15
    minor_medium_penalty: int = 10
    minor_low_penalty: int = 5
    category_aliases: Dict[str, str] = Field(default_factory=lambda: {
        "美容・化粧品": "cosmetics",
        "beauty": "cosmetics",
        "ファッション": "fashion",
        "グルメ・食品": "food",
        "gourmet": "food",
        "ライフスタイル": "lifestyle",
        "フィットネス・健康": "fitness",
        "health": "fitness",
    })
    theme_keywords: Dict[str, List[str]] = Field(default_factory=lambda: {
        "cosmetics": ["スキンケア", "化粧", "美容", "保湿", "ケア", "肌", "メイク", "skincare", "beauty", "makeup", "skin"],
        "fashion": ["コーディネート", "スタイリング", "ファッション", "着こなし", "outfit", "styling", "fashion"],
        "food": ["レシピ", "料理", "食べ物", "グルメ", "レストラン", "美味", "recipe", "cooking", "restaurant"],
        "lifestyle": ["日常", "ライフスタイル", "暮らし", "生活", "daily", "lifestyle", "routine"],
        "fitness": ["トレーニング", "ダイエット", "健康", "フィットネス", "運動", "training", "workout", "fitness"],
    })
    off_topic_keywords: Dict[str, List[str]] = Field(default_factory=lambda: {
        "cosmetics": ["食べ", "料理", "グルメ", "ラーメン", "居酒屋", "ramen", "izakaya", "cooking"],
        "food": ["化粧", "スキンケア", "メイク", "skincare", "makeup"],
        "fashion": ["料理", "食事", "スキンケア", "cooking", "skincare"],
        "fitness": ["食べ放題", "お酒", "甘いもの", "all-you-can-eat", "alcohol"],
    })
    platform_duration_limits: Dict[str, PlatformLimit] = Field(default_factory=lambda: {
        "TIKTOK": PlatformLimit(max_seconds=60, recommended="15-60 seconds"),
        "INSTAGRAM_REEL": PlatformLimit(max_seconds=90, recommended="15-90 seconds"),
        "INSTAGRAM_STORY": PlatformLimit(max_seconds=15, recommended="15 seconds or less"),
        "YOUTUBE_SHORTS": PlatformLimit(max_seconds=60, recommended="30-60 seconds"),
        "TWITTER": PlatformLimit(max_seconds=140, recommended="30-140 seconds"),
    })
    young_audience_markers: List[str] = Field(default_factory=lambda: [
        "10代", "20代", "teen", "gen z", "young adult", "college student",
    ])
    formal_register_markers: List[str] = Field(default_factory=lambda: [
        "敬語", "でございます", "いたします", "申し上げます", "hereby", "henceforth",
    ])


class EngineConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    matcher: MatcherSettings = Field(default_factory=MatcherSettings)
    recommendations: RecommendationTables = Field(default_factory=RecommendationTables)
    alignment: AlignmentSettings = Field(default_factory=AlignmentSettings)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "EngineConfig":
        """Defaults, or a JSON override file when *path* is given.

        Sections and keys missing from the file keep their defaults.
        """
        if not path:
            return cls()
        if not os.path.exists(path):
            raise FileNotFoundError(f"Engine config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = cls.model_validate(data)
        logger.info("Loaded engine config overrides from %s", path)
        return config
