"""
Best-effort extraction of a storyboard from a free-form chat message.

Creators post storyboards as loosely labelled text, in Japanese or English:

    テーマ: 日常スキンケアルーティン
    キーメッセージ:
    - 肌を整える
    - うるおいを与える
    シーン1: 朝のケア（30秒）
    Scene 2: Night routine (20 seconds)

Only labelled parts are picked up. A label that is missing leaves the
matching field as None so downstream checks can skip it.
"""
import logging
import re
from typing import List, Optional

from claimcheck.models import Scene, Storyboard

logger = logging.getLogger(__name__)

_SEPARATOR = r"(?:[ \t]*[:：][ \t]*|[ \t]+)"
# English labels need a colon
_COLON = r"[ \t]*[:：][ \t]*"

THEME_RE = re.compile(
    r"^[ \t]*(?:テーマ" + _SEPARATOR + r"|(?:overall[ \t]+)?theme" + _COLON + r")(?P<value>[^\r\n]*)",
    re.IGNORECASE | re.MULTILINE,
)
KEY_MESSAGES_RE = re.compile(
    r"^[ \t]*(?:キーメッセージ[ \t]*[:：]?|key[ \t]*messages?" + _COLON + r")[ \t]*(?P<value>.*)$",
    re.IGNORECASE,
)
SCENE_RE = re.compile(
    r"^[ \t]*(?:シーン|scene)[ \t]*(?P<number>\d+)" + _SEPARATOR + r"?(?P<value>[^\r\n]*)",
    re.IGNORECASE | re.MULTILINE,
)
DURATION_RE = re.compile(
    r"[(（][ \t]*(?P<seconds>\d+)[ \t]*(?:秒|s|secs?|seconds?)[ \t]*[)）]",
    re.IGNORECASE,
)
_BULLET_RE = re.compile(r"^(?:[-・•*]|\d+[.)])[ \t]*")
_INLINE_BULLET_RE = re.compile(r"[・•]")


def extract_storyboard(text: str) -> Storyboard:
    storyboard = Storyboard(
        message_content=text,
        overall_theme=extract_theme(text),
        key_messages=extract_key_messages(text),
        scenes=extract_scenes(text),
    )
    logger.debug(
        "Extracted storyboard: theme=%s, key_messages=%s, scenes=%s",
        storyboard.overall_theme is not None,
        len(storyboard.key_messages or []),
        len(storyboard.scenes or []),
    )
    return storyboard


def extract_theme(text: str) -> Optional[str]:
    m = THEME_RE.search(text)
    if not m:
        return None
    value = m.group("value").strip()
    return value or None


def extract_key_messages(text: str) -> Optional[List[str]]:
    lines = text.splitlines()
    for index, line in enumerate(lines):
        m = KEY_MESSAGES_RE.match(line)
        if m:
            break
    else:
        return None

    block = [m.group("value")]
    for line in lines[index + 1:]:
        if SCENE_RE.match(line) or THEME_RE.match(line):
            break
        if not line.strip():
            if any(item.strip() for item in block):
                break
            continue
        block.append(line)

    messages = []
    for line in block:
        line = _BULLET_RE.sub("", line.strip())
        for item in _INLINE_BULLET_RE.split(line):
            item = item.strip()
            if item and item.strip(":： "):
                messages.append(item)
    return messages or None


def extract_scenes(text: str) -> Optional[List[Scene]]:
    scenes = []
    for index, m in enumerate(SCENE_RE.finditer(text), start=1):
        raw = m.group("value")
        duration_match = DURATION_RE.search(raw)
        duration = int(duration_match.group("seconds")) if duration_match else None
        description = DURATION_RE.sub("", raw, count=1).strip()
        scenes.append(Scene(
            id=f"scene-{index}",
            scene_number=int(m.group("number")) or index,
            description=description,
            duration=duration,
        ))
    return scenes or None
