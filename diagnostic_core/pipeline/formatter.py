"""助手回复的轻量标记 → 富文本转换。

只作用于 assistant 消息，替换顺序固定：先加粗再斜体，否则 `**x**`
会被误识别为两段斜体。
"""

import html
import re
from typing import Any

_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*(.*?)\*")
_BULLET = re.compile(r"^• ", re.MULTILINE)


def format_reply(text: Any) -> str:
    """把原始回复文本转换为安全的 HTML 片段。

    >>> format_reply("**a** *b*\\nc")
    '<strong>a</strong> <em>b</em><br/>c'
    """

    if not text:
        return ""
    markup = html.escape(str(text), quote=False)
    markup = _BOLD.sub(r"<strong>\1</strong>", markup)
    markup = _ITALIC.sub(r"<em>\1</em>", markup)
    markup = markup.replace("\n", "<br/>")
    # 项目符号保持原样（• 开头的行不做额外处理）
    markup = _BULLET.sub("• ", markup)
    return markup
