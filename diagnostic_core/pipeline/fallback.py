"""降级模式下的本地模拟回复。

当诊断服务不可用或没有返回结果时，按关键词给出固定脚本：
字段可见性 → 字段级安全排查；编辑/修改 → 编辑权限排查；
其余 → 追问更多细节。映射是封闭且确定的。
"""

import asyncio
from typing import Tuple

FIELD_KEYWORDS: Tuple[str, ...] = ("field", "see")
EDIT_KEYWORDS: Tuple[str, ...] = ("edit", "modify")

FIELD_VISIBILITY_REPLY = """I've checked your permissions. The field you're asking about may not be visible due to **Field-Level Security** settings.

**To fix this:**
1. Contact your Salesforce administrator
2. Ask them to enable Field-Level Security for your profile
3. Wait for the changes to take effect

**Who can help:**
Your administrators can make this change in Setup → Object Manager.

Need help with anything else?"""

EDIT_PERMISSIONS_REPLY = """I see you're having trouble editing records. This could be due to:

• Profile permissions not allowing edits
• The record is locked in an approval process
• You don't own the record and sharing rules don't grant edit access

**What to do:**
Contact your administrator to review your permissions and sharing settings."""

CLARIFYING_REPLY = """Thanks for reaching out! I'm analyzing your issue.

To help you better, I need more specific information:
• What object/record are you working with?
• What exactly are you trying to do?
• What error message (if any) are you seeing?

Please provide more details and I'll investigate further."""


class FallbackResponder:
    """关键词触发的固定回复。

    - reply: 纯函数，立即返回脚本。
    - respond: 先等待 delay 秒（模拟远端耗时），再返回同样的脚本。
    """

    def __init__(self, delay: float = 1.0):
        self._delay = max(0.0, delay)

    @property
    def delay(self) -> float:
        return self._delay

    def reply(self, text: str) -> str:
        lowered = (text or "").lower()
        if any(k in lowered for k in FIELD_KEYWORDS):
            return FIELD_VISIBILITY_REPLY
        if any(k in lowered for k in EDIT_KEYWORDS):
            return EDIT_PERMISSIONS_REPLY
        return CLARIFYING_REPLY

    async def respond(self, text: str) -> str:
        if self._delay:
            await asyncio.sleep(self._delay)
        return self.reply(text)
