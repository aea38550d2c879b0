"""远端诊断能力集成层。

该包下的模块负责：
- 定义远端能力抽象接口 (base)。
- 提供 HTTP 实现 (http_client)。
"""

from typing import Optional

from diagnostic_core.config.settings import settings
from diagnostic_core.providers.base import RemoteCapability
from diagnostic_core.providers.http_client import HttpDiagnosticClient


def create_remote(cfg=None) -> Optional[RemoteCapability]:
    """根据配置创建远端能力；未配置服务地址时返回 None（降级模式）。"""

    cfg = cfg or settings
    if not getattr(cfg, "diagnostic_base_url", None):
        return None
    return HttpDiagnosticClient(cfg)
