"""远端诊断能力抽象接口。

上层 RemoteInvoker 不直接依赖具体的 HTTP 实现，而是依赖此协议：

- 任意对象只要提供 process_user_message 即可接入（HTTP 客户端、测试替身等）。
- 返回值形状不受约束；可以是普通值，也可以是 awaitable。
- 返回 None 表示"没有结果"，调用方会走本地降级回复。
"""

from typing import Any, Awaitable, Optional, Protocol, Union


class RemoteCapability(Protocol):
    """诊断服务客户端协议。

    实现者需要提供：
    - name: 名称，用于日志。
    - process_user_message(message, session_id): 发送一条用户消息，
      返回原始响应（或其 awaitable）。
    """

    name: str

    def process_user_message(self, message: str, session_id: Optional[str]) -> Union[Any, Awaitable[Any]]:
        ...
