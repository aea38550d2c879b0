"""诊断服务 HTTP 适配器。

本模块负责：

1. 把 {message, sessionId} 组装成 JSON 请求体。
2. 调用 HTTP 接口并把网络/限流/服务端错误包装为业务异常。
3. 原样返回响应体（JSON 解码后的值或纯文本），形状判断交给
   ResponseNormalizer，空响应体返回 None 以触发降级回复。
"""

import json
from typing import Any, Dict, Optional

import httpx

from diagnostic_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError

_MAX_ERROR_TEXT = 500


class HttpDiagnosticClient:
    """诊断服务客户端实现。

    - name: 客户端名称（供日志/调试使用）。
    - process_user_message: 对外统一调用入口。
    """

    name = "http"

    def __init__(self, settings):
        # Settings 里包含 base_url、api_key、超时等配置
        self._settings = settings

    @property
    def endpoint(self) -> str:
        base = getattr(self._settings, "diagnostic_base_url", None)
        if not base:
            raise ValidationError(code="MISSING_BASE_URL", message="DIAGNOSTIC_BASE_URL not set")
        path = getattr(self._settings, "diagnostic_path", "") or ""
        if path and not path.startswith("/"):
            path = "/" + path
        return f"{base.rstrip('/')}{path}"

    async def process_user_message(self, message: str, session_id: Optional[str]) -> Any:
        """发送一条用户消息并返回原始响应体。"""

        url = self.endpoint
        payload = {"message": message, "sessionId": session_id}
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(url, json=payload, headers=self._headers())
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Diagnostic service rate limit", http_status=429)
        if resp.status_code >= 400:
            # 其他 HTTP 错误统一包装为 ApiError；JSON body 保留给上层提取错误文本，
            # 非 JSON 的响应体（如 HTML 错误页）只截断后记入 extra，不作为提示文本
            raise ApiError(
                code="API_ERROR",
                message=f"HTTP {resp.status_code}",
                http_status=resp.status_code,
                body=self._decode_json(resp.text),
                text=(resp.text or "")[:_MAX_ERROR_TEXT],
            )
        return self._parse_body(resp)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = getattr(self._settings, "diagnostic_api_key", None)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _parse_body(self, resp) -> Any:
        text = resp.text
        if not text or not text.strip():
            return None
        content_type = (resp.headers.get("content-type") or "").lower()
        if "json" in content_type:
            return resp.json()
        return text

    @staticmethod
    def _decode_json(text: str) -> Optional[Any]:
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return None
