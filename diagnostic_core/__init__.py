"""Diagnostic Core 顶层包。

该包提供诊断助手会话编排流水线的核心实现，
包括配置加载、领域模型、远端诊断能力适配、响应归一化、
降级回复、回复格式化、会话状态机与展示层适配等能力。
"""

from diagnostic_core.api.service import build_store, run_diagnostic_chat

__all__ = ["build_store", "run_diagnostic_chat"]
