"""领域层模型与协议。

包含：
- models: 归一化调用结果 InvocationOutcome 与 Notifier 协议。
- conversation: Message / ConversationSession 及其只读快照。
- exceptions: 业务异常类型定义与错误文本提取。
"""
