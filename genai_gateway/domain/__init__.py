"""领域层模型。

包含：
- models: Part / Message / GenerationRequest / GenerationResult 等统一模型。
- conversation: 只追加的会话历史 Conversation。
- exceptions: 业务异常类型定义。
"""
