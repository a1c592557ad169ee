"""
Gitlab Webhook 消息处理模块
包含 webhook 接收、事件路由、消息格式化等功能
"""

from .msg_format import FORMATTERS, format_event
from .receiver import HttpListener, ReceiverRegistry, WebhookReceiver
from .router import EventRouter

__all__ = [
    'FORMATTERS',
    'format_event',
    'EventRouter',
    'HttpListener',
    'ReceiverRegistry',
    'WebhookReceiver',
]
