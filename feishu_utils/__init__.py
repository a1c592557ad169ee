"""
飞书工具模块
包含飞书API客户端、群消息发送等功能
"""

from .feishu_api import FeishuApiClient, FeishuApiException
from .dispatcher import GroupDispatcher

__all__ = [
    'FeishuApiClient',
    'FeishuApiException',
    'GroupDispatcher',
]
