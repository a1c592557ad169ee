"""
群消息异步发送
每条消息一个后台线程，不等待结果，失败只记录日志
"""

import logging
import threading

logger = logging.getLogger(__name__)


class GroupDispatcher:
    """fire-and-forget 的群消息发送器"""

    def __init__(self, feishu_client):
        self._client = feishu_client

    def send_text(self, chat_id, text):
        """
        提交一条群消息，立即返回

        Args:
            chat_id: 群聊ID
            text: 文本内容

        Returns:
            threading.Thread: 发送线程
        """
        thread = threading.Thread(
            target=self._send,
            args=(chat_id, text),
            name=f"feishu-send-{chat_id}",
            daemon=True
        )
        thread.start()
        return thread

    def _send(self, chat_id, text):
        try:
            self._client.send_text(chat_id, text)
        except Exception as e:
            logger.error("发送群消息失败: chat_id=%s, error=%s", chat_id, e, exc_info=True)
