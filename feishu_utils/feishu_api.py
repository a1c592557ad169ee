#!/usr/bin/env python3
"""
飞书API客户端
用于发送消息到飞书群聊
"""

import json
import logging
import threading
import time

import requests

logger = logging.getLogger(__name__)


class FeishuApiClient:
    """飞书API客户端"""

    TENANT_ACCESS_TOKEN_URI = "/open-apis/auth/v3/tenant_access_token/internal"
    MESSAGE_URI = "/open-apis/im/v1/messages"
    # token 提前刷新的秒数
    TOKEN_REFRESH_MARGIN = 60
    REQUEST_TIMEOUT = 10

    def __init__(self, app_id, app_secret, lark_host="https://open.feishu.cn"):
        """
        初始化飞书API客户端

        Args:
            app_id: 应用ID
            app_secret: 应用密钥
            lark_host: 飞书API地址
        """
        self._app_id = app_id
        self._app_secret = app_secret
        self._lark_host = lark_host.rstrip("/")
        self._tenant_access_token = ""
        self._token_expire_at = 0.0
        self._token_lock = threading.Lock()

    @property
    def tenant_access_token(self):
        """获取tenant_access_token"""
        return self._tenant_access_token

    def send_text(self, chat_id, text):
        """
        发送文本消息到群聊

        Args:
            chat_id: 群聊ID
            text: 文本内容
        """
        return self.send("chat_id", chat_id, "text", json.dumps({"text": text}, ensure_ascii=False))

    def send(self, receive_id_type, receive_id, msg_type, content):
        """
        发送消息

        Args:
            receive_id_type: 接收者ID类型 (open_id, chat_id, user_id等)
            receive_id: 接收者ID
            msg_type: 消息类型 (text, post, image, interactive等)
            content: 消息内容（JSON字符串格式）
        """
        self._authorize_tenant_access_token()

        url = f"{self._lark_host}{self.MESSAGE_URI}?receive_id_type={receive_id_type}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.tenant_access_token}",
        }
        req_body = {
            "receive_id": receive_id,
            "content": content,
            "msg_type": msg_type,
        }

        logger.info("发送消息: %s=%s, msg_type=%s", receive_id_type, receive_id, msg_type)
        resp = requests.post(url=url, headers=headers, json=req_body, timeout=self.REQUEST_TIMEOUT)
        self._check_error_response(resp)

        logger.info("消息发送成功: %s=%s", receive_id_type, receive_id)
        return resp.json()

    def _authorize_tenant_access_token(self):
        """
        获取tenant_access_token，未过期时复用缓存
        文档: https://open.feishu.cn/document/ukTMukTMukTM/ukDNz4SO0MjL5QzM/auth-v3/auth/tenant_access_token_internal
        """
        with self._token_lock:
            if self._tenant_access_token and time.monotonic() < self._token_expire_at:
                return

            url = f"{self._lark_host}{self.TENANT_ACCESS_TOKEN_URI}"
            req_body = {
                "app_id": self._app_id,
                "app_secret": self._app_secret
            }

            logger.debug("获取tenant_access_token...")
            response = requests.post(url, json=req_body, timeout=self.REQUEST_TIMEOUT)
            self._check_error_response(response)

            response_dict = response.json()
            self._tenant_access_token = response_dict.get("tenant_access_token")
            expire = int(response_dict.get("expire", 0))
            self._token_expire_at = time.monotonic() + max(expire - self.TOKEN_REFRESH_MARGIN, 0)
            logger.debug("tenant_access_token获取成功, expire=%s", expire)

    @staticmethod
    def _check_error_response(resp):
        """
        检查响应是否包含错误信息

        Args:
            resp: requests响应对象

        Raises:
            FeishuApiException: 当响应包含错误时
        """
        if resp.status_code != 200:
            logger.error("HTTP请求失败: %s - %s", resp.status_code, resp.text)
            resp.raise_for_status()

        response_dict = resp.json()
        code = response_dict.get("code", -1)

        if code != 0:
            msg = response_dict.get("msg", "未知错误")
            logger.error("飞书API错误: code=%s, msg=%s", code, msg)
            raise FeishuApiException(code=code, msg=msg)


class FeishuApiException(Exception):
    """飞书API异常"""

    def __init__(self, code=0, msg=None):
        self.code = code
        self.msg = msg
        super().__init__(f"飞书API错误 [{code}]: {msg}")

    def __str__(self):
        return f"飞书API错误 [{self.code}]: {self.msg}"

    __repr__ = __str__
