"""
Gitlab 事件路由
根据项目 path_with_namespace 查找要通知的飞书群，格式化后转发
"""

import logging
from types import MappingProxyType

from .msg_format import FORMATTERS

logger = logging.getLogger(__name__)


class EventRouter:
    """Gitlab 事件 -> 飞书群 路由"""

    def __init__(self, routes, dispatcher, formatters=None):
        """
        初始化路由

        Args:
            routes: {project path_with_namespace: [chat_id, ...]}
            dispatcher: 发送器，需要提供 send_text(chat_id, text)
            formatters: {object_kind: 格式化函数}，默认使用 FORMATTERS
        """
        self._routes = MappingProxyType({
            project: tuple(dict.fromkeys(groups))
            for project, groups in routes.items()
        })
        self._dispatcher = dispatcher
        self._formatters = MappingProxyType(dict(formatters or FORMATTERS))

    @property
    def routes(self):
        return self._routes

    @property
    def dispatcher(self):
        return self._dispatcher

    @property
    def kinds(self):
        """支持的事件类型"""
        return tuple(self._formatters)

    def groups_for(self, project_path):
        """获取项目对应的群列表，未配置时返回空元组"""
        return self._routes.get(project_path, ())

    def route(self, kind, data):
        """
        处理一个 Gitlab 事件

        未配置的项目、不支持的事件和不需要发送的事件都直接忽略
        发送是 fire-and-forget，某个群发送失败不影响其他群

        Args:
            kind: 事件类型（object_kind）
            data: 事件数据
        """
        project_path = (data.get("project") or {}).get("path_with_namespace")
        groups = self.groups_for(project_path)
        if not groups:
            logger.debug("项目未配置通知群，忽略: kind=%s, project=%s", kind, project_path)
            return

        formatter = self._formatters.get(kind)
        if formatter is None:
            logger.debug("不支持的事件类型，忽略: %s", kind)
            return

        message = formatter(data)
        if not message:
            logger.info("事件无需通知: kind=%s, project=%s", kind, project_path)
            return

        logger.info("转发 Gitlab 事件: kind=%s, project=%s, 群数量=%d", kind, project_path, len(groups))
        for chat_id in groups:
            try:
                self._dispatcher.send_text(chat_id, message)
            except Exception as e:
                logger.error("提交群消息失败: chat_id=%s, error=%s", chat_id, e, exc_info=True)

    def handler(self, kind):
        """返回注册到 WebhookReceiver 的回调函数"""
        def _handle(data):
            self.route(kind, data)
        _handle.__name__ = f"route_{kind}"
        return _handle

    def register(self, receiver):
        """把所有支持的事件类型注册到 receiver"""
        for kind in self._formatters:
            receiver.register(kind, self.handler(kind))
