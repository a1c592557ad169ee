#!/usr/bin/env python3
"""
Gitlab Webhook -> 飞书群 转发服务
接收 Gitlab 的 push、tag_push、issue、note、merge_request 事件，
按项目转发到配置的飞书群聊
"""

import json
import logging
import signal
import sys
import threading

from config import config
from feishu_utils.feishu_api import FeishuApiClient
from feishu_utils.dispatcher import GroupDispatcher
from gitlab_utils.receiver import ReceiverRegistry
from gitlab_utils.router import EventRouter

# 配置日志
logging.basicConfig(
    level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_router(routes, feishu_client):
    """创建事件路由，消息通过后台线程发送"""
    return EventRouter(routes, GroupDispatcher(feishu_client))


def setup(registry, router, path, secret, port):
    """
    把路由的各事件回调注册到 (path, secret, port) 对应的 receiver

    Returns:
        WebhookReceiver
    """
    receiver = registry.get_receiver(path, secret, port)
    router.register(receiver)
    return receiver


def main():
    # 验证配置
    try:
        config.validate()
        routes = config.load_routes()
        logger.info("✅ 配置验证通过")
    except ValueError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)

    logger.info("=" * 60)
    logger.info("Gitlab Webhook 转发服务启动中...")
    logger.info("配置: %s", json.dumps(config.show_config(), ensure_ascii=False))
    for project, groups in routes.items():
        logger.info("  - %s -> %s", project, ", ".join(groups))
    logger.info("=" * 60)

    feishu_client = FeishuApiClient(config.APP_ID, config.APP_SECRET, config.LARK_HOST)
    router = create_router(routes, feishu_client)

    registry = ReceiverRegistry(config.HOST)
    setup(registry, router, config.WEBHOOK_PATH, config.GITLAB_SECRET, config.PORT)

    try:
        registry.listen()
    except OSError as e:
        logger.error("❌ 端口 %s 绑定失败: %s", config.PORT, e)
        registry.close()
        sys.exit(1)

    stop = threading.Event()

    def _shutdown(signum, frame):
        logger.info("收到信号 %s，准备退出", signum)
        stop.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        stop.wait()
    finally:
        registry.close()
        logger.info("服务已退出")


if __name__ == "__main__":
    main()
