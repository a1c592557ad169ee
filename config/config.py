#!/usr/bin/env python3
"""
配置管理模块
所有配置统一从环境变量读取
"""

import json
import os
from types import MappingProxyType

from dotenv import load_dotenv, find_dotenv

# 加载环境变量
load_dotenv(find_dotenv())


def parse_routes(raw):
    """
    解析项目 -> 飞书群 的路由配置

    Args:
        raw: JSON 字符串或已解析的 dict，如 {"group/project": ["oc_xxx"]}

    Returns:
        MappingProxyType: {path_with_namespace: (chat_id, ...)}

    Raises:
        ValueError: 格式不正确时
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw) if raw.strip() else {}
        except ValueError as e:
            raise ValueError(f"路由配置不是合法 JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ValueError("路由配置必须是 JSON 对象: {\"group/project\": [\"chat_id\", ...]}")

    routes = {}
    for project, groups in raw.items():
        # 单个群可以直接写字符串
        if isinstance(groups, str):
            groups = [groups]
        if not isinstance(groups, list) or not all(isinstance(g, str) and g for g in groups):
            raise ValueError(f"项目 {project} 的群配置必须是 chat_id 字符串列表")
        routes[project] = tuple(dict.fromkeys(groups))
    return MappingProxyType(routes)


class Config:
    """配置类 - 统一管理所有配置项"""

    # ==================== 飞书应用配置 ====================
    APP_ID = os.getenv("APP_ID")
    APP_SECRET = os.getenv("APP_SECRET")
    LARK_HOST = os.getenv("LARK_HOST", "https://open.feishu.cn")

    # ==================== Gitlab Webhook 配置 ====================
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "12140"))
    # X-Gitlab-Token，留空则不校验
    GITLAB_SECRET = os.getenv("GITLAB_SECRET", "")
    WEBHOOK_PATH = os.getenv("WEBHOOK_PATH", "/")
    # 项目到群的路由，直接写 JSON 或者指定 JSON 文件，同时配置时以文件为准
    GITLAB_ROUTES = os.getenv("GITLAB_ROUTES", "")
    GITLAB_ROUTES_FILE = os.getenv("GITLAB_ROUTES_FILE", "")

    # ==================== 日志配置 ====================
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def load_routes(cls):
        """
        读取路由配置

        Returns:
            MappingProxyType: {path_with_namespace: (chat_id, ...)}
        """
        if cls.GITLAB_ROUTES_FILE:
            try:
                with open(cls.GITLAB_ROUTES_FILE, encoding="utf-8") as f:
                    return parse_routes(json.load(f))
            except OSError as e:
                raise ValueError(f"无法读取路由配置文件 {cls.GITLAB_ROUTES_FILE}: {e}") from e
            except json.JSONDecodeError as e:
                raise ValueError(f"路由配置文件不是合法 JSON: {e}") from e
        return parse_routes(cls.GITLAB_ROUTES)

    @classmethod
    def validate(cls):
        """
        验证必需的配置项是否已设置
        """
        errors = []

        # 验证飞书配置
        if not cls.APP_ID:
            errors.append("APP_ID 未配置")
        if not cls.APP_SECRET:
            errors.append("APP_SECRET 未配置")

        # 验证 webhook 配置
        if not 0 < cls.PORT < 65536:
            errors.append(f"PORT 不合法: {cls.PORT}")
        try:
            if not cls.load_routes():
                errors.append("GITLAB_ROUTES 未配置任何项目")
        except ValueError as e:
            errors.append(str(e))

        if errors:
            error_msg = "\n".join(errors)
            raise ValueError(f"配置验证失败:\n{error_msg}\n\n请检查 .env 文件配置")

        return True

    @classmethod
    def show_config(cls):
        """显示当前配置（隐藏敏感信息）"""
        config_info = {
            "飞书配置": {
                "APP_ID": cls.APP_ID,
                "APP_SECRET": "***" if cls.APP_SECRET else None,
                "LARK_HOST": cls.LARK_HOST,
            },
            "Webhook配置": {
                "host": cls.HOST,
                "port": cls.PORT,
                "path": cls.WEBHOOK_PATH,
                "secret": "***" if cls.GITLAB_SECRET else None,
                "routes_file": cls.GITLAB_ROUTES_FILE or None,
            },
            "服务配置": {
                "log_level": cls.LOG_LEVEL,
            }
        }
        return config_info


# 创建全局配置实例
config = Config()


if __name__ == "__main__":
    """测试配置"""
    print("=" * 60)
    print("配置信息:")
    print("=" * 60)
    print(json.dumps(config.show_config(), ensure_ascii=False, indent=2))
    print("=" * 60)

    try:
        config.validate()
        print("✅ 配置验证通过")
    except ValueError as e:
        print(f"❌ 配置验证失败:\n{e}")
