"""
Gitlab Webhook 消息格式化
每种事件一个纯函数，返回要发送的文本；返回 None 表示不发送
"""

import re

# 连续空行（中间可以有空白字符）压缩成一个换行
_BLANK_LINES_RE = re.compile(r"\n\s*\n")
# after 全为 0 表示分支/标签被删除
_ZERO_SHA_RE = re.compile(r"^0+$")
# "refs/tags/" 的长度
_TAG_PREFIX_LENGTH = 10


def collapse_blank_lines(text):
    """压缩文本中的连续空行，GitLab 中 description 可能为 null"""
    if not text:
        return ""
    return _BLANK_LINES_RE.sub("\n", text)


def _project_path(data):
    return data["project"]["path_with_namespace"]


def format_push(data):
    """
    格式化 push 事件

    Args:
        data: GitLab push 事件数据

    Returns:
        str | None: 消息内容，删除分支时返回 None
    """
    # 不显示分支删除（合并请求合并后删除源分支也会触发）
    if _ZERO_SHA_RE.match(data.get("after") or ""):
        return None

    lines = [
        f"[GitLab] Push ({_project_path(data)})",
        f"Ref: {data['ref']}",
        f"User: {data['user_name']}",
    ]
    lines.extend(collapse_blank_lines(commit.get("message")) for commit in data.get("commits") or [])
    return "\n".join(lines)


def format_tag_push(data):
    """格式化 tag_push 事件"""
    tag = data["ref"][_TAG_PREFIX_LENGTH:]
    return f"[GitLab] {_project_path(data)} published tag {tag}"


def format_issue(data):
    """
    格式化 issue 事件，只处理新建 issue

    Args:
        data: GitLab issue 事件数据

    Returns:
        str | None: 消息内容
    """
    attrs = data["object_attributes"]
    if attrs.get("action") != "open":
        return None

    return "\n".join([
        f"[GitLab] Issue Opened ({_project_path(data)}#{attrs['iid']})",
        f"Title: {attrs['title']}",
        f"User: {data['user']['name']}",
        f"URL: {attrs['url']}",
        collapse_blank_lines(attrs.get("description")),
    ])


# noteable_type -> 标题
_NOTE_HEADERS = {
    "Commit": lambda path, data: f"[GitLab] Commit Comment ({path})",
    "MergeRequest": lambda path, data: f"[GitLab] Merge Request Comment ({path}#{data['merge_request']['iid']})",
    "Issue": lambda path, data: f"[GitLab] Issue Comment ({path}#{data['issue']['iid']})",
}


def format_note(data):
    """
    格式化 note（评论）事件
    只处理 Commit、MergeRequest、Issue 上的评论，代码片段等其他类型忽略

    Args:
        data: GitLab note 事件数据

    Returns:
        str | None: 消息内容
    """
    attrs = data["object_attributes"]
    header = _NOTE_HEADERS.get(attrs.get("noteable_type"))
    if header is None:
        return None

    return "\n".join([
        header(_project_path(data), data),
        f"User: {data['user']['name']}",
        f"URL: {attrs['url']}",
        collapse_blank_lines(attrs.get("note")),
    ])


def format_merge_request(data):
    """
    格式化 merge_request 事件，只处理新建合并请求

    Args:
        data: GitLab merge_request 事件数据

    Returns:
        str | None: 消息内容
    """
    attrs = data["object_attributes"]
    if attrs.get("action") != "open":
        return None

    target = f"{attrs['target']['path_with_namespace']}/{attrs['target_branch']}"
    source = f"{attrs['source']['path_with_namespace']}/{attrs['source_branch']}"
    return "\n".join([
        f"[GitLab] Pull Request Opened ({_project_path(data)}#{attrs['iid']})",
        f"{target} <- {source}",
        f"User: {data['user']['name']}",
        f"URL: {attrs['url']}",
        collapse_blank_lines(attrs.get("title")),
    ])


# object_kind -> 格式化函数
FORMATTERS = {
    "push": format_push,
    "tag_push": format_tag_push,
    "issue": format_issue,
    "note": format_note,
    "merge_request": format_merge_request,
}


def format_event(kind, data):
    """
    按事件类型格式化消息

    Args:
        kind: 事件类型（object_kind）
        data: 事件数据

    Returns:
        str | None: 消息内容，不支持的事件类型返回 None
    """
    formatter = FORMATTERS.get(kind)
    if formatter is None:
        return None
    return formatter(data)
