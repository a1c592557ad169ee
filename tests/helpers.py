"""Test doubles shared across test modules."""


class RecordingDispatcher:
    """Collects send_text calls instead of talking to Feishu."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send_text(self, chat_id, text):
        self.sent.append((chat_id, text))
        if chat_id in self.fail_for:
            raise RuntimeError(f"delivery to {chat_id} failed")
