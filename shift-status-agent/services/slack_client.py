import logging
import sys

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """コンソール出力による通知（フォールバック用）"""

    def send(self, message: str) -> bool:
        print(f"[シフト通知] {message}", file=sys.stdout)
        return True

    def send_error(self, error: str) -> bool:
        print(f"[シフトエラー] {error}", file=sys.stderr)
        return True


class SlackNotifier:
    """Slack APIによる通知サービス"""

    def __init__(self, token: str, channel: str):
        self._channel = channel
        self._client = None
        self._fallback = ConsoleNotifier()

        if token:
            try:
                from slack_sdk import WebClient
                self._client = WebClient(token=token)
            except Exception as e:
                logger.warning("Slackクライアントを初期化できません。コンソール通知を使います: %s", e)

    def send(self, message: str) -> bool:
        """メッセージ送信（失敗時はフォールバック）"""
        if self._client is None:
            return self._fallback.send(message)

        try:
            self._client.chat_postMessage(channel=self._channel, text=message)
            return True
        except Exception as e:
            logger.error("Slack通知に失敗しました: %s", e)
            return False

    def send_error(self, error: str) -> bool:
        """エラー通知"""
        message = f"❌ シフトステータスを同期できませんでした。手動確認をお願いします（エラー: {error}）"
        return self.send(message)
