"""
設定管理モジュール
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# .envファイルを読み込み
load_dotenv()


class DigestConfig:
    """変更ダイジェスト設定クラス"""

    def __init__(self):
        # 保留中の変更を保存するストア設定
        self.store_path = os.getenv("DIGEST_STORE_PATH", ".sheet_changes.json")
        self.store_key = os.getenv("DIGEST_STORE_KEY", "pendingChanges")
        self.max_retries = int(os.getenv("DIGEST_MAX_RETRIES", "5"))
        self.max_range_cells = int(os.getenv("DIGEST_MAX_RANGE_CELLS", "100000"))

        # ワークブック設定
        self.workbook_path = os.getenv("DIGEST_WORKBOOK_PATH", "")
        self.workbook_url = os.getenv("DIGEST_WORKBOOK_URL", "")
        self.timezone = os.getenv("DIGEST_TIMEZONE", "UTC")

        # 通知設定
        self.transport = os.getenv("DIGEST_TRANSPORT", "smtp").strip().lower()
        self.recipients = self._parse_recipients(os.getenv("DIGEST_RECIPIENTS", ""))
        self.subject = os.getenv("DIGEST_SUBJECT", "Spreadsheet changes")
        self.sender = os.getenv("DIGEST_SENDER", "")

        # SMTP設定
        self.smtp_host = os.getenv("DIGEST_SMTP_HOST", "")
        self.smtp_port = int(os.getenv("DIGEST_SMTP_PORT", "587"))
        self.smtp_username = os.getenv("DIGEST_SMTP_USERNAME", "")
        self.smtp_password = os.getenv("DIGEST_SMTP_PASSWORD", "")
        self.smtp_use_tls = os.getenv("DIGEST_SMTP_USE_TLS", "true").lower() in (
            "1",
            "true",
            "yes",
        )

        # Webhook設定
        self.webhook_url = os.getenv("DIGEST_WEBHOOK_URL", "")

        # 表示設定
        self.highlight_color = os.getenv("DIGEST_HIGHLIGHT_COLOR", "#FF0000")
        self.log_level = os.getenv("DIGEST_LOG_LEVEL", "INFO").upper()

    @property
    def is_smtp_transport(self) -> bool:
        """メール送信モードかどうか"""
        return self.transport == "smtp"

    @property
    def is_webhook_transport(self) -> bool:
        """Webhook送信モードかどうか"""
        return self.transport == "webhook"

    @property
    def workbook_name(self) -> str:
        """ワークブックの表示名（ファイル名から拡張子を除いたもの）"""
        if not self.workbook_path:
            return ""
        return Path(self.workbook_path).stem

    def _parse_recipients(self, recipients_str: str) -> list[str]:
        """宛先文字列をリストに変換"""
        if not recipients_str:
            return []
        return [
            address.strip()
            for address in recipients_str.split(",")
            if address.strip()
        ]

    def validate(self) -> list[str]:
        """設定の検証を行い、エラーメッセージのリストを返す"""
        errors = []

        if not self.workbook_path:
            errors.append("DIGEST_WORKBOOK_PATH is required")
        elif not Path(self.workbook_path).exists():
            errors.append(f"Workbook file not found: {self.workbook_path}")

        if self.max_retries < 1:
            errors.append("DIGEST_MAX_RETRIES must be at least 1")

        if self.max_range_cells < 1:
            errors.append("DIGEST_MAX_RANGE_CELLS must be at least 1")

        if self.is_smtp_transport:
            if not self.smtp_host:
                errors.append("DIGEST_SMTP_HOST is required for smtp transport")
            if not self.sender:
                errors.append("DIGEST_SENDER is required for smtp transport")
            if not self.recipients:
                errors.append("DIGEST_RECIPIENTS is required for smtp transport")
        elif self.is_webhook_transport:
            if not self.webhook_url:
                errors.append("DIGEST_WEBHOOK_URL is required for webhook transport")
        else:
            errors.append(
                f"Invalid DIGEST_TRANSPORT: {self.transport}. Use 'smtp' or 'webhook'"
            )

        return errors

    @property
    def is_valid(self) -> bool:
        """設定が有効かどうかを返す"""
        return len(self.validate()) == 0


# グローバル設定インスタンス
config = DigestConfig()
