"""
変更ダイジェストサービス

編集トリガー（on_edit）と定期トリガー（on_schedule）の処理を担当する
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.change_ledger import ChangeLedger
from src.error_messages import ConfigurationError
from src.excel import RenderedBlock
from src.notifier import NotificationTransport
from src.sheet_host import SheetHost
from src.summary_builder import SummaryBuilder

logger = logging.getLogger(__name__)


@dataclass
class DigestResult:
    """on_scheduleの実行結果"""

    delivered: bool
    change_count: int = 0
    blocks: list[RenderedBlock] = field(default_factory=list)
    html: str = ""


class ChangeDigestService:
    """
    変更の記録と、まとめ通知の送信

    配信ポリシーは at-least-once: 送信成功後にのみ処理済みの変更を台帳から取り除く。
    送信に失敗した変更は次回に再送される（重複通知はあり得るが、取りこぼしは無い）。
    """

    def __init__(
        self,
        ledger: ChangeLedger,
        host: SheetHost,
        transport: NotificationTransport | None,
        subject: str = "Spreadsheet changes",
        highlight_color: str = "#FF0000",
    ):
        self.ledger = ledger
        self.host = host
        self.transport = transport
        self.subject = subject
        self.builder = SummaryBuilder(host, highlight_color=highlight_color)

    def on_edit(self, sheet_id: int, reference: str) -> bool:
        """編集イベント: 変更セルを台帳に記録"""
        return self.ledger.record(sheet_id, reference)

    def on_schedule(self, dry_run: bool = False) -> DigestResult:
        """
        定期イベント: 保留中の変更をまとめて1件の通知として送信

        Args:
            dry_run: Trueの場合は送信・台帳更新を行わずに本文だけ構築する

        Returns:
            DigestResult
        """
        snapshot = self.ledger.flush()
        change_count = sum(len(entries) for entries in snapshot.values())
        if change_count == 0:
            logger.info("No pending changes; nothing to send")
            return DigestResult(delivered=False)

        blocks = self.builder.build_summary(snapshot)
        skipped = {
            sheet_id: snapshot[sheet_id] for sheet_id in self.builder.skipped_sheet_ids
        }
        if skipped:
            logger.warning(
                f"Dropping changes for unknown sheets: {sorted(skipped)}"
            )

        if not blocks:
            # 解決できないシートの変更しか無い場合は送信せず、その変更だけ取り除く
            if skipped and not dry_run:
                self.ledger.acknowledge(skipped)
            return DigestResult(delivered=False, change_count=change_count)

        generated_at = datetime.now(self._timezone())
        html_body = self.builder.compose_html(
            blocks, self.host.workbook_name, self.host.workbook_url, generated_at
        )
        text_body = self.builder.compose_text(
            blocks, self.host.workbook_name, self.host.workbook_url
        )

        if dry_run:
            logger.info(
                f"Dry run: built {len(blocks)} blocks for {change_count} pending changes"
            )
            return DigestResult(
                delivered=False, change_count=change_count, blocks=blocks, html=html_body
            )

        subject = self.subject
        if self.host.workbook_name:
            subject = f"{subject}: {self.host.workbook_name}"

        if self.transport is None:
            raise ConfigurationError(
                message="No notification transport is configured.",
                solution="Set DIGEST_TRANSPORT, or run with --dry-run.",
            )

        # 送信に失敗した場合は例外が伝播し、台帳はそのまま残る
        # 成功時は飛ばしたシートの変更も含めてスナップショット全体を取り除く
        self.transport.send(subject, text_body, html_body)
        self.ledger.acknowledge(snapshot)

        logger.info(
            f"Delivered digest of {change_count} changes in {len(blocks)} blocks"
        )
        return DigestResult(
            delivered=True, change_count=change_count, blocks=blocks, html=html_body
        )

    def _timezone(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.host.timezone or "UTC")
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone '{self.host.timezone}', falling back to UTC")
            return ZoneInfo("UTC")
