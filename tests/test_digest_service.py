from unittest.mock import Mock

import pytest

from src.digest_service import ChangeDigestService
from src.error_messages import ConfigurationError, DeliveryError, InvalidFormatError


@pytest.fixture
def transport():
    return Mock()


@pytest.fixture
def service(ledger, sheet_host, transport):
    return ChangeDigestService(
        ledger=ledger,
        host=sheet_host,
        transport=transport,
        subject="Spreadsheet changes",
    )


class TestChangeDigestService:
    """ChangeDigestService のテスト"""

    @pytest.mark.unit
    def test_on_edit_records_change(self, service, ledger):
        """編集イベントで変更が台帳に記録されること"""
        assert service.on_edit(0, "B2") is True
        assert ledger.flush() == {0: ["B2"]}

    @pytest.mark.unit
    def test_on_edit_invalid_reference(self, service, ledger):
        """不正な参照はInvalidFormatErrorとなり記録されないこと"""
        with pytest.raises(InvalidFormatError):
            service.on_edit(0, "")
        assert ledger.flush() == {}

    @pytest.mark.unit
    def test_on_schedule_without_changes(self, service, transport):
        """保留中の変更が無い場合は送信しないこと"""
        result = service.on_schedule()

        assert result.delivered is False
        assert result.change_count == 0
        transport.send.assert_not_called()

    @pytest.mark.unit
    def test_on_schedule_sends_single_notification(self, service, ledger, transport):
        """複数の変更が1件の通知にまとめられ、送信後に台帳が空になること"""
        service.on_edit(0, "A1:B4")
        service.on_edit(0, "F8")
        service.on_edit(1, "C3")

        result = service.on_schedule()

        assert result.delivered is True
        assert result.change_count == 3
        assert len(result.blocks) == 3
        transport.send.assert_called_once()
        subject, text_body, html_body = transport.send.call_args.args
        assert subject == "Spreadsheet changes: book"
        assert "Orders" in text_body
        assert html_body.count("<table") == 3
        assert ledger.flush() == {}

    @pytest.mark.unit
    def test_on_schedule_delivery_failure_keeps_changes(self, service, ledger, transport):
        """送信失敗時は台帳の変更が残ること（at-least-once）"""
        service.on_edit(0, "A1")
        transport.send.side_effect = DeliveryError(message="SMTP down")

        with pytest.raises(DeliveryError):
            service.on_schedule()

        assert ledger.flush() == {0: ["A1"]}

    @pytest.mark.unit
    def test_on_schedule_dry_run(self, service, ledger, transport):
        """dry-runでは送信も台帳更新も行わないこと"""
        service.on_edit(0, "A1")

        result = service.on_schedule(dry_run=True)

        assert result.delivered is False
        assert "<table" in result.html
        transport.send.assert_not_called()
        assert ledger.flush() == {0: ["A1"]}

    @pytest.mark.unit
    def test_on_schedule_skips_deleted_sheet(self, service, ledger, transport):
        """存在しないシートの変更は飛ばして送信し、台帳からは取り除くこと"""
        service.on_edit(0, "B2")
        service.on_edit(7, "A1")

        result = service.on_schedule()

        assert result.delivered is True
        assert [block.sheet_id for block in result.blocks] == [0]
        transport.send.assert_called_once()
        assert ledger.flush() == {}

        # 2回目は送るものが無い
        assert service.on_schedule().delivered is False
        assert transport.send.call_count == 1

    @pytest.mark.unit
    def test_on_schedule_only_deleted_sheets(self, service, ledger, transport):
        """存在しないシートの変更だけの場合は送信せず、その変更を取り除くこと"""
        service.on_edit(7, "A1")

        result = service.on_schedule()

        assert result.delivered is False
        assert result.change_count == 1
        transport.send.assert_not_called()
        assert ledger.flush() == {}

    @pytest.mark.unit
    def test_on_schedule_dry_run_keeps_deleted_sheets(self, service, ledger, transport):
        """dry-runでは存在しないシートの変更も台帳に残ること"""
        service.on_edit(7, "A1")

        service.on_schedule(dry_run=True)

        transport.send.assert_not_called()
        assert ledger.flush() == {7: ["A1"]}

    @pytest.mark.unit
    def test_on_schedule_deleted_sheet_delivery_failure(self, service, ledger, transport):
        """送信に失敗した場合は存在しないシートの変更も含めて残ること"""
        service.on_edit(0, "B2")
        service.on_edit(7, "A1")
        transport.send.side_effect = DeliveryError(message="SMTP down")

        with pytest.raises(DeliveryError):
            service.on_schedule()

        assert ledger.flush() == {0: ["B2"], 7: ["A1"]}

    @pytest.mark.unit
    def test_dry_run_without_transport(self, ledger, sheet_host):
        """トランスポート無しでもdry-runは本文を構築できること"""
        service = ChangeDigestService(ledger=ledger, host=sheet_host, transport=None)
        service.on_edit(0, "A1")

        result = service.on_schedule(dry_run=True)
        assert "<table" in result.html

        with pytest.raises(ConfigurationError):
            service.on_schedule()
        assert ledger.flush() == {0: ["A1"]}

    @pytest.mark.unit
    def test_on_schedule_repeated_is_noop(self, service, transport):
        """送信後の再実行は何もしないこと"""
        service.on_edit(0, "A1")
        service.on_schedule()
        result = service.on_schedule()

        assert result.delivered is False
        assert transport.send.call_count == 1
