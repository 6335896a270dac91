import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from src.main import app

runner = CliRunner()


@pytest.fixture
def cli_config(mock_config, tmp_path, workbook):
    """CLI用の設定（一時ディレクトリのストアとワークブック）"""
    workbook_path = tmp_path / "book.xlsx"
    workbook.save(workbook_path)
    mock_config.store_path = str(tmp_path / "changes.json")
    mock_config.workbook_path = str(workbook_path)
    # ログはpytest側で扱うため、stderrへのハンドラ設定は行わない
    with patch("src.main.config", mock_config), patch("src.main.setup_logging"):
        yield mock_config


class TestCli:
    """CLIコマンドのテスト"""

    @pytest.mark.unit
    def test_init_record_show(self, cli_config):
        """init -> record -> show で保留中の変更が表示されること"""
        assert runner.invoke(app, ["init"]).exit_code == 0
        assert runner.invoke(app, ["record", "0", "B2"]).exit_code == 0
        assert runner.invoke(app, ["record", "0", "A1:C1"]).exit_code == 0

        result = runner.invoke(app, ["show"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"0": ["A1:C1", "B2"]}

    @pytest.mark.unit
    def test_record_invalid_reference(self, cli_config):
        """不正な参照は終了コード1になること"""
        runner.invoke(app, ["init"])
        result = runner.invoke(app, ["record", "0", "1A"])
        assert result.exit_code == 1

    @pytest.mark.unit
    def test_record_without_init(self, cli_config):
        """初期化前の記録は終了コード1になること"""
        result = runner.invoke(app, ["record", "0", "A1"])
        assert result.exit_code == 1

    @pytest.mark.unit
    def test_flush_dry_run(self, cli_config):
        """dry-runではHTML本文が出力されること"""
        runner.invoke(app, ["init"])
        runner.invoke(app, ["record", "1", "C3"])

        result = runner.invoke(app, ["flush", "--dry-run"])

        assert result.exit_code == 0
        assert "<h3>Stock</h3>" in result.stdout

    @pytest.mark.unit
    def test_flush_dry_run_does_not_build_transport(self, cli_config):
        """dry-runではトランスポート設定が不正でも本文を出力できること"""
        cli_config.transport = "fax"
        cli_config.is_smtp_transport = False
        cli_config.validate.return_value = ["Invalid DIGEST_TRANSPORT: fax"]
        runner.invoke(app, ["init"])
        runner.invoke(app, ["record", "0", "B2"])

        with patch("src.main.create_transport") as mock_create:
            result = runner.invoke(app, ["flush", "--dry-run"])

        assert result.exit_code == 0
        assert "<h3>Orders</h3>" in result.stdout
        mock_create.assert_not_called()

    @pytest.mark.unit
    def test_record_negative_sheet_id(self, cli_config):
        """負のシートIDは終了コード1になること"""
        runner.invoke(app, ["init"])
        result = runner.invoke(app, ["record", "--", "-1", "A1"])

        assert result.exit_code == 1
        assert json.loads(runner.invoke(app, ["show"]).stdout) == {}

    @pytest.mark.unit
    def test_flush_sends_and_clears(self, cli_config):
        """flushで送信され、台帳が空になること"""
        runner.invoke(app, ["init"])
        runner.invoke(app, ["record", "0", "A1"])

        with patch("src.notifier.smtplib.SMTP") as mock_smtp:
            result = runner.invoke(app, ["flush"])

        assert result.exit_code == 0
        mock_smtp.return_value.__enter__.return_value.send_message.assert_called_once()
        assert json.loads(runner.invoke(app, ["show"]).stdout) == {}

    @pytest.mark.unit
    def test_flush_invalid_config(self, cli_config):
        """設定が不正な場合は送信せずに終了コード1になること"""
        cli_config.validate.return_value = ["DIGEST_SMTP_HOST is required for smtp transport"]

        result = runner.invoke(app, ["flush"])

        assert result.exit_code == 1
