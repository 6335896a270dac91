import json
import logging
import sys

import typer

from .change_ledger import ChangeLedger
from .config import config
from .digest_service import ChangeDigestService
from .error_messages import ChangeDigestError
from .notifier import create_transport
from .property_store import JsonFilePropertyStore
from .sheet_host import OpenpyxlSheetHost

# typerアプリケーションを作成
app = typer.Typer()


def setup_logging():
    """
    すべてのログ出力をstderrに向けるロギングを設定します。
    これにより、showコマンドのstdout出力が汚染されるのを防ぎます。
    """
    log_formatter = logging.Formatter("%(asctime)s [%(levelname)s] - %(message)s")
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.log_level, logging.INFO))

    # 既存のハンドラをクリア
    root_logger.handlers.clear()

    # stderrにログを出力するハンドラを追加
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(log_formatter)
    root_logger.addHandler(stream_handler)


def _create_ledger() -> ChangeLedger:
    store = JsonFilePropertyStore(config.store_path)
    return ChangeLedger(
        store,
        key=config.store_key,
        max_retries=config.max_retries,
        max_range_cells=config.max_range_cells,
    )


@app.callback()
def main():
    """
    スプレッドシートの変更をまとめて通知します。
    """
    setup_logging()


@app.command()
def init():
    """
    変更台帳を初期化します（保留中の変更は破棄されます）。
    """
    try:
        _create_ledger().reset()
    except ChangeDigestError as e:
        logging.error(str(e))
        raise typer.Exit(code=1)
    logging.info(f"Initialized change ledger at {config.store_path}")


@app.command()
def record(
    sheet_id: int = typer.Argument(..., help="変更されたシートのID（0始まり）。"),
    reference: str = typer.Argument(..., help="変更セルまたは範囲（例: 'B3', 'A2:C3'）。"),
):
    """
    編集イベント: 変更されたセルを台帳に記録します。
    """
    try:
        _create_ledger().record(sheet_id, reference)
    except ChangeDigestError as e:
        logging.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def show():
    """
    保留中の変更をJSONで表示します。
    """
    try:
        pending = _create_ledger().flush()
    except ChangeDigestError as e:
        logging.error(str(e))
        raise typer.Exit(code=1)
    typer.echo(json.dumps(pending, ensure_ascii=False, indent=2))


@app.command()
def flush(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="送信せずにHTML本文をstdoutに出力します。"
    ),
):
    """
    定期イベント: 保留中の変更をまとめて1件の通知として送信します。
    """
    errors = config.validate()
    if errors and not dry_run:
        for error in errors:
            logging.error(error)
        raise typer.Exit(code=1)

    try:
        host = OpenpyxlSheetHost.from_path(
            config.workbook_path,
            workbook_url=config.workbook_url,
            timezone=config.timezone,
        )
        # dry-runでは送信しないため、トランスポート設定が不完全でも動作させる
        transport = None if dry_run else create_transport(config)
        service = ChangeDigestService(
            ledger=_create_ledger(),
            host=host,
            transport=transport,
            subject=config.subject,
            highlight_color=config.highlight_color,
        )
        result = service.on_schedule(dry_run=dry_run)
    except (ChangeDigestError, OSError) as e:
        logging.error(str(e))
        raise typer.Exit(code=1)

    if dry_run and result.html:
        typer.echo(result.html)


if __name__ == "__main__":
    app()
