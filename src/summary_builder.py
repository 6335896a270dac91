"""
変更サマリー構築モジュール

保留中の変更をシートごとに統合し、連続行範囲ごとにハイライト付きHTMLテーブルを描画する
"""

import html
import logging
from datetime import datetime

from src.error_messages import InvalidArgumentError
from src.excel import (
    ContiguousRowRange,
    ExcelCellReference,
    ExcelRangeCompressor,
    ExcelRangeNormalizer,
    ExcelStyleExtractor,
    RegionSnapshot,
    RenderedBlock,
)
from src.sheet_host import SheetHost

logger = logging.getLogger(__name__)

_CELL_BORDER = "1px solid #D0D0D0"
_HEADER_STYLE = "background-color:#F3F3F3;color:#666666;text-align:center;font-size:9pt"


class SummaryBuilder:
    """保留中の変更からRenderedBlockを構築"""

    def __init__(self, host: SheetHost, highlight_color: str = "#FF0000"):
        self.host = host
        self.highlight_color = highlight_color
        # 直近のbuild_summaryでホストが解決できず飛ばしたシートID
        self.skipped_sheet_ids: list[int] = []

    def build_summary(self, pending: dict[int, list[str]]) -> list[RenderedBlock]:
        """
        保留中の変更を描画ブロックに変換

        - シートごとに全指定子を展開してセル・行を統合
        - 右端の列はシート内の全セルから決める（ブロックごとではない）
        - 行を連続行範囲に圧縮し、範囲ごとに "A{start}:{右端列}{end}" を描画

        Args:
            pending: シートID -> 変更指定子のリスト

        Returns:
            RenderedBlockのリスト（シートID昇順、シート内は行昇順）
            ホストが解決できないシートは飛ばし、そのIDをskipped_sheet_idsに残す

        Raises:
            InvalidArgumentError: pendingが空の場合
        """
        if not pending:
            raise InvalidArgumentError(
                message="There are no pending changes to summarize.",
                solution="Only build a summary when the ledger has pending changes.",
            )

        blocks: list[RenderedBlock] = []
        self.skipped_sheet_ids = []
        for sheet_id in sorted(pending):
            cells: set[str] = set()
            rows: set[int] = set()
            for entry in pending[sheet_id]:
                normalized = ExcelRangeNormalizer.normalize_range(entry)
                cells.update(normalized.cells)
                rows.update(normalized.rows)

            if not rows:
                continue

            sorted_cells = sorted(cells)
            rightmost = ExcelRangeNormalizer.rightmost_column(sorted_cells) or "A"
            row_ranges = ExcelRangeCompressor.compress(sorted(rows))

            try:
                sheet_blocks = self._build_sheet_blocks(
                    sheet_id, sorted_cells, row_ranges, rightmost
                )
            except InvalidArgumentError as e:
                # 削除済みシートなど、ホストが解決できないシートは飛ばして他のシートを送る
                logger.warning(f"Skipping sheet {sheet_id}: {e}")
                self.skipped_sheet_ids.append(sheet_id)
                continue
            blocks.extend(sheet_blocks)

        return blocks

    def _build_sheet_blocks(
        self,
        sheet_id: int,
        sorted_cells: list[str],
        row_ranges: list[ContiguousRowRange],
        rightmost: str,
    ) -> list[RenderedBlock]:
        sheet_name = self.host.get_sheet_name(sheet_id)

        logger.info(
            f"Sheet '{sheet_name}' ({sheet_id}): {len(sorted_cells)} changed cells "
            f"in {len(row_ranges)} row ranges, rightmost column {rightmost}"
        )

        blocks: list[RenderedBlock] = []
        for row_range in row_ranges:
            region = ExcelRangeCompressor.to_region(row_range, rightmost)
            snapshot = self.host.get_region(sheet_id, region)
            highlighted = self._cells_in_block(sorted_cells, row_range, rightmost)
            blocks.append(
                RenderedBlock(
                    sheet_id=sheet_id,
                    sheet_name=sheet_name,
                    row_range=row_range,
                    region=region,
                    html=self.render_table(snapshot, set(highlighted)),
                    highlighted=tuple(highlighted),
                )
            )
        return blocks

    def _cells_in_block(
        self, cells: list[str], row_range: ContiguousRowRange, rightmost: str
    ) -> list[str]:
        """ブロックの領域内にある変更セルを返す（行番号のみの指定子は除く）"""
        last_col = ExcelCellReference.column_to_index(rightmost)
        inside = []
        for cell in cells:
            if not ExcelRangeNormalizer.column_of(cell):
                continue
            coordinate = ExcelCellReference.parse_reference(cell)
            if row_range.contains(coordinate.row) and coordinate.col <= last_col:
                inside.append(cell)
        return inside

    def render_table(self, snapshot: RegionSnapshot, highlighted: set[str]) -> str:
        """
        RegionSnapshotをHTMLテーブルに描画

        先頭行に列文字、先頭列に行番号を付ける。変更セルは枠線をハイライト色にする。
        """
        col_count = len(snapshot.column_widths)
        columns = [
            ExcelCellReference.index_to_column(snapshot.start_col + offset)
            for offset in range(col_count)
        ]

        parts = [
            '<table style="border-collapse:collapse;table-layout:fixed">',
            "<colgroup>",
            '<col style="width:40px">',
        ]
        parts.extend(f'<col style="width:{width}px">' for width in snapshot.column_widths)
        parts.append("</colgroup>")

        parts.append("<tr>")
        parts.append(f'<th style="{_HEADER_STYLE};border:{_CELL_BORDER}"></th>')
        parts.extend(
            f'<th style="{_HEADER_STYLE};border:{_CELL_BORDER}">{column}</th>'
            for column in columns
        )
        parts.append("</tr>")

        for row_offset, row_values in enumerate(snapshot.values):
            row = snapshot.start_row + row_offset
            height = (
                snapshot.row_heights[row_offset]
                if row_offset < len(snapshot.row_heights)
                else ExcelStyleExtractor.height_to_pixels(None)
            )
            parts.append(f'<tr style="height:{height}px">')
            parts.append(f'<th style="{_HEADER_STYLE};border:{_CELL_BORDER}">{row}</th>')
            for col_offset, value in enumerate(row_values):
                reference = f"{columns[col_offset]}{row}"
                styles = dict(snapshot.styles[row_offset][col_offset])
                if reference in highlighted:
                    styles["border"] = f"2px solid {self.highlight_color}"
                else:
                    styles["border"] = _CELL_BORDER
                text = html.escape(str(value))
                parts.append(
                    f'<td style="{ExcelStyleExtractor.to_css(styles)}">{text}</td>'
                )
            parts.append("</tr>")

        parts.append("</table>")
        return "".join(parts)

    def compose_html(
        self,
        blocks: list[RenderedBlock],
        workbook_name: str,
        workbook_url: str,
        generated_at: datetime,
    ) -> str:
        """
        通知1件分のHTML本文を構築

        シートごとに見出しと変更行範囲を付け、ブロックを順に並べる
        """
        title = html.escape(workbook_name or "Spreadsheet")
        parts = [f"<h2>Changes in {title}</h2>"]
        parts.append(
            f"<p>Summary generated at {generated_at.strftime('%Y-%m-%d %H:%M %Z').strip()}</p>"
        )

        current_sheet: int | None = None
        for block in blocks:
            if block.sheet_id != current_sheet:
                current_sheet = block.sheet_id
                sheet_ranges = ", ".join(
                    str(b.row_range) for b in blocks if b.sheet_id == block.sheet_id
                )
                parts.append(
                    f"<h3>{html.escape(block.sheet_name)}</h3>"
                    f"<p>Changed rows: {sheet_ranges}</p>"
                )
            parts.append(f"<p><b>{html.escape(block.region)}</b></p>")
            parts.append(block.html)

        if workbook_url:
            url = html.escape(workbook_url, quote=True)
            parts.append(f'<p><a href="{url}">Open the spreadsheet</a></p>')

        return "\n".join(parts)

    def compose_text(
        self, blocks: list[RenderedBlock], workbook_name: str, workbook_url: str
    ) -> str:
        """HTMLを表示できないクライアント向けのテキスト本文"""
        lines = [f"Changes in {workbook_name or 'Spreadsheet'}:"]
        for block in blocks:
            changed = ", ".join(block.highlighted) or "-"
            lines.append(f"- {block.sheet_name} {block.region}: {changed}")
        if workbook_url:
            lines.append("")
            lines.append(workbook_url)
        return "\n".join(lines)
