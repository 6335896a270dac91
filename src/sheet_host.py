"""
スプレッドシートホストモジュール（openpyxl方式）

描画に必要なセル値・スタイル・列幅・行高さを矩形領域単位で提供する
"""

import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Protocol

from openpyxl import Workbook, load_workbook

from src.error_messages import InvalidArgumentError
from src.excel import (
    ExcelCellReference,
    ExcelRangeNormalizer,
    ExcelStyleExtractor,
    RegionSnapshot,
)

logger = logging.getLogger(__name__)


class SheetHost(Protocol):
    """スプレッドシートホストのプロトコル"""

    workbook_name: str
    workbook_url: str
    timezone: str

    def get_sheet_name(self, sheet_id: int) -> str:
        """シートIDから表示名を取得"""
        ...

    def get_region(self, sheet_id: int, region: str) -> RegionSnapshot:
        """矩形領域（例: "A1:F4"）の値とスタイルを取得"""
        ...


class OpenpyxlSheetHost:
    """
    .xlsxワークブックを読むホスト

    シートIDはワークブック内のシート位置（0始まり）
    """

    def __init__(
        self,
        workbook: Workbook,
        workbook_name: str = "",
        workbook_url: str = "",
        timezone: str = "UTC",
    ):
        self.workbook = workbook
        self.workbook_name = workbook_name
        self.workbook_url = workbook_url
        self.timezone = timezone
        self._size_cache: dict[int, tuple[dict[str, int], dict[int, int]]] = {}

    @classmethod
    def from_path(
        cls, path: str | Path, workbook_url: str = "", timezone: str = "UTC"
    ) -> "OpenpyxlSheetHost":
        """ファイルからワークブックを読み込む（数式はキャッシュ済みの値を使う）"""
        path = Path(path)
        logger.info(f"Loading workbook: {path}")
        workbook = load_workbook(path, data_only=True)
        return cls(
            workbook,
            workbook_name=path.stem,
            workbook_url=workbook_url,
            timezone=timezone,
        )

    def _get_sheet(self, sheet_id: int):
        sheets = self.workbook.worksheets
        if sheet_id < 0 or sheet_id >= len(sheets):
            raise InvalidArgumentError(
                message=f"Sheet id {sheet_id} does not exist in workbook '{self.workbook_name}'.",
                solution=f"Sheet ids range from 0 to {len(sheets) - 1}.",
            )
        return sheets[sheet_id]

    def get_sheet_name(self, sheet_id: int) -> str:
        return self._get_sheet(sheet_id).title

    def get_region(self, sheet_id: int, region: str) -> RegionSnapshot:
        """
        矩形領域の値とスタイルを取得

        Args:
            sheet_id: シートID
            region: 矩形領域（例: "A1:F4"）

        Returns:
            RegionSnapshot
        """
        sheet = self._get_sheet(sheet_id)
        spec = ExcelRangeNormalizer.parse_range_specifier(region)
        if spec.is_row_marker:
            raise InvalidArgumentError(
                message=f"Region must be a cell or cell range: '{region}'.",
            )

        if sheet_id not in self._size_cache:
            self._size_cache[sheet_id] = ExcelStyleExtractor.build_cell_size_cache(
                sheet
            )
        col_widths, row_heights = self._size_cache[sheet_id]

        values: list[list[Any]] = []
        styles: list[list[dict[str, str]]] = []
        for row in sheet.iter_rows(
            min_row=spec.start.row,
            max_row=spec.end.row,
            min_col=spec.start.col,
            max_col=spec.end.col,
        ):
            values.append([self._serialize_value(cell.value) for cell in row])
            styles.append([ExcelStyleExtractor.extract_cell_styles(cell) for cell in row])

        column_widths = [
            col_widths.get(
                ExcelCellReference.index_to_column(col),
                ExcelStyleExtractor.width_to_pixels(None),
            )
            for col in range(spec.start.col, spec.end.col + 1)
        ]
        heights = [
            row_heights.get(row, ExcelStyleExtractor.height_to_pixels(None))
            for row in range(spec.start.row, spec.end.row + 1)
        ]

        logger.debug(
            f"Fetched region {spec.text} from sheet '{sheet.title}' "
            f"({len(values)} rows x {len(column_widths)} cols)"
        )
        return RegionSnapshot(
            start_row=spec.start.row,
            start_col=spec.start.col,
            values=values,
            styles=styles,
            column_widths=column_widths,
            row_heights=heights,
        )

    def _serialize_value(self, value: Any) -> Any:
        """セル値を表示用に変換"""
        if value is None:
            return ""
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%d %H:%M:%S")
        if isinstance(value, (date, time)):
            return value.isoformat()
        return value
