"""
Excel範囲正規化ユーティリティ

変更指定子（"B3" / "A2:C3" / "5"）の検証と、含まれる全セル・全行への展開を担当するヘルパークラス
"""

import logging
import re

from src.error_messages import (
    InvalidArgumentError,
    InvalidFormatError,
    get_invalid_range_error,
)
from src.excel.cell_reference import ExcelCellReference
from src.excel.models import CellCoordinate, NormalizedRange, RangeSpecifier

logger = logging.getLogger(__name__)

_ROW_MARKER_PATTERN = re.compile(r"^\d+$")

# 記録時に受け付ける矩形範囲の最大セル数
DEFAULT_MAX_RANGE_CELLS = 100_000


class ExcelRangeNormalizer:
    """変更指定子の検証と展開（全て staticmethod）"""

    @staticmethod
    def parse_range_specifier(spec: str, max_cells: int | None = None) -> RangeSpecifier:
        """
        変更指定子を検証してRangeSpecifierに変換

        - "B3" / "$B$3": 単一セル
        - "A2:C3": 矩形範囲（逆順 "C3:A2" は行・列それぞれmin/maxで正順に直す）
        - "5": 行番号のみ

        Args:
            spec: 変更指定子
            max_cells: 矩形範囲のセル数上限（Noneの場合は無制限）

        Returns:
            RangeSpecifier（textは"$"を除いた正規形）

        Raises:
            InvalidFormatError: 書式に合わない場合
            InvalidArgumentError: 矩形範囲のセル数がmax_cellsを超える場合
        """
        if not isinstance(spec, str):
            raise get_invalid_range_error(str(spec))

        raw = spec.strip()
        if not raw:
            raise get_invalid_range_error(spec)

        if ":" in raw:
            parts = raw.split(":")
            if len(parts) != 2:
                raise get_invalid_range_error(spec)
            try:
                first = ExcelCellReference.parse_reference(parts[0])
                second = ExcelCellReference.parse_reference(parts[1])
            except InvalidFormatError as e:
                raise InvalidFormatError(
                    message=f"Invalid range specifier: '{spec}'.",
                    solution=e.solution,
                    original_error=e,
                ) from e

            start = CellCoordinate(
                row=min(first.row, second.row), col=min(first.col, second.col)
            )
            end = CellCoordinate(
                row=max(first.row, second.row), col=max(first.col, second.col)
            )
            if (start, end) != (first, second):
                logger.info(f"Normalized reversed range '{spec}' to forward order")

            cell_count = (end.row - start.row + 1) * (end.col - start.col + 1)
            if max_cells is not None and cell_count > max_cells:
                logger.warning(
                    f"Range '{spec}' covers {cell_count} cells, limit is {max_cells}"
                )
                raise InvalidArgumentError(
                    message=(
                        f"Range '{spec}' covers {cell_count} cells, "
                        f"more than the limit of {max_cells}."
                    ),
                    solution=(
                        "Record a smaller range, or raise DIGEST_MAX_RANGE_CELLS."
                    ),
                )

            start_ref = ExcelCellReference.format_reference(start.row, start.col)
            end_ref = ExcelCellReference.format_reference(end.row, end.col)
            return RangeSpecifier(
                kind="range", text=f"{start_ref}:{end_ref}", start=start, end=end
            )

        # 行番号のみ（例: "5"）
        if _ROW_MARKER_PATTERN.match(raw):
            row = ExcelCellReference.row_to_index(raw)
            if row < 1:
                raise get_invalid_range_error(spec)
            return RangeSpecifier(kind="row", text=str(row), row_marker=row)

        coordinate = ExcelCellReference.parse_reference(raw)
        return RangeSpecifier(
            kind="cell",
            text=ExcelCellReference.format_reference(coordinate.row, coordinate.col),
            start=coordinate,
            end=coordinate,
        )

    @staticmethod
    def normalize_range(spec: str | RangeSpecifier) -> NormalizedRange:
        """
        変更指定子を含まれる全セル参照と全行番号に展開

        Examples:
            - "A2:C3" -> cells=[A2, A3, B2, B3, C2, C3], rows=[2, 3]
            - "E4" -> cells=[E4], rows=[4]
            - "5" -> cells=["5"], rows=[5]（行番号のみの場合は文字列をそのままセル扱い）

        Args:
            spec: 変更指定子（文字列または解析済みRangeSpecifier）

        Returns:
            NormalizedRange（cellsは辞書順、rowsは数値順、いずれも重複なし）
        """
        if not isinstance(spec, RangeSpecifier):
            spec = ExcelRangeNormalizer.parse_range_specifier(spec)

        if spec.is_row_marker:
            return NormalizedRange(cells=[spec.text], rows=[spec.row_marker])

        if not spec.is_range:
            return NormalizedRange(cells=[spec.text], rows=[spec.start.row])

        cells: set[str] = set()
        rows: set[int] = set()
        # 行優先（行が最も遅く変化する）で矩形内を全走査
        for row in range(spec.start.row, spec.end.row + 1):
            rows.add(row)
            for col in range(spec.start.col, spec.end.col + 1):
                cells.add(ExcelCellReference.format_reference(row, col))

        return NormalizedRange(cells=sorted(cells), rows=sorted(rows))

    @staticmethod
    def column_of(reference: str) -> str:
        """
        セル参照から列文字を取り出す（行番号のみの指定子は空文字列）

        Args:
            reference: セル参照（例: "AB12"）

        Returns:
            列文字（例: "AB"）
        """
        return reference.replace("$", "").rstrip("0123456789")

    @staticmethod
    def column_sort_key(letters: str) -> tuple[int, str]:
        """
        列文字の比較キー（文字数 -> 辞書順）

        単純な文字列比較では "J" > "AA" になるため、文字数を先に比較する
        """
        return (len(letters), letters)

    @staticmethod
    def rightmost_column(references: list[str]) -> str | None:
        """
        セル参照群のうち最も右の列文字を返す

        Args:
            references: セル参照のリスト（行番号のみの要素は無視）

        Returns:
            最も右の列文字。列を持つ参照が無い場合はNone
        """
        columns = [
            ExcelRangeNormalizer.column_of(reference)
            for reference in references
        ]
        columns = [column for column in columns if column]
        if not columns:
            return None
        return max(columns, key=ExcelRangeNormalizer.column_sort_key)
