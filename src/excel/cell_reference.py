"""
Excelセル参照変換ユーティリティ

"A1" 形式の参照と整数座標（row, col）の相互変換を担当するヘルパークラス
"""

import logging
import re

from src.error_messages import (
    InvalidArgumentError,
    InvalidFormatError,
    get_invalid_reference_error,
)
from src.excel.models import CellCoordinate

logger = logging.getLogger(__name__)

_COLUMN_PATTERN = re.compile(r"^[A-Z]+$")
_ROW_PATTERN = re.compile(r"^\d+$")
_REFERENCE_PATTERN = re.compile(r"^\$?([A-Z]+)\$?(\d+)$")


class ExcelCellReference:
    """セル参照と座標の相互変換（全て staticmethod）"""

    @staticmethod
    def column_to_index(letters: str) -> int:
        """
        列文字を1始まりの列番号に変換

        0を表す文字が無い26進数（A=1 … Z=26, AA=27）として解釈する。
        openpyxlのcolumn_index_from_stringはXFD（16384列）までしか扱えないため自前で計算する。

        Args:
            letters: 大文字の列文字（例: "AB"）

        Returns:
            列番号（例: 28）

        Raises:
            InvalidFormatError: 大文字A-Z以外を含む、または空文字列の場合
        """
        if not isinstance(letters, str) or not _COLUMN_PATTERN.match(letters):
            raise InvalidFormatError(
                message=f"Invalid column letters: '{letters}'.",
                solution="Column letters must be one or more uppercase letters A-Z.",
            )

        index = 0
        for char in letters:
            index = index * 26 + (ord(char) - ord("A") + 1)
        return index

    @staticmethod
    def index_to_column(index: int) -> str:
        """
        1始まりの列番号を列文字に変換（column_to_indexの逆変換）

        Args:
            index: 列番号（1以上）

        Returns:
            列文字（例: 27 -> "AA"）

        Raises:
            InvalidArgumentError: indexが1未満の場合
        """
        if index < 1:
            raise InvalidArgumentError(
                message=f"Column index must be positive: {index}.",
                solution="Column indexes start at 1 (column 'A').",
            )

        chunks: list[str] = []
        current = index
        while current > 0:
            # 各桁は1-26なので、1を引いてから剰余を取る
            current -= 1
            chunks.append(chr(ord("A") + current % 26))
            current //= 26
        return "".join(reversed(chunks))

    @staticmethod
    def row_to_index(text: str) -> int:
        """
        行番号文字列を整数に変換

        Raises:
            InvalidFormatError: 10進整数として解釈できない場合
        """
        if not isinstance(text, str) or not _ROW_PATTERN.match(text):
            raise InvalidFormatError(
                message=f"Invalid row number: '{text}'.",
                solution="Row numbers must be decimal digits.",
            )
        return int(text)

    @staticmethod
    def parse_reference(ref: str) -> CellCoordinate:
        """
        セル参照を座標に変換

        Args:
            ref: セル参照（例: "B3", "$B$3"）

        Returns:
            CellCoordinate

        Raises:
            InvalidFormatError: "1A", "", "A", "1" など書式に合わない場合
            InvalidArgumentError: 行番号が0の場合
        """
        if not isinstance(ref, str):
            raise get_invalid_reference_error(str(ref))

        match = _REFERENCE_PATTERN.match(ref)
        if not match:
            raise get_invalid_reference_error(ref)

        col = ExcelCellReference.column_to_index(match.group(1))
        row = ExcelCellReference.row_to_index(match.group(2))
        return CellCoordinate(row=row, col=col)

    @staticmethod
    def format_reference(row: int, col: int) -> str:
        """
        座標をセル参照に変換（parse_referenceの逆変換）

        範囲外の値は行・列とも最小値に丸める（行は1、列は"A"）。

        Args:
            row: 行番号
            col: 列番号

        Returns:
            セル参照（例: "C2"）
        """
        if row < 1 or col < 1:
            logger.warning(
                f"Clamping out-of-range coordinate (row={row}, col={col}) to the first row/column"
            )
        row = max(row, 1)
        col = max(col, 1)
        return f"{ExcelCellReference.index_to_column(col)}{row}"
