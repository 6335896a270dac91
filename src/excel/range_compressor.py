"""
Excel行範囲圧縮ユーティリティ

行番号の集合を最小個数の連続行範囲にまとめるヘルパークラス
"""

from src.error_messages import InvalidArgumentError
from src.excel.models import ContiguousRowRange


class ExcelRangeCompressor:
    """行番号と連続行範囲の相互変換（全て staticmethod）"""

    @staticmethod
    def compress(rows: list[int]) -> list[ContiguousRowRange]:
        """
        昇順・重複なしの行番号を連続行範囲に圧縮

        差がちょうど1の行は同じ範囲にまとめる。
        例: [1, 2, 3, 4, 8] -> [(1, 4), (8, 8)]

        Args:
            rows: 昇順・重複なしの行番号（ソートと重複除去は呼び出し側の責任）

        Returns:
            連続行範囲のリスト（昇順）

        Raises:
            InvalidArgumentError: 昇順・重複なしでない場合
        """
        ranges: list[ContiguousRowRange] = []
        if not rows:
            return ranges

        start = end = rows[0]
        for row in rows[1:]:
            if row <= end:
                raise InvalidArgumentError(
                    message=f"Rows must be sorted ascending without duplicates: got {row} after {end}.",
                    solution="Sort and deduplicate the rows before compressing.",
                )
            if row == end + 1:
                end = row
                continue
            ranges.append(ContiguousRowRange(start=start, end=end))
            start = end = row

        ranges.append(ContiguousRowRange(start=start, end=end))
        return ranges

    @staticmethod
    def to_row_set(ranges: list[ContiguousRowRange]) -> list[int]:
        """
        連続行範囲を行番号のリストに展開（compressの逆変換）
        """
        rows: list[int] = []
        for row_range in ranges:
            rows.extend(range(row_range.start, row_range.end + 1))
        return rows

    @staticmethod
    def to_region(row_range: ContiguousRowRange, last_column: str) -> str:
        """
        連続行範囲を "A{start}:{last_column}{end}" 形式の描画領域に変換

        Args:
            row_range: 連続行範囲
            last_column: 右端の列文字

        Returns:
            描画領域（例: "A1:F4"）
        """
        return f"A{row_range.start}:{last_column}{row_range.end}"
