"""
ExcelRangeCompressorのテスト
"""

import pytest

from src.error_messages import InvalidArgumentError
from src.excel import ContiguousRowRange, ExcelRangeCompressor


class TestExcelRangeCompressor:
    """ExcelRangeCompressor（行範囲圧縮）のテスト"""

    def test_compress_basic(self):
        """連続行がまとめられ、離れた行は別範囲になること"""
        result = ExcelRangeCompressor.compress([1, 2, 3, 4, 8])
        assert result == [ContiguousRowRange(1, 4), ContiguousRowRange(8, 8)]

    def test_compress_empty(self):
        """空入力は空リストを返すこと"""
        assert ExcelRangeCompressor.compress([]) == []

    def test_compress_single_row(self):
        """1行のみ"""
        assert ExcelRangeCompressor.compress([5]) == [ContiguousRowRange(5, 5)]

    def test_compress_no_adjacent_rows(self):
        """隣接しない行は全て別範囲になること"""
        result = ExcelRangeCompressor.compress([2, 4, 6])
        assert result == [
            ContiguousRowRange(2, 2),
            ContiguousRowRange(4, 4),
            ContiguousRowRange(6, 6),
        ]

    def test_compress_multiple_runs(self):
        """複数の連続区間"""
        result = ExcelRangeCompressor.compress([1, 2, 5, 6, 7, 10])
        assert result == [
            ContiguousRowRange(1, 2),
            ContiguousRowRange(5, 7),
            ContiguousRowRange(10, 10),
        ]

    @pytest.mark.parametrize("rows", [[3, 2], [1, 1], [1, 3, 2]])
    def test_compress_unsorted_raises(self, rows):
        """昇順・重複なしでない入力はInvalidArgumentErrorになること"""
        with pytest.raises(InvalidArgumentError):
            ExcelRangeCompressor.compress(rows)

    def test_to_row_set_inverts_compress(self):
        """to_row_setがcompressの逆変換になっていること"""
        rows = [1, 2, 3, 7, 9, 10]
        ranges = ExcelRangeCompressor.compress(rows)
        assert ExcelRangeCompressor.to_row_set(ranges) == rows

    def test_to_region(self):
        """描画領域がA列から右端列までになること"""
        region = ExcelRangeCompressor.to_region(ContiguousRowRange(1, 4), "F")
        assert region == "A1:F4"

    def test_row_range_invalid(self):
        """start > end の範囲は作れないこと"""
        with pytest.raises(InvalidArgumentError):
            ContiguousRowRange(5, 4)

    def test_row_range_str(self):
        """文字列表現"""
        assert str(ContiguousRowRange(1, 4)) == "1-4"
        assert str(ContiguousRowRange(8, 8)) == "8"
