"""
Excel座標処理ヘルパーモジュール

変更ダイジェストで使うセル参照・範囲・スタイルのヘルパークラス群
"""

from src.excel.cell_reference import ExcelCellReference
from src.excel.models import (
    CellCoordinate,
    ContiguousRowRange,
    NormalizedRange,
    RangeSpecifier,
    RegionSnapshot,
    RenderedBlock,
)
from src.excel.range_compressor import ExcelRangeCompressor
from src.excel.range_normalizer import DEFAULT_MAX_RANGE_CELLS, ExcelRangeNormalizer
from src.excel.style_extractor import ExcelStyleExtractor

__all__ = [
    "DEFAULT_MAX_RANGE_CELLS",
    "CellCoordinate",
    "ContiguousRowRange",
    "ExcelCellReference",
    "ExcelRangeCompressor",
    "ExcelRangeNormalizer",
    "ExcelStyleExtractor",
    "NormalizedRange",
    "RangeSpecifier",
    "RegionSnapshot",
    "RenderedBlock",
]
