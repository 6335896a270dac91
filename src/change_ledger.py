"""
変更台帳モジュール

シートID -> 保留中の変更指定子（昇順・重複なし）の対応をプロパティストアの1キーに保持する
"""

import json
import logging
from collections.abc import Callable

from src.error_messages import (
    InvalidArgumentError,
    PersistenceFailure,
    get_persistence_error,
    get_uninitialized_ledger_error,
)
from src.excel import DEFAULT_MAX_RANGE_CELLS, ExcelRangeNormalizer
from src.property_store import PropertyStore

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_KEY = "pendingChanges"

PendingChanges = dict[int, list[str]]


class ChangeLedger:
    """
    保留中の変更を蓄積する台帳

    ライフサイクル: reset() -> record() を複数回 -> flush() -> acknowledge()/reset()

    ストアが compare_and_set を持つ場合、更新は compare-and-swap のリトライループで行う。
    持たない場合は読み込み→変更→全体書き戻しの後勝ちとなり、
    別プロセスの同時 record が失われる可能性がある。
    """

    def __init__(
        self,
        store: PropertyStore,
        key: str = DEFAULT_LEDGER_KEY,
        max_retries: int = 5,
        max_range_cells: int | None = DEFAULT_MAX_RANGE_CELLS,
    ):
        self.store = store
        self.key = key
        self.max_retries = max_retries
        self.max_range_cells = max_range_cells
        self.supports_cas = callable(getattr(store, "compare_and_set", None))
        if not self.supports_cas:
            logger.warning(
                f"Property store {type(store).__name__} has no compare_and_set; "
                "concurrent updates to the ledger are last-write-wins"
            )

    def reset(self) -> None:
        """台帳全体を空の対応で置き換える"""
        logger.info(f"Resetting change ledger '{self.key}'")
        self._write(self._encode({}))

    def record(self, sheet_id: int, range_specifier: str) -> bool:
        """
        シートの変更指定子を追加

        指定子は書き込み前に検証するため、不正な指定子が台帳に入ることはない。

        Args:
            sheet_id: シートID
            range_specifier: 変更指定子（例: "B3", "A2:C3"）

        Returns:
            新しく追加した場合True、既に存在した場合False

        Raises:
            InvalidFormatError: 指定子の書式が不正な場合
            InvalidArgumentError: シートIDが負・非数値の場合、または範囲が大きすぎる場合
            PersistenceFailure: ストアの読み書きに失敗した場合
        """
        sheet_id = self._validate_sheet_id(sheet_id)
        spec = ExcelRangeNormalizer.parse_range_specifier(
            range_specifier, max_cells=self.max_range_cells
        )
        added = False

        def add(pending: PendingChanges) -> PendingChanges | None:
            nonlocal added
            entries = pending.setdefault(sheet_id, [])
            if spec.text in entries:
                added = False
                return None
            entries.append(spec.text)
            entries.sort()
            added = True
            return pending

        self._update(add)
        if added:
            logger.info(f"Recorded change {spec.text} on sheet {sheet_id}")
        else:
            logger.debug(f"Change {spec.text} on sheet {sheet_id} already pending")
        return added

    def flush(self) -> PendingChanges:
        """
        保留中の変更のスナップショットを返す（台帳はクリアしない）

        Returns:
            シートID（昇順） -> 変更指定子のリスト
        """
        pending = self._decode(self._read())
        return {sheet_id: pending[sheet_id] for sheet_id in sorted(pending)}

    def acknowledge(self, snapshot: PendingChanges) -> None:
        """
        処理済みスナップショットの変更だけを台帳から取り除く

        flush() 以降に記録された変更は残る。
        """

        def remove(pending: PendingChanges) -> PendingChanges:
            for sheet_id, entries in snapshot.items():
                processed = set(entries)
                remaining = [
                    entry
                    for entry in pending.get(sheet_id, [])
                    if entry not in processed
                ]
                if remaining:
                    pending[sheet_id] = remaining
                else:
                    pending.pop(sheet_id, None)
            return pending

        self._update(remove)
        logger.info(
            f"Acknowledged {sum(len(entries) for entries in snapshot.values())} "
            f"pending changes across {len(snapshot)} sheets"
        )

    def _update(self, mutate: Callable[[PendingChanges], PendingChanges | None]) -> None:
        """読み込み→変更→書き戻し。mutateがNoneを返した場合は書き込まない"""
        if not self.supports_cas:
            raw = self._read()
            updated = mutate(self._decode(raw))
            if updated is not None:
                self._write(self._encode(updated))
            return

        for attempt in range(1, self.max_retries + 1):
            raw = self._read()
            updated = mutate(self._decode(raw))
            if updated is None:
                return
            try:
                if self.store.compare_and_set(self.key, raw, self._encode(updated)):
                    return
            except Exception as e:
                logger.error(f"Failed to write change ledger '{self.key}': {e}")
                raise get_persistence_error(e, "write") from e
            logger.info(
                f"Change ledger '{self.key}' changed concurrently, retrying "
                f"({attempt}/{self.max_retries})"
            )

        logger.error(
            f"Gave up updating change ledger '{self.key}' after {self.max_retries} conflicts"
        )
        raise PersistenceFailure(
            message=f"The change ledger '{self.key}' kept changing during the update.",
            solution="Another process is writing concurrently. Retry the operation.",
        )

    @staticmethod
    def _validate_sheet_id(sheet_id) -> int:
        """シートIDを0以上の整数に変換"""
        if isinstance(sheet_id, bool):
            parsed = None
        else:
            try:
                parsed = int(sheet_id)
            except (TypeError, ValueError):
                parsed = None
        if parsed is None or parsed < 0:
            raise InvalidArgumentError(
                message=f"Invalid sheet id: '{sheet_id}'.",
                solution="Use a non-negative integer sheet id (0 for the first sheet).",
            )
        return parsed

    def _read(self) -> str:
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.error(f"Failed to read change ledger '{self.key}': {e}")
            raise get_persistence_error(e, "read") from e
        if raw is None:
            logger.error(f"Change ledger '{self.key}' is not initialized")
            raise get_uninitialized_ledger_error(self.key)
        return raw

    def _write(self, value: str) -> None:
        try:
            self.store.set(self.key, value)
        except Exception as e:
            logger.error(f"Failed to write change ledger '{self.key}': {e}")
            raise get_persistence_error(e, "write") from e

    def _decode(self, raw: str) -> PendingChanges:
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("ledger root must be a JSON object")
            return {
                int(sheet_id): sorted({str(entry) for entry in entries})
                for sheet_id, entries in data.items()
            }
        except (ValueError, TypeError) as e:
            logger.error(f"Change ledger '{self.key}' contains corrupted data: {e}")
            raise get_persistence_error(e, "decode") from e

    @staticmethod
    def _encode(pending: PendingChanges) -> str:
        return json.dumps(
            {str(sheet_id): entries for sheet_id, entries in sorted(pending.items())},
            ensure_ascii=False,
        )
