"""
キーバリュー型プロパティストアモジュール

変更台帳の永続化先。get/set と任意の compare_and_set を提供する
"""

import json
import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class PropertyStore(Protocol):
    """プロパティストアのプロトコル"""

    def get(self, key: str) -> str | None:
        """キーの値を取得（未設定はNone）"""
        ...

    def set(self, key: str, value: str) -> None:
        """キーに値を書き込む"""
        ...


class InMemoryPropertyStore:
    """プロセス内のdictに保持するストア（テスト・dry-run用）"""

    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def compare_and_set(self, key: str, expected: str | None, value: str) -> bool:
        """現在値がexpectedと一致する場合のみ書き込む"""
        if self._values.get(key) != expected:
            return False
        self._values[key] = value
        return True


class JsonFilePropertyStore:
    """
    JSONファイルに保持するストア

    ファイル全体は {key: value} のJSONオブジェクト。書き込みは一時ファイル経由で置換し、
    compare_and_set はロックファイルで他プロセスと排他する。
    ロックファイルにはPIDと取得時刻を書き込み、stale_after秒より古いものは取り除いて取得し直す。
    """

    def __init__(
        self,
        path: str | Path,
        lock_timeout: float = 10.0,
        poll_interval: float = 0.05,
        stale_after: float | None = None,
    ):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.lock_timeout = lock_timeout
        self.poll_interval = poll_interval
        # ロックの保持はファイル1回の読み書きだけなので、lock_timeoutより長く残るロックは放棄されたもの
        self.stale_after = lock_timeout if stale_after is None else stale_after

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        with self._locked():
            values = self._read_all()
            values[key] = value
            self._write_all(values)

    def compare_and_set(self, key: str, expected: str | None, value: str) -> bool:
        """
        現在値がexpectedと一致する場合のみ書き込む

        Returns:
            書き込んだ場合True、他の書き込みと競合した場合False
        """
        with self._locked():
            values = self._read_all()
            if values.get(key) != expected:
                logger.info(f"Compare-and-set conflict on key '{key}'")
                return False
            values[key] = value
            self._write_all(values)
            return True

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as store_file:
            content = store_file.read()
        if not content.strip():
            return {}
        values = json.loads(content)
        if not isinstance(values, dict):
            raise json.JSONDecodeError("Store root must be a JSON object", content, 0)
        return values

    def _write_all(self, values: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as tmp_file:
            json.dump(values, tmp_file, ensure_ascii=False, indent=2)
        # 置換はアトミックなので、読み手が書きかけのファイルを見ることはない
        os.replace(tmp_path, self.path)

    @contextmanager
    def _locked(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self.lock_timeout
        while True:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                break
            except FileExistsError:
                if self._break_stale_lock():
                    continue
                if time.monotonic() >= deadline:
                    raise TimeoutError(
                        f"Timed out waiting for store lock: {self.lock_path}"
                    )
                time.sleep(self.poll_interval)
        try:
            # 所有者の調査用にPIDと取得時刻を残す
            os.write(fd, f"{os.getpid()} {time.time():.3f}".encode("ascii"))
            os.close(fd)
            yield
        finally:
            self.lock_path.unlink(missing_ok=True)

    def _break_stale_lock(self) -> bool:
        """
        stale_after秒より古いロックファイルを取り除く

        異常終了したプロセスが残したロックで以降の書き込みが止まらないようにする。

        Returns:
            ロックを取り除いた場合True
        """
        try:
            age = time.time() - self.lock_path.stat().st_mtime
        except FileNotFoundError:
            # 保持者が解放した直後。すぐに取得を再試行する
            return True
        if age < self.stale_after:
            return False

        # 他プロセスと同時に取り除かないよう、一意な名前へ移してから削除する
        claimed = self.lock_path.with_name(
            f"{self.lock_path.name}.{os.getpid()}.{time.monotonic_ns()}.stale"
        )
        try:
            os.rename(self.lock_path, claimed)
        except FileNotFoundError:
            return True
        try:
            owner = claimed.read_text(encoding="ascii", errors="replace").strip()
        except OSError:
            owner = ""
        claimed.unlink(missing_ok=True)
        logger.warning(
            f"Removed stale store lock {self.lock_path} "
            f"(age {age:.1f}s, owner '{owner or 'unknown'}')"
        )
        return True
