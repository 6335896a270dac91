"""
開発用ユーティリティコマンド
"""

import subprocess

# 品質チェック対象ディレクトリの定数
QUALITY_CHECK_DIRS = ["src", "tests"]


def lint():
    """
    ruffでコードの静的解析を実行する
    """
    cmd = ["ruff", "check"] + QUALITY_CHECK_DIRS
    subprocess.run(cmd)


def format():
    """
    ruffでコードフォーマットを実行する
    """
    cmd = ["ruff", "format"] + QUALITY_CHECK_DIRS
    subprocess.run(cmd)


def test():
    """
    pytestでテストを実行する
    """
    result = subprocess.run(["pytest"])
    exit(result.returncode)


def check():
    """
    Lintとテストを実行する（修正はしない）
    """
    print("📝 Lintを実行中...")
    lint_result = subprocess.run(["ruff", "check"] + QUALITY_CHECK_DIRS, capture_output=True)

    print("🧪 テストを実行中...")
    test_result = subprocess.run(["pytest", "-q"], capture_output=True)

    print("\n" + "=" * 50)
    print("📊 実行結果サマリー")
    print("=" * 50)

    lint_status = "✅ PASS" if lint_result.returncode == 0 else "❌ FAIL"
    test_status = "✅ PASS" if test_result.returncode == 0 else "❌ FAIL"

    print(f"Lint:   {lint_status}")
    print(f"Test:   {test_status}")

    if lint_result.returncode != 0:
        print("\n📝 Lintエラー:")
        print(lint_result.stdout.decode())
        print(lint_result.stderr.decode())

    if test_result.returncode != 0:
        print("\n🧪 テストエラー:")
        print(test_result.stdout.decode())

    if any(result.returncode != 0 for result in [lint_result, test_result]):
        exit(1)
    else:
        print("\n🎉 すべてのチェックが成功しました！")
        exit(0)
