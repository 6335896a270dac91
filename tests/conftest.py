import os
from unittest.mock import Mock, patch

import pytest
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from src.change_ledger import ChangeLedger
from src.config import DigestConfig
from src.property_store import InMemoryPropertyStore
from src.sheet_host import OpenpyxlSheetHost


@pytest.fixture
def mock_config():
    """Mock digest configuration for testing"""
    config = Mock(spec=DigestConfig)
    config.store_path = ".sheet_changes.json"
    config.store_key = "pendingChanges"
    config.max_retries = 5
    config.max_range_cells = 100_000
    config.workbook_path = "book.xlsx"
    config.workbook_url = "https://example.com/book"
    config.workbook_name = "book"
    config.timezone = "UTC"
    config.transport = "smtp"
    config.is_smtp_transport = True
    config.is_webhook_transport = False
    config.recipients = ["team@example.com"]
    config.subject = "Spreadsheet changes"
    config.sender = "digest@example.com"
    config.smtp_host = "smtp.example.com"
    config.smtp_port = 587
    config.smtp_username = ""
    config.smtp_password = ""
    config.smtp_use_tls = True
    config.webhook_url = ""
    config.highlight_color = "#FF0000"
    config.log_level = "INFO"

    # Mock validation method
    config.validate.return_value = []

    return config


@pytest.fixture
def mock_env_vars(tmp_path):
    """Mock environment variables for testing (smtp transport)"""
    workbook_path = tmp_path / "book.xlsx"
    Workbook().save(workbook_path)
    env_vars = {
        "DIGEST_STORE_PATH": str(tmp_path / "changes.json"),
        "DIGEST_WORKBOOK_PATH": str(workbook_path),
        "DIGEST_WORKBOOK_URL": "https://example.com/book",
        "DIGEST_TRANSPORT": "smtp",
        "DIGEST_SMTP_HOST": "smtp.example.com",
        "DIGEST_SENDER": "digest@example.com",
        "DIGEST_RECIPIENTS": "a@example.com, b@example.com",
    }

    with patch.dict(os.environ, env_vars, clear=True):
        yield env_vars


@pytest.fixture
def memory_store():
    """Empty in-memory property store"""
    return InMemoryPropertyStore()


@pytest.fixture
def ledger(memory_store):
    """Initialized change ledger backed by an in-memory store"""
    change_ledger = ChangeLedger(memory_store)
    change_ledger.reset()
    return change_ledger


@pytest.fixture
def workbook():
    """Two-sheet workbook with values in A1:F8 and a few styled cells"""
    wb = Workbook()
    first = wb.active
    first.title = "Orders"
    second = wb.create_sheet("Stock")

    for sheet in (first, second):
        for row in range(1, 9):
            for col in range(1, 7):
                sheet.cell(row=row, column=col, value=f"r{row}c{col}")

    first["A1"].font = Font(name="Arial", sz=12, b=True, color="FF112233")
    first["B2"].fill = PatternFill(
        start_color="FFFF00", end_color="FFFF00", fill_type="solid"
    )
    first.column_dimensions["A"].width = 20
    first.row_dimensions[1].height = 30
    return wb


@pytest.fixture
def sheet_host(workbook):
    """openpyxl-backed sheet host for the two-sheet workbook"""
    return OpenpyxlSheetHost(
        workbook,
        workbook_name="book",
        workbook_url="https://example.com/book",
        timezone="Asia/Tokyo",
    )
