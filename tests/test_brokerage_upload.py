import io
from datetime import date

import pytest
from openpyxl import Workbook

from crud.client_crud import delete_client
from exceptions import UnprocessableError, ValidationError
from models.activity_log import ActivityLog
from models.brokerage import BrokerageDetail, BrokerageUpload
from models.employee import Department, Role
from models.notification import Notification
from services.brokerage_upload_service import (
    aggregate_rows,
    extract_code_from_narration,
    import_brokerage_file,
    reconcile_brokerage_upload,
    reverse_upload,
)
from services.spreadsheet_service import read_sheet_rows

UPLOAD_DATE = date(2025, 12, 1)


@pytest.fixture
def operator(make_employee):
    return make_employee(name="Ravi", role=Role.EQUITY_DEALER, department=Department.EQUITY)


def _details(db):
    return db.query(BrokerageDetail).order_by(BrokerageDetail.client_code).all()


def test_duplicate_codes_are_summed(db, admin, operator, make_client):
    make_client("18K001", operator)
    rows = [
        ["Client Code", "Amount"],
        ["18K001", "100"],
        ["18K001", "50"],
    ]

    result = reconcile_brokerage_upload(db, rows, UPLOAD_DATE, admin, "day.csv", preview=False)

    details = _details(db)
    assert len(details) == 1
    assert details[0].amount_paise == 15000
    assert result.total_amount_paise == 15000
    assert result.duplicates_consolidated == 1
    assert result.mapped_count == 1
    assert result.operator_summary[0].operator_name == "Ravi"
    assert result.operator_summary[0].client_count == 1


def test_unmapped_codes_are_reported_and_excluded(db, admin, operator, make_client):
    make_client("18K001", operator)
    rows = [
        ["Client Code", "Amount"],
        ["18K001", "100"],
        ["99Z999", "75"],
    ]

    result = reconcile_brokerage_upload(db, rows, UPLOAD_DATE, admin, "day.csv", preview=False)

    assert result.unmapped_codes == ["99Z999"]
    assert [d.client_code for d in _details(db)] == ["18K001"]
    assert result.total_amount_paise == 10000
    assert any("99Z999" in warning for warning in result.warnings)


def test_reupload_replaces_previous_upload_for_the_date(db, admin, operator, make_client):
    make_client("18K001", operator)
    make_client("18K002", operator)
    first = reconcile_brokerage_upload(
        db, [["Client Code", "Amount"], ["18K001", "100"], ["18K002", "200"]],
        UPLOAD_DATE, admin, "first.csv", preview=False,
    )

    second = reconcile_brokerage_upload(
        db, [["Client Code", "Amount"], ["18K001", "10"]],
        UPLOAD_DATE, admin, "second.csv", preview=False,
    )

    uploads = db.query(BrokerageUpload).all()
    assert len(uploads) == 1
    assert uploads[0].id == second.upload_id != first.upload_id
    assert uploads[0].file_name == "second.csv"
    assert uploads[0].total_amount_paise == 1000
    assert [(d.client_code, d.amount_paise) for d in _details(db)] == [("18K001", 1000)]
    assert second.date_exists is True


def test_preview_writes_nothing(db, admin, operator, make_client):
    make_client("18K001", operator)
    reconcile_brokerage_upload(db, [["Client Code", "Amount"], ["18K001", "100"]],
                               UPLOAD_DATE, admin, "first.csv", preview=False)
    logs_before = db.query(ActivityLog).count()
    notifications_before = db.query(Notification).count()

    result = reconcile_brokerage_upload(db, [["Client Code", "Amount"], ["18K001", "999"]],
                                        UPLOAD_DATE, admin, "preview.csv", preview=True)

    assert result.preview is True
    assert result.date_exists is True
    assert result.upload_id is None
    assert result.total_amount_paise == 99900
    upload = db.query(BrokerageUpload).one()
    assert upload.file_name == "first.csv"
    assert upload.total_amount_paise == 10000
    assert db.query(ActivityLog).count() == logs_before
    assert db.query(Notification).count() == notifications_before


def test_confirm_with_no_mapped_codes_is_rejected(db, admin, operator):
    rows = [["Client Code", "Amount"], ["99Z999", "10"], ["88Y888", "20"]]

    with pytest.raises(UnprocessableError) as excinfo:
        reconcile_brokerage_upload(db, rows, UPLOAD_DATE, admin, "day.csv", preview=False)

    assert excinfo.value.status_code == 422
    assert excinfo.value.data == {"unmapped_codes": ["99Z999", "88Y888"], "mapped_count": 0}
    assert db.query(BrokerageUpload).count() == 0

    # Preview still returns the summary
    result = reconcile_brokerage_upload(db, rows, UPLOAD_DATE, admin, "day.csv", preview=True)
    assert result.mapped_count == 0
    assert result.unmapped_codes == ["99Z999", "88Y888"]


def test_upload_notifies_active_equity_dealers(db, admin, operator, make_employee, make_client):
    make_employee(name="Inactive Dealer", role=Role.EQUITY_DEALER, is_active=False)
    make_employee(name="Fund Dealer", role=Role.MF_DEALER, department=Department.MUTUAL_FUND)
    make_client("18K001", operator)

    result = reconcile_brokerage_upload(db, [["Client Code", "Amount"], ["18K001", "100"]],
                                        UPLOAD_DATE, admin, "day.csv", preview=False)

    assert result.notifications_sent == 1
    notification = db.query(Notification).one()
    assert notification.user_id == operator.id
    assert "01 Dec 2025" in notification.message


def test_upload_writes_audit_entry(db, admin, operator, make_client):
    make_client("18K001", operator)
    reconcile_brokerage_upload(db, [["Client Code", "Amount"], ["18K001", "1234.5"]],
                               UPLOAD_DATE, admin, "day.csv", preview=False)

    log = db.query(ActivityLog).filter(ActivityLog.action == "UPLOAD").one()
    assert log.user_id == admin.id
    assert "₹1,234.50" in log.details
    assert "Mapped: 1" in log.details


def test_header_row_found_below_title_rows():
    rows = [
        ["Daily brokerage report"],
        ["Generated on 01-12-2025"],
        [],
        ["Sr", "Client Code", "Name", "Brokerage"],
        [1, "18k001", "A", "1,250.75"],
        [2, "", "blank code", "10"],
        [3, "18K002", "B", "not a number"],
        [4, "18K003", "C", "-5"],
    ]

    aggregated = aggregate_rows(rows)

    assert aggregated.ledger_format is False
    assert list(aggregated.amounts) == ["18K001"]
    assert str(aggregated.amounts["18K001"]) == "1250.75"


def test_ledger_format_extracts_code_from_narration():
    rows = [
        ["ABC Broking Ltd - Ledger"],
        ["Date", "Narration", "Debit", "Credit"],
        ["", "Opening Balance", "", "0"],
        ["01/12/2025", "Z/M/2026039/ 18A213", "", "125.50"],
        ["01/12/2025", "Z/L/2026039/57066490 91383117", "", "1,000"],
        ["01/12/2025", "Payment received 18A213", "500", ""],
        ["02/12/2025", "z/m/2026040/ 18a213", "", "10"],
        ["", "Closing Balance", "", "1135.50"],
    ]

    aggregated = aggregate_rows(rows)

    assert aggregated.ledger_format is True
    assert {code: str(amount) for code, amount in aggregated.amounts.items()} == {
        "18A213": "135.50",
        "91383117": "1000",
    }
    assert aggregated.duplicates_consolidated == 1


def test_extract_code_from_narration():
    assert extract_code_from_narration("Z/M/2026039/ 18A213") == "18A213"
    assert extract_code_from_narration("  ") == ""


def test_missing_client_code_column():
    with pytest.raises(ValidationError, match="Could not find client code column"):
        aggregate_rows([["Name", "Amount"], ["x", "1"]])


def test_missing_amount_column():
    with pytest.raises(ValidationError, match="Could not find amount column"):
        aggregate_rows([["Client Code", "Name"], ["18K001", "x"]])


def test_missing_amount_column_below_title_row():
    rows = [["Daily brokerage report"], ["Client Code", "Name"], ["18K001", "x"]]

    with pytest.raises(ValidationError, match="Could not find amount column"):
        aggregate_rows(rows)


def test_file_without_data_rows():
    with pytest.raises(ValidationError, match="File has no data rows"):
        aggregate_rows([["Client Code", "Amount"]])


def test_file_without_valid_rows():
    with pytest.raises(ValidationError, match="No valid data rows found"):
        aggregate_rows([["Client Code", "Amount"], ["", "10"], ["18K001", ""]])


def test_import_csv_bytes(db, admin, operator, make_client):
    make_client("18K001", operator)
    make_client("91383117", operator)
    csv_bytes = b"\xef\xbb\xbfClient Code,Amount\r\n18k001,100\r\n18K001,50\r\n91383117,\"2,000\"\r\n"

    result = import_brokerage_file(db, csv_bytes, "day.csv", UPLOAD_DATE, admin, preview=False)

    assert result.mapped_count == 2
    assert result.total_amount_paise == 215000
    assert result.duplicates_consolidated == 1


def test_import_xlsx_workbook(db, admin, operator, make_client):
    make_client("18K001", operator)
    make_client("91383117", operator)
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["Client Code", "Net Amount"])
    sheet.append(["18K001", 100.5])
    sheet.append([91383117, 20])
    sheet.append([None, None])
    buffer = io.BytesIO()
    workbook.save(buffer)

    result = import_brokerage_file(db, buffer.getvalue(), "day.xlsx", UPLOAD_DATE, admin, preview=False)

    assert result.unmapped_codes == []
    assert {d.client_code: d.amount_paise for d in _details(db)} == {"18K001": 10050, "91383117": 2000}


def test_unsupported_and_empty_files():
    with pytest.raises(ValidationError, match="Unsupported file type"):
        read_sheet_rows(b"%PDF-1.4", "report.pdf")
    with pytest.raises(ValidationError, match="No file uploaded"):
        read_sheet_rows(b"", "day.csv")
    with pytest.raises(ValidationError, match="Unable to read"):
        read_sheet_rows(b"not a zip archive", "day.xlsx")


def test_reverse_upload_removes_upload_and_details(db, admin, operator, make_client):
    make_client("18K001", operator)
    result = reconcile_brokerage_upload(db, [["Client Code", "Amount"], ["18K001", "100"]],
                                        UPLOAD_DATE, admin, "day.csv", preview=False)

    reversed_upload = reverse_upload(db, result.upload_id, admin)

    assert reversed_upload["file_name"] == "day.csv"
    assert reversed_upload["total_amount_paise"] == 10000
    assert db.query(BrokerageUpload).count() == 0
    assert db.query(BrokerageDetail).count() == 0
    assert db.query(ActivityLog).filter(ActivityLog.action == "DELETE").count() == 1


def test_deleting_a_client_keeps_its_brokerage_history(db, admin, operator, make_client):
    client = make_client("18K001", operator)
    reconcile_brokerage_upload(db, [["Client Code", "Amount"], ["18K001", "100"]],
                               UPLOAD_DATE, admin, "day.csv", preview=False)

    delete_client(db, client)

    detail = db.query(BrokerageDetail).one()
    db.refresh(detail)
    assert detail.client_id is None
    assert detail.client_code == "18K001"
    assert detail.amount_paise == 10000


def test_failed_replace_keeps_the_previous_upload(db, admin, operator, make_client, monkeypatch):
    make_client("18K001", operator)
    make_client("18K002", operator)
    first = reconcile_brokerage_upload(db, [["Client Code", "Amount"], ["18K001", "100"]],
                                       UPLOAD_DATE, admin, "a.csv", preview=False)

    def broken_audit(*args, **kwargs):
        raise RuntimeError("audit table unavailable")

    monkeypatch.setattr("services.brokerage_upload_service.add_activity_log", broken_audit)
    with pytest.raises(RuntimeError):
        reconcile_brokerage_upload(db, [["Client Code", "Amount"], ["18K002", "500"]],
                                   UPLOAD_DATE, admin, "b.csv", preview=False)

    upload = db.query(BrokerageUpload).one()
    assert upload.id == first.upload_id
    assert upload.file_name == "a.csv"
    assert [(d.client_code, d.amount_paise) for d in _details(db)] == [("18K001", 10000)]


def test_notification_failure_does_not_undo_the_upload(db, admin, operator, make_client, monkeypatch):
    make_client("18K001", operator)

    def broken_notifications(*args, **kwargs):
        raise RuntimeError("notification table locked")

    monkeypatch.setattr("services.notification_service.create_notifications", broken_notifications)
    result = reconcile_brokerage_upload(db, [["Client Code", "Amount"], ["18K001", "100"]],
                                        UPLOAD_DATE, admin, "day.csv", preview=False)

    assert result.notifications_sent == 0
    db.expire_all()
    upload = db.query(BrokerageUpload).one()
    assert upload.id == result.upload_id
    assert len(_details(db)) == 1
    assert db.query(ActivityLog).filter(ActivityLog.action == "UPLOAD").count() == 1
    assert db.query(Notification).count() == 0
