# --- Spreadsheet column candidates ---
CLIENT_CODE_COLUMNS = [
    "client code",
    "clientcode",
    "client_code",
    "code",
    "client id",
    "clientid",
]
AMOUNT_COLUMNS = [
    "amount",
    "brokerage",
    "brokerage amount",
    "net amount",
    "netamount",
]

# Ledger exports carry the client code inside the narration text
LEDGER_DATE_COLUMN = "date"
LEDGER_NARRATION_COLUMN = "narration"
LEDGER_CREDIT_COLUMN = "credit"

# Ledger exports put a few metadata rows above the real header
HEADER_SCAN_ROWS = 20

SUPPORTED_UPLOAD_EXTENSIONS = {".csv", ".xlsx", ".xlsm"}

# --- Notification types ---
NOTIFY_BROKERAGE_UPLOAD = "BROKERAGE_UPLOAD"
NOTIFY_MONTHLY_RESET = "MONTHLY_RESET"
NOTIFY_TASK_EXPIRED = "TASK_EXPIRED"
NOTIFY_TASK_ASSIGNED = "TASK_ASSIGNED"

# --- Audit log modules ---
MODULE_BROKERAGE = "BROKERAGE"
MODULE_CLIENTS = "CLIENTS"
MODULE_EMPLOYEES = "EMPLOYEES"
MODULE_TASKS = "TASKS"
MODULE_SYSTEM = "SYSTEM"

# --- Monthly archive ---
RESET_MARKER_ENTITY_ID = "period"
RESET_STATE_RUNNING = "running"
RESET_STATE_COMPLETED = "completed"
