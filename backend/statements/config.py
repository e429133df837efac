
# Statement ingestion configuration
class Config:
    ALLOWED_EXTENSIONS = {'xlsx', 'xls', 'csv'}
    DEFAULT_CURRENCY = "INR"
    DEFAULT_DESCRIPTION = "Transaction"

    # Header detection
    HEADER_SCAN_ROWS = 20
    HEADER_MIN_KEYWORDS = 2
    HEADER_KEYWORDS = [
        'date', 'description', 'narration', 'particulars', 'debit', 'credit',
        'amount', 'balance', 'ref', 'reference', 'value date', 'transaction'
    ]

    # Column validation
    VALIDATION_SAMPLE_ROWS = 4
    TRANSFER_TOKENS = ['IMPS', 'NEFT', 'RTGS', 'UPI']

    # Dates
    SERIAL_DATE_MIN = 25569        # exclusive, 1970-01-01
    SERIAL_DATE_MAX = 1000000      # exclusive
    SERIAL_DATE_EPOCH = (1899, 12, 30)
    MIN_YEAR = 1900                # exclusive
    MAX_YEAR = 2100                # exclusive
    DATE_FORMATS = [
        "%d/%m/%Y",   # dd/MM/yyyy
        "%d-%m-%Y",   # dd-MM-yyyy
        "%Y-%m-%d",   # yyyy-MM-dd
        "%m/%d/%Y",   # MM/dd/yyyy
        "%d.%m.%Y",   # dd.MM.yyyy
        "%Y/%m/%d",   # yyyy/MM/dd
    ]  # strptime also accepts single-digit day and month (d/M/yyyy)
    DISPLAY_DATE_FORMAT = "%d/%m/%Y"

    # CSV decoding
    CSV_ENCODINGS = ['utf-8-sig', 'cp1252', 'latin1']
    CSV_DELIMITERS = ",;\t|"

    # Reconciliation tolerance
    BALANCE_TOLERANCE = "0.02"
