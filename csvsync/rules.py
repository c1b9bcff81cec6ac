"""
Deterministic rules shared by the codec, the exporters and the host.

Values that operators may need to tune are read from the environment once,
at import time.
"""

import os

TARGET_ENCODING = "utf-8"
NORMALIZED_DELIMITER = ","
SNIFF_DELIMITERS = [",", ";", "\t", "|"]

# Upload acceptance gate
REQUIRED_COLUMNS = ("phone", "template_title", "reply_message_text")
MAX_UPLOAD_BYTES = int(os.getenv("CSVSYNC_MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))

# Column role aliases, in priority order
PHONE_ALIASES = ("phone", "telefone", "celular")
TEMPLATE_ALIASES = ("template_title", "template")
MESSAGE_ALIASES = ("reply_message_text", "message", "mensagem")

# Brazilian phone heuristics
COUNTRY_CODE = "55"
ACCEPTED_COUNTRY_PREFIXES = ("55", "1")
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 13

# Export formats
OMNICHAT_HEADER = "fullNumber"
OMNICHAT_DELIMITER = ","
ZENVIA_HEADERS = ("celular", "sms")
ZENVIA_DELIMITER = ";"
SMS_LIMIT = 160
SMS_WARNING_THRESHOLD = 130
FILENAME_PREFIX = os.getenv("CSVSYNC_FILENAME_PREFIX", "CSV")

# Persistence
STORAGE_PATH = os.getenv("CSVSYNC_STORAGE_PATH", "")
RECENT_FILES_LIMIT = 5
EXPORT_HISTORY_LIMIT = 100
PREVIEW_ROWS = 3

LOG_LEVEL = os.getenv("CSVSYNC_LOG_LEVEL", "INFO")
