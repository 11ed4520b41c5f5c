# core/config.py
import os

from dotenv import load_dotenv

# Load .env
load_dotenv()

# ---- ENV VALUES ----
DATA_PATH = os.path.expanduser(
    os.getenv("BIBLELINK_DATA_PATH", "~/.biblelink/data")
)
DATA_FILE_NAME = "bible_data.json"

DEFAULT_TRANSLATION = os.getenv("DEFAULT_BIBLE_TRANSLATION", "ASV")

# One of: text, link, codeblock
OUTPUT_TYPE = os.getenv("BIBLELINK_OUTPUT_TYPE", "codeblock")
OUTPUT_TYPES = ("text", "link", "codeblock")

CODE_BLOCK_LANGUAGE = os.getenv("BIBLELINK_CODE_BLOCK_LANGUAGE", "bible")

LOG_LEVEL = os.getenv("BIBLELINK_LOG_LEVEL", "INFO").upper()

# ---- BIBLE GATEWAY ----
BIBLE_GATEWAY_URL = "https://www.biblegateway.com/passage/"
