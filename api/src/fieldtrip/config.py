"""
Configuration for the field-trip notice generator.

Keep tunables here so they're easy to find and tweak.
"""
import os
from pathlib import Path

# Repository / deployment root (api/src/fieldtrip/config.py -> root).
PROJECT_ROOT = Path(__file__).resolve().parents[3]

# Word template with {{ field_name }} tags (Jinja2 default delimiters).
# Authored outside this repo; only ever read.
TEMPLATE_PATH = Path(
    os.environ.get("FIELDTRIP_TEMPLATE_PATH", PROJECT_ROOT / "templates" / "fieldtrip.docx")
)

# Path shown to users when the template is missing.
TEMPLATE_DISPLAY_PATH = "templates/fieldtrip.docx"

# Download filename: <prefix>_<date or placeholder>.docx
OUTPUT_FILENAME_PREFIX = "校外学習お便り"
MISSING_DATE_PLACEHOLDER = "日付未設定"

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Route served by api/index.py (router prefix + /api mount).
GENERATE_ENDPOINT = "/api/letters/fieldtrip"

# Base URL the form client posts to when no client is injected.
API_BASE_URL = os.environ.get("FIELDTRIP_API_BASE_URL", "http://localhost:8000")
