"""Pre-compiled regex patterns for the call-data tools.

All patterns are compiled once at module import.

Usage:
    from utils.patterns import NON_DIGITS, CURRENCY_SYMBOLS

    digits = NON_DIGITS.sub("", "(555) 123-4567")
"""

import re

# Upload extensions accepted by the file surface
UPLOAD_EXTENSIONS = re.compile(r'\.(csv|tsv|txt)$', re.IGNORECASE)

# Anything that is not a digit (phone number normalisation)
NON_DIGITS = re.compile(r'\D')

# Whitespace normalization: multiple spaces/tabs/newlines
WHITESPACE = re.compile(r'\s+')

# Currency symbols and thousands separators stripped before numeric conversion
CURRENCY_SYMBOLS = re.compile(r'[\$€£¥₹₽]')

# Leading date part of a timestamp such as "03-14-24 09:15" or "2024-03-14T09:15"
DATE_PART = re.compile(r'^\s*([0-9]{1,4}[-/][0-9]{1,2}[-/][0-9]{1,4})')

# First JSON object in a free-text LLM reply
JSON_OBJECT = re.compile(r'\{.*\}', re.DOTALL)
