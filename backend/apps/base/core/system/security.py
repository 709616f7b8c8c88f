"""
Security Utilities for Papelería Santiago
=========================================
Input sanitization helpers for file names and log output.
"""

import re
import logging

logger = logging.getLogger(__name__)


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent path traversal and log injection.

    Args:
        filename: Original filename

    Returns:
        str: Safe filename
    """
    if not filename:
        return 'unnamed'

    # Remove path separators and null bytes
    filename = filename.replace('/', '_').replace('\\', '_').replace('\x00', '')

    filename = ''.join(char for char in filename if ord(char) >= 32 or char in '\t')

    dangerous_patterns = [
        (r'\.\.', '_'),           # Parent directory traversal
        (r'^\.', '_'),            # Hidden files (Unix)
        (r'[<>:"|?*]', '_'),      # Windows invalid chars
        (r'\s+', ' '),
    ]

    for pattern, replacement in dangerous_patterns:
        filename = re.sub(pattern, replacement, filename)

    if len(filename) > 255:
        name, ext = filename.rsplit('.', 1) if '.' in filename else (filename, '')
        if ext:
            filename = name[:255 - len(ext) - 1] + '.' + ext
        else:
            filename = filename[:255]

    return filename.strip() or 'unnamed'


def sanitize_for_logging(text: str, max_length: int = 200) -> str:
    """
    Sanitize text for safe logging.

    Strips newlines and control characters so user input (destination
    names, uploaded file names) cannot forge extra log lines.

    Args:
        text: Text to sanitize for logging
        max_length: Maximum length to log

    Returns:
        str: Log-safe text
    """
    if not text:
        return ''

    text = str(text).replace('\n', ' ').replace('\r', ' ')
    text = ''.join(char for char in text if ord(char) >= 32)

    if len(text) > max_length:
        text = text[:max_length] + '...'

    return text
