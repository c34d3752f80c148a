"""
Pipeline tools: text normalization, file helpers and rate limiting.
"""

# text.py
from .text import (
    normalize_text,
    strip_markup,
    strip_qualifiers,
)

# files.py
from .files import (
    ensure_directory,
    read_json,
    write_json,
    sanitize_filename,
    generate_file_path,
)

# search.py
from .search import (
    RateLimiter,
    get_search_limiter,
    get_knowledge_limiter,
    reset_limiters,
)
