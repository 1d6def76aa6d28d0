"""HTML sanitization for text that ends up in output markup."""
import re

import nh3

_UNESCAPED_DOLLAR_RE = re.compile(r'((?:\\?.)*?)\$', re.DOTALL)


def escape_for_html(s: str) -> str:
    return s.replace('<', '&lt;').replace('>', '&gt;')


def clean_for_html(s: str) -> str:
    """
    Sanitize text for use as inner HTML.

    nh3 removes markup that could execute (script/style are dropped along
    with their content); every '<' and '>' that survives is then escaped so
    harmless-looking injected elements (forms, inputs) cannot render either.
    """
    return escape_for_html(nh3.clean(s))


def escape_unescaped_dollar(s: str) -> str:
    """Backslash-escape every '$' not already preceded by a backslash."""
    # A trailing '$' guarantees the final segment matches; the extra '\\$'
    # it produces is sliced off again.
    return _UNESCAPED_DOLLAR_RE.sub(lambda m: m.group(1) + '\\$', s + '$')[:-2]
