"""
Query string rewriter for GET requests.
"""
from urllib.parse import parse_qsl, urlencode

from starlette.types import Scope

from xssguard.services.policy import FieldPolicy


def rewrite_query(query_string: bytes, policy: FieldPolicy) -> bytes:
    """
    Sanitize every value of every non-skipped parameter.

    Parameter order and repeated occurrences are kept. An empty query
    string is returned as is. Bytes are read as latin-1 and percent-escapes
    decoded and re-encoded as latin-1 too, so multi-byte UTF-8 values keep
    their original byte sequence.
    """
    if not query_string:
        return query_string
    params = parse_qsl(
        query_string.decode("latin-1"), keep_blank_values=True, encoding="latin-1"
    )
    rewritten = [(key, policy.apply(key, value)) for key, value in params]
    return urlencode(rewritten, encoding="latin-1").encode("ascii")


def rewrite_scope_query(scope: Scope, policy: FieldPolicy) -> None:
    """Rewrite `scope["query_string"]` in place."""
    query_string = scope.get("query_string", b"")
    if query_string:
        scope["query_string"] = rewrite_query(query_string, policy)
