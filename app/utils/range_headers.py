from typing import Any, Dict, Mapping, Optional


def extract_range(headers: Mapping[str, Any]) -> Optional[str]:
    """
    Returns the client's Range header value, or None when it is absent,
    not a string, blank or sent more than once.
    The byte-range syntax itself is left for the origin to validate.
    """
    if hasattr(headers, "getlist"):
        values = headers.getlist("range")
    else:
        value = headers.get("Range", headers.get("range"))
        values = value if isinstance(value, (list, tuple)) else [value]

    if len(values) != 1:
        return None
    value = values[0]
    if not isinstance(value, str) or not value.strip():
        return None
    return value


def build_forward_headers(headers: Mapping[str, Any]) -> Dict[str, str]:
    forward = {"Accept": "*/*"}
    range_value = extract_range(headers)
    if range_value is not None:
        forward["Range"] = range_value
    return forward
