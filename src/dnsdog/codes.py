"""
Label tables for DNS protocol enumerations

Each table maps a numeric protocol value to the short label used in metric
tags. Lookups are total: values outside a table get its fallback label.
"""

UNKNOWN = "UNKNOWN"
OK = "OK"

# --- Record types ---
QUERY_TYPES = {
    1: "A",
    2: "NS",
    3: "MD",
    4: "MF",
    5: "CNAME",
    6: "SOA",
    7: "MB",
    8: "MG",
    9: "MR",
    10: "NULL",
    11: "WKS",
    12: "PTR",
    13: "HINFO",
    14: "MINFO",
    15: "MX",
    16: "TXT",
    28: "AAAA",
    33: "SRV",
}

# --- Response codes ---
# NOERROR (0) is deliberately absent: it shares the "OK" fallback.
RESPONSE_CODES = {
    1: "FormErr",
    2: "ServFail",
    3: "NXDomain",
    4: "NotImp",
    5: "Refused",
    6: "YXDomain",
    7: "YXRRSet",
    8: "NXRRSet",
    9: "NotAuth",
    10: "NotZone",
    16: "BadVers",
    17: "BadKey",
    18: "BadTime",
    19: "BadMode",
    20: "BadName",
    21: "BadAlg",
    22: "BadTruc",
}

# --- Op codes ---
OP_CODES = {
    0: "Query",
    1: "IQuery",
    2: "Status",
    4: "Notify",
    5: "Update",
}


def query_type(rtype: int) -> str:
    """Label for a record type, "UNKNOWN" if not tracked"""
    return QUERY_TYPES.get(rtype, UNKNOWN)


def response_code(rcode: int) -> str:
    """Label for a response code.

    Both NOERROR and codes missing from the table come back as "OK".
    """
    return RESPONSE_CODES.get(rcode, OK)


def op_code(opcode: int) -> str:
    """Label for an op code, "UNKNOWN" if not tracked"""
    return OP_CODES.get(opcode, UNKNOWN)


__all__ = [
    'QUERY_TYPES',
    'RESPONSE_CODES',
    'OP_CODES',
    'query_type',
    'response_code',
    'op_code',
]
