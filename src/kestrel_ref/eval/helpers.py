from __future__ import annotations

from ..types import KstBool, KstNull, KstValue

TRUE = KstBool(True)
FALSE = KstBool(False)

def is_truthy(val: KstValue) -> bool:
    # only null and false are falsy; 0 and "" are truthy
    match val:
        case KstBool(value=b):
            return b
        case KstNull():
            return False
        case _:
            return True

def native_bool(flag: bool) -> KstBool:
    return TRUE if flag else FALSE
