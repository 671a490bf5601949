# Ownership guard shared by every update/delete handler

from unistack.errors import Forbidden, NotFound


# Upper bound of a SERIAL (int4) primary key
MAX_ROW_ID = 2147483647


def parse_int(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def coerce_id(value):
    """Return value as a row id, or None when it is missing, not numeric or outside the id range"""
    number = parse_int(value)
    if number is None or not 0 < number <= MAX_ROW_ID:
        return None
    return number


def verify_ownership(store, table, row_id, caller_id, not_found, forbidden):
    """
    Ownership Guard

    Logic:
    1. Look up the owner of row_id in table
    2. Raise NotFound(not_found) when the row does not exist
    3. Raise Forbidden(forbidden) when the owner is not the caller
    4. Return the owner id

    Ids are compared numerically, so "7" and 7 are the same caller. A caller
    id that is not numeric never owns anything.
    """
    owner_id = store.get_owner_id(table, row_id)
    if owner_id is None:
        raise NotFound(not_found)

    caller = coerce_id(caller_id)
    if caller is None or coerce_id(owner_id) != caller:
        raise Forbidden(forbidden)

    return owner_id
