INDEX_NAME_CONVENTION_1 = "_v1"
INDEX_NAME_CONVENTION_2 = "_v2"

RETURN_ACKNOWLEDGE = "ok"


def first_slot_name(alias: str) -> str:
    return alias + INDEX_NAME_CONVENTION_1


def dest_slot_name(alias: str, current_index: str) -> str:
    """Return the slot an alias migrates to, given the index it is on."""
    if current_index == alias + INDEX_NAME_CONVENTION_1:
        return alias + INDEX_NAME_CONVENTION_2
    return alias + INDEX_NAME_CONVENTION_1
