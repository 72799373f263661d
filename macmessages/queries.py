"""Kinds of items and group actions recorded in the Messages database."""

from enum import IntEnum


class GroupActionType(IntEnum):
    """Group action codes; their meaning depends on the item type."""

    ADD_USER = 0
    REMOVE_USER = 1
    SET_AVATAR = 1
    REMOVE_AVATAR = 2


class ItemType(IntEnum):
    """Kind of a row in the message table."""

    MESSAGE = 0
    MEMBER = 1
    NAME = 2
    AVATAR = 3
    ERROR = -100