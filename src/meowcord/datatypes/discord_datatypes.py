"""
Snowflake wrappers for the identifiers Meowcord stores.

Tallies and immunity flags are JSON objects keyed by user id strings, the
configured channel may arrive as a string or an int, and the Discord API
hands out ints. ``UserID`` and ``ChannelID`` normalise all of these to one
canonical decimal string and compare equal to either raw form.
"""

from __future__ import annotations

from typing import Union

import discord


class Snowflake:
    """Common behaviour of the id wrappers. Not used directly."""

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Raises:
            ValueError: If ``value`` is a bool, a negative number, or not an integer
                or integer string.
        """
        if isinstance(value, type(self)):
            self._value: str = value._value
            return
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value!r}")

        number = int(value.strip()) if isinstance(value, str) else value
        if number < 0:
            raise ValueError(f"{type(self).__name__} cannot be negative: {value!r}")
        self._value = str(number)

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    def to_int(self) -> int:
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, type(self)):
            return self._value == other._value
        if isinstance(other, bool):
            return False
        if isinstance(other, (str, int)):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class UserID(Snowflake):
    """
    A Discord user id.

    Example:
        >>> uid = UserID.from_int(123456789012345678)
        >>> str(uid)
        '123456789012345678'
        >>> uid.mention()
        '<@123456789012345678>'
    """

    __slots__ = ()

    @classmethod
    def from_user(cls, member: Union[discord.Member, discord.User]) -> "UserID":
        return cls(member.id)

    def mention(self) -> str:
        """Return the ``<@id>`` mention markup for this user."""
        return f"<@{self._value}>"


class ChannelID(Snowflake):
    """A Discord channel id, used for the configured meow channel."""

    __slots__ = ()

    @classmethod
    def from_channel(cls, channel: discord.abc.Snowflake) -> "ChannelID":
        return cls(channel.id)
