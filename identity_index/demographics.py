"""
Demographic value types feeding the similarity index.

These are plain values with simple textual parsing and display. They supply
the strings (display forms, masked identifier suffixes) and the hashable
record identifiers that callers insert into a :class:`~identity_index.bktree.BKTree`.
None of them normalizes text: case-folding or accent stripping is up to the
caller, before insertion.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Iterator, Mapping, Optional, Tuple

from .config import TIN_MASK_PREFIX, TIN_VISIBLE_GRAPHEMES
from .utils import graphemes

AddressType = str
PhoneNumberType = str
EmailAddressType = str
PhoneNumber = str
EmailAddress = str

_ADDRESS_RE = re.compile(r"^([^,]+), +([^,]+), +([^\W\d_]{2}) +(\d{5}), +([^,]+)$")
_DATE_RE = re.compile(r"^(\d{4})(?:-(\d{2})(?:-(\d{2}))?)?$")


class DemographicParseError(ValueError):
    """Raised when a demographic value cannot be parsed from text."""


def _freeze(mapping: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


def _mapping_hash(mapping: Mapping) -> int:
    # frozenset keeps the hash independent of dict iteration order
    return hash(frozenset(mapping.items()))


@dataclass(frozen=True)
class HumanName:
    components: Tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> "HumanName":
        components = tuple(text.split())
        if not components:
            raise DemographicParseError(f"Empty name: {text!r}")
        return cls(components)

    def __str__(self) -> str:
        return " ".join(self.components)


@dataclass(frozen=True)
class TIN:
    """Taxpayer identification number, displayed masked."""

    unencrypted: str = field(repr=False)

    @classmethod
    def parse(cls, text: str) -> "TIN":
        value = text.strip()
        if not value:
            raise DemographicParseError("Empty taxpayer identification number")
        return cls(value)

    def last_few_chars(self, count: int = TIN_VISIBLE_GRAPHEMES) -> str:
        """Return the last ``count`` grapheme clusters (all of them if shorter)."""
        clusters = graphemes(self.unencrypted)
        return "".join(clusters[-count:]) if count > 0 else ""

    def __str__(self) -> str:
        return f"{TIN_MASK_PREFIX}{self.last_few_chars()}"

    def __repr__(self) -> str:
        return f"TIN({str(self)!r})"


SSN = TIN


@dataclass(frozen=True)
class Address:
    line_1: str
    city: str
    state_or_province: str
    zip_or_postal_code: str
    country: str
    line_2: str = ""
    line_3: str = ""

    @classmethod
    def parse(cls, text: str) -> "Address":
        """Parse ``"123 Main St, Anytown, NJ 01234, United States"``."""
        match = _ADDRESS_RE.match(text.strip())
        if not match:
            raise DemographicParseError(f"Unrecognized address: {text!r}")
        line_1, city, state, postal, country = match.groups()
        return cls(
            line_1=line_1,
            city=city,
            state_or_province=state,
            zip_or_postal_code=postal,
            country=country,
        )

    def lines(self) -> Tuple[str, ...]:
        return tuple(line for line in (self.line_1, self.line_2, self.line_3) if line)

    def __str__(self) -> str:
        street = ", ".join(self.lines())
        return (
            f"{street}, {self.city}, {self.state_or_province} "
            f"{self.zip_or_postal_code}, {self.country}"
        )


@dataclass(frozen=True)
class OptionDate:
    """A date whose month and day may be unknown."""

    year: int
    month: Optional[int] = None
    day: Optional[int] = None

    def __post_init__(self) -> None:
        if not 1 <= self.year <= 9999:
            raise DemographicParseError(f"Invalid year: {self.year}")
        if self.day is not None and self.month is None:
            raise DemographicParseError("Day given without month")
        if self.month is not None and not 1 <= self.month <= 12:
            raise DemographicParseError(f"Invalid month: {self.month}")
        if self.day is not None:
            last_day = calendar.monthrange(self.year, self.month)[1]
            if not 1 <= self.day <= last_day:
                raise DemographicParseError(
                    f"Invalid day {self.day} for {self.year:04d}-{self.month:02d}"
                )

    @classmethod
    def parse(cls, text: str) -> "OptionDate":
        """Parse ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``."""
        match = _DATE_RE.match(text.strip())
        if not match:
            raise DemographicParseError(f"Unrecognized date: {text!r}")
        year, month, day = match.groups()
        return cls(
            int(year),
            int(month) if month else None,
            int(day) if day else None,
        )

    def __str__(self) -> str:
        parts = [f"{self.year:04d}"]
        if self.month is not None:
            parts.append(f"{self.month:02d}")
        if self.day is not None:
            parts.append(f"{self.day:02d}")
        return "-".join(parts)


@dataclass(frozen=True)
class Organization:
    name: str
    tin_number: TIN
    addresses: Mapping[AddressType, Address] = field(default_factory=dict)
    phone_numbers: Mapping[PhoneNumberType, PhoneNumber] = field(default_factory=dict)
    email_addresses: Mapping[EmailAddressType, EmailAddress] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "addresses", _freeze(self.addresses))
        object.__setattr__(self, "phone_numbers", _freeze(self.phone_numbers))
        object.__setattr__(self, "email_addresses", _freeze(self.email_addresses))

    def __hash__(self) -> int:
        return hash((
            self.name,
            self.tin_number,
            _mapping_hash(self.addresses),
            _mapping_hash(self.phone_numbers),
            _mapping_hash(self.email_addresses),
        ))

    def match_keys(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(field, text)`` pairs suitable for per-field similarity indexes."""
        yield "name", self.name
        yield "tin", self.tin_number.last_few_chars()
        for address_type in sorted(self.addresses):
            yield "address", str(self.addresses[address_type])


@dataclass(frozen=True)
class Human:
    name: HumanName
    ssn: SSN
    birth_date: Optional[OptionDate] = None
    addresses: Mapping[AddressType, Address] = field(default_factory=dict)
    phone_numbers: Mapping[PhoneNumberType, PhoneNumber] = field(default_factory=dict)
    email_addresses: Mapping[EmailAddressType, EmailAddress] = field(default_factory=dict)
    employers: FrozenSet[Organization] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "addresses", _freeze(self.addresses))
        object.__setattr__(self, "phone_numbers", _freeze(self.phone_numbers))
        object.__setattr__(self, "email_addresses", _freeze(self.email_addresses))
        object.__setattr__(self, "employers", frozenset(self.employers))

    def __hash__(self) -> int:
        return hash((
            self.name,
            self.ssn,
            self.birth_date,
            _mapping_hash(self.addresses),
            _mapping_hash(self.phone_numbers),
            _mapping_hash(self.email_addresses),
            self.employers,
        ))

    def match_keys(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(field, text)`` pairs suitable for per-field similarity indexes."""
        yield "name", str(self.name)
        yield "tin", self.ssn.last_few_chars()
        for address_type in sorted(self.addresses):
            yield "address", str(self.addresses[address_type])
