# -*- coding: utf-8 -*-
# ---------------------------------------------------------------
# check NetApp storage plugin for Icinga 2 / Nagios
# ---------------------------------------------------------------
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
# ---------------------------------------------------------------
"""Render byte counts, durations and counted nouns for the status line."""

_IEC_PREFIXES = ("", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei")

_DURATION_UNITS = (
    ("year", 365 * 86400),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def scale_factor_and_prefix(value, base=1024, prefixes=_IEC_PREFIXES):
    """
    >>> scale_factor_and_prefix(1)
    (1, '')
    >>> scale_factor_and_prefix(1025)
    (1024, 'Ki')
    """
    factor = 1
    for prefix in prefixes[:-1]:
        if abs(value) < factor * base:
            return factor, prefix
        factor *= base
    return factor, prefixes[-1]



def fmt_bytes(value, precision=1):
    """
    >>> fmt_bytes(716800)
    '700.0 KiB'
    >>> fmt_bytes(None)
    'n/a'
    """
    if value is None:
        return "n/a"
    factor, prefix = scale_factor_and_prefix(value)
    return "%.*f %sB" % (precision, value / factor, prefix)



def plural(count, singular, plural_form=None):
    """
    >>> plural(1, "aggregate")
    '1 aggregate'
    >>> plural(2, "aggregate")
    '2 aggregates'
    """
    if count == 1:
        return f"{count} {singular}"
    return f"{count} {plural_form or singular + 's'}"



def fmt_duration(seconds, precision=3):
    """
    Spell out a duration with its most significant units.

    >>> fmt_duration(93784)
    '1 day, 2 hours, 3 minutes'
    >>> fmt_duration(86401)
    '1 day, 1 second'
    >>> fmt_duration(0)
    '0 seconds'
    """
    seconds = int(seconds)
    if seconds <= 0:
        return "0 seconds"

    parts = []
    for name, size in _DURATION_UNITS:
        amount, seconds = divmod(seconds, size)
        if amount:
            parts.append(plural(amount, name))
        if len(parts) == precision:
            break

    return ", ".join(parts)
