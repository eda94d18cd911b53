# -*- coding: utf-8 -*-
# ---------------------------------------------------------------
# check NetApp storage plugin for Icinga 2 / Nagios
# ---------------------------------------------------------------
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
# ---------------------------------------------------------------
"""
Threshold ranges in the monitoring plugin notation.

    10      alert if value < 0 or value > 10
    10:     alert if value < 10
    ~:10    alert if value > 10
    10:20   alert if value < 10 or value > 20
    @10:20  alert if 10 <= value <= 20

Operators type these strings on the command line, so a range that does not
parse is a ConfigurationError instead of a silently missing threshold.
"""

import math
import re

from .exceptions import ConfigurationError
from .state import CheckState

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


def _parse_number(text, spec, default):
    text = text.strip()
    if text == "":
        return default
    if not _NUMBER_RE.match(text):
        raise ConfigurationError(f"Invalid threshold range '{spec}': '{text}' is not a number.")
    return float(text)



class Range:

    def __init__(self, start=0.0, end=math.inf, inside=False, spec=None):
        self.start = start
        self.end = end
        self.inside = inside
        self.spec = spec

    @classmethod
    def parse(cls, spec):
        text = str(spec).strip()
        if not text:
            raise ConfigurationError("Empty threshold range.")

        inside = text.startswith("@")
        if inside:
            text = text[1:]

        if ":" in text:
            start_text, end_text = text.split(":", 1)
            if start_text.strip() == "~":
                start = -math.inf
            else:
                start = _parse_number(start_text, spec, 0.0)
            end = _parse_number(end_text, spec, math.inf)
        else:
            start = 0.0
            end = _parse_number(text, spec, None)
            if end is None:
                raise ConfigurationError(f"Invalid threshold range '{spec}'.")

        if start > end:
            raise ConfigurationError(f"Invalid threshold range '{spec}': start is greater than end.")

        return cls(start, end, inside, spec=str(spec).strip())

    def violated_by(self, value):
        if self.inside:
            return self.start <= value <= self.end
        return value < self.start or value > self.end

    def __eq__(self, other):
        if not isinstance(other, Range):
            return NotImplemented
        return (self.start, self.end, self.inside) == (other.start, other.end, other.inside)

    def __repr__(self):
        return f"Range({self.spec!r})"

    def __str__(self):
        return self.spec if self.spec is not None else f"{'@' if self.inside else ''}{self.start}:{self.end}"



def parse_range(spec):
    """Parse an optional range string, None stays None (no bound configured)."""
    if spec is None:
        return None
    if isinstance(spec, Range):
        return spec
    return Range.parse(spec)



def evaluate(value, warning=None, critical=None):
    """Critical is checked first, then warning, anything else is OK."""
    critical = parse_range(critical)
    warning = parse_range(warning)

    if critical is not None and critical.violated_by(value):
        return CheckState.CRITICAL
    if warning is not None and warning.violated_by(value):
        return CheckState.WARNING
    return CheckState.OK
