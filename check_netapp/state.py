# -*- coding: utf-8 -*-
# ---------------------------------------------------------------
# check NetApp storage plugin for Icinga 2 / Nagios
# ---------------------------------------------------------------
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
# ---------------------------------------------------------------

from collections import namedtuple
from enum import Enum


class CheckState(Enum):
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3



# UNKNOWN outranks CRITICAL: a verdict that could not be determined wins.
SEVERITY_RANK = {
    CheckState.OK: 0,
    CheckState.WARNING: 1,
    CheckState.CRITICAL: 2,
    CheckState.UNKNOWN: 3,
}


Result = namedtuple("Result", ["state", "message"])



def worst_state(states):
    return max(states, key=SEVERITY_RANK.__getitem__, default=CheckState.OK)



def aggregate_results(results, join_all=False):
    """
    Fold the results of one handler run into a single (state, message) verdict.

    Only the messages of the worst state make it into the output, the way the
    plugin enumerates failing entities and hides the healthy ones. With
    join_all every message is kept, ordered worst first.
    """
    results = list(results)
    if not results:
        return CheckState.UNKNOWN, "No result was produced for this metric."

    state = worst_state(result.state for result in results)

    if join_all:
        ordered = sorted(results, key=lambda result: SEVERITY_RANK[result.state], reverse=True)
        messages = [result.message for result in ordered]
    else:
        messages = [result.message for result in results if result.state is state]

    return state, " ".join(messages)
