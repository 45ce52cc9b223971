#
# DecoPlanner - dive decompression planning engine.
#
# Copyright (C) 2013-2014 by Artur Wroblewski <wrobell@pld-linux.org>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
#

"""
DecoPlanner errors and advisory warnings.

Configuration and engine errors are fatal for a plan calculation. Advisory
warnings are collected while the plan is calculated and do not stop the
calculation.
"""

import enum
from collections import namedtuple


class ConfigError(Exception):
    """
    Configuration error, raised before the plan calculation starts.
    """


class EngineError(Exception):
    """
    Decompression engine error.
    """


class CalculationAborted(EngineError):
    """
    Plan calculation aborted due to excessive computation time or
    cancellation.
    """


class WarningKind(enum.Enum):
    """
    Kind of advisory warning.
    """
    PO2_HIGH = 'po2_high'
    PO2_LOW = 'po2_low'
    CNS_LIMIT = 'cns_limit'
    OTU_LIMIT = 'otu_limit'
    GAS_OVER_CAPACITY = 'gas_over_capacity'
    GAS_RESERVE = 'gas_reserve'
    TOO_MANY_GASES = 'too_many_gases'
    GAS_UNREACHABLE = 'gas_unreachable'


PlanWarning = namedtuple('PlanWarning', 'kind time depth gas message')
PlanWarning.__doc__ = """
Advisory warning emitted during plan calculation.

:var kind: Warning kind.
:var time: Runtime of the event [min].
:var depth: Depth of the event [m].
:var gas: Gas mix associated with the event (or null).
:var message: Human readable message.
"""

# vim: sw=4:et:ai
